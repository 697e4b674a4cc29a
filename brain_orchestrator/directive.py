"""Parser for the ``[UPDATE_CONTENT: {...}]`` directive embedded in chat replies.

Grammar::

    directive := "[UPDATE_CONTENT:" ws object ws "]"
    object    := "{" ... "}"      balanced braces, string literals skipped

Only the first directive in a reply is considered.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .errors import PatchParseError

DIRECTIVE_PREFIX = "[UPDATE_CONTENT:"
DIRECTIVE_SUFFIX = "]"


@dataclass(frozen=True)
class DirectiveNotFound:
    pass


@dataclass(frozen=True)
class DirectiveFound:
    payload: Dict[str, Any]
    start: int
    end: int


@dataclass(frozen=True)
class DirectiveMalformed:
    raw: str
    start: int
    end: int
    reason: str


DirectiveResult = Union[DirectiveNotFound, DirectiveFound, DirectiveMalformed]


def extract_directive(text: str) -> DirectiveResult:
    if not text:
        return DirectiveNotFound()
    start = text.find(DIRECTIVE_PREFIX)
    if start < 0:
        return DirectiveNotFound()

    body_start = _skip_whitespace(text, start + len(DIRECTIVE_PREFIX))
    if body_start >= len(text) or text[body_start] != "{":
        return DirectiveNotFound()
    body_end = _match_brace(text, body_start)
    if body_end is None:
        return DirectiveNotFound()
    suffix_at = _skip_whitespace(text, body_end)
    if not text.startswith(DIRECTIVE_SUFFIX, suffix_at):
        return DirectiveNotFound()
    end = suffix_at + len(DIRECTIVE_SUFFIX)

    raw = text[body_start:body_end]
    try:
        payload = _decode_payload(raw)
    except PatchParseError as exc:
        return DirectiveMalformed(raw=raw, start=start, end=end, reason=str(exc))
    return DirectiveFound(payload=payload, start=start, end=end)


def strip_directive(text: str, result: DirectiveResult) -> str:
    """Remove the directive span located by ``result`` and tidy the seam."""

    if isinstance(result, DirectiveNotFound):
        return text.strip()
    before = text[: result.start]
    after = text[result.end:]
    gap = before[len(before.rstrip()):] + after[: len(after) - len(after.lstrip())]
    separator = "\n" if "\n" in gap else " "
    parts = [part for part in (before.strip(), after.strip()) if part]
    return separator.join(parts)


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def _match_brace(text: str, open_at: int) -> Optional[int]:
    """Index just past the brace closing the one at ``open_at``."""

    depth = 0
    in_string = False
    escaped = False
    for index in range(open_at, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def _decode_payload(raw: str) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PatchParseError(f"Invalid directive JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise PatchParseError("Directive payload must be a JSON object")
    return payload
