"""Clean-up of headline/description text returned by the text model."""

from __future__ import annotations

import re
from typing import Optional

LABEL_TOKENS = (
    "대문구",
    "소설명",
    "문구",
    "카피",
    "Copy",
    "Text",
    "Title",
    "Subtitle",
    "Headline",
)

_LABEL_PATTERN = re.compile(
    r"^(?:" + "|".join(LABEL_TOKENS) + r")[:：\s\-]+",
    re.IGNORECASE,
)

QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "「": "」",
    "“": "”",
    "‘": "’",
}


def _strip_once(text: str) -> str:
    text = _LABEL_PATTERN.sub("", text.strip(), count=1).strip()
    if len(text) >= 2 and QUOTE_PAIRS.get(text[0]) == text[-1]:
        text = text[1:-1].strip()
    return text


def sanitize_copy(text: Optional[str]) -> str:
    """Remove a leading label token and one layer of wrapping quotes.

    The steps repeat until nothing changes, which keeps the function
    idempotent for inputs such as ``'"Copy: 가벼움"'``.
    """

    if not text:
        return ""
    current = text
    while True:
        cleaned = _strip_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned
