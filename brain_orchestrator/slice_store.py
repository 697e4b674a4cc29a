"""In-memory, observable collection of generated slides."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Tuple

from .models import GeneratedSlice
from .sanitizer import sanitize_copy

LOGGER = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"copy", "description"})


@dataclass(frozen=True, slots=True)
class SliceState:
    slices: Tuple[GeneratedSlice, ...] = ()
    focus: int = 0

    @property
    def focused(self) -> Optional[GeneratedSlice]:
        if not self.slices:
            return None
        return self.slices[self.focus]


Listener = Callable[[SliceState], None]


class SliceStore:
    """Ordered slides plus the focus index.

    Every change replaces ``state`` with a new immutable ``SliceState`` and
    notifies subscribers, so observers can detect updates by identity.
    """

    def __init__(self, slices: Tuple[GeneratedSlice, ...] = ()) -> None:
        self._state = SliceState(slices=tuple(slices), focus=0)
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SliceState:
        return self._state

    @property
    def slices(self) -> Tuple[GeneratedSlice, ...]:
        return self._state.slices

    @property
    def focus(self) -> int:
        return self._state.focus

    def __len__(self) -> int:
        return len(self._state.slices)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def reset(self) -> SliceState:
        return self._publish(SliceState())

    def append(self, slice_: GeneratedSlice) -> SliceState:
        return self._publish(
            SliceState(slices=self._state.slices + (slice_,), focus=self._state.focus)
        )

    def set_focus(self, index: int) -> SliceState:
        upper = max(len(self._state.slices) - 1, 0)
        clamped = min(max(index, 0), upper)
        return self._publish(dataclasses.replace(self._state, focus=clamped))

    def patch_field(self, index: int, field: str, value: str) -> SliceState:
        return self.patch_fields(index, {field: value})

    def patch_fields(self, index: int, partial: Mapping[str, str]) -> SliceState:
        unknown = set(partial) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be edited: {sorted(unknown)}")
        slices = self._state.slices
        if not 0 <= index < len(slices):
            raise IndexError(f"Slice index {index} out of range (0..{len(slices) - 1})")

        changes = {name: sanitize_copy(value) for name, value in partial.items()}
        patched = dataclasses.replace(slices[index], **changes)
        updated = slices[:index] + (patched,) + slices[index + 1:]
        LOGGER.debug("Patched slice %d fields %s", index, sorted(changes))
        return self._publish(dataclasses.replace(self._state, slices=updated))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _publish(self, state: SliceState) -> SliceState:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state
