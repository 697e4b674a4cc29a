"""Stage machine that drives plan generation and sequential section rendering."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from .errors import InvalidStageTransition, ValidationError
from .models import GeneratedSlice, PipelineStage, ProductData
from .planning import DesignPlanGenerator
from .section_renderer import SectionRenderer
from .slice_store import SliceStore

LOGGER = logging.getLogger(__name__)

TRANSITIONS: Dict[PipelineStage, FrozenSet[PipelineStage]] = {
    PipelineStage.IDLE: frozenset({PipelineStage.THINKING}),
    PipelineStage.THINKING: frozenset({PipelineStage.GENERATING, PipelineStage.ERROR}),
    PipelineStage.GENERATING: frozenset({PipelineStage.COMPLETED, PipelineStage.ERROR}),
    PipelineStage.COMPLETED: frozenset({PipelineStage.THINKING}),
    PipelineStage.ERROR: frozenset({PipelineStage.THINKING}),
}

BUSY_STAGES = frozenset({PipelineStage.THINKING, PipelineStage.GENERATING})

PROGRESS_STEPS: Tuple[Tuple[PipelineStage, str], ...] = (
    (PipelineStage.THINKING, "전략 수립"),
    (PipelineStage.VERIFYING, "자가 검증"),
    (PipelineStage.PLANNING, "최종 기획"),
    (PipelineStage.GENERATING, "비주얼 생성"),
)


class EventKind(str, Enum):
    STAGE_CHANGED = "stage_changed"
    SLICE_ADDED = "slice_added"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineEvent:
    kind: EventKind
    stage: PipelineStage
    slices: Tuple[GeneratedSlice, ...]
    message: Optional[str] = None


@dataclass(frozen=True)
class PipelineResult:
    stage: PipelineStage
    slices: Tuple[GeneratedSlice, ...]
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.COMPLETED


@dataclass(frozen=True)
class ProgressStep:
    stage: PipelineStage
    label: str
    status: str


def validate_product(product: ProductData) -> None:
    if not product.name.strip() or not product.images:
        raise ValidationError("이미지와 상품명을 입력하세요.")


def stage_progress(stage: PipelineStage) -> List[ProgressStep]:
    """Status of each progress step (``completed``/``active``/``pending``)."""

    if stage == PipelineStage.COMPLETED:
        return [ProgressStep(key, label, "completed") for key, label in PROGRESS_STEPS]
    keys = [key for key, _ in PROGRESS_STEPS]
    current = keys.index(stage) if stage in keys else -1
    steps = []
    for position, (key, label) in enumerate(PROGRESS_STEPS):
        if current > position:
            status = "completed"
        elif current == position:
            status = "active"
        else:
            status = "pending"
        steps.append(ProgressStep(key, label, status))
    return steps


class PipelineOrchestrator:
    """Run plan → render(section) for every section, publishing each slide."""

    def __init__(
        self,
        planner: DesignPlanGenerator,
        renderer: SectionRenderer,
        store: SliceStore,
    ) -> None:
        self.planner = planner
        self.renderer = renderer
        self.store = store
        self.stage = PipelineStage.IDLE
        self.failure_message: Optional[str] = None
        self._listeners: List[Callable[[PipelineEvent], None]] = []

    @property
    def is_busy(self) -> bool:
        return self.stage in BUSY_STAGES

    def subscribe(self, listener: Callable[[PipelineEvent], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def run(self, product: ProductData) -> PipelineResult:
        """Build every planned slide for ``product``.

        Raises :class:`ValidationError` before any state change when the input
        is incomplete. Backend failures end the run in ``ERROR`` and keep the
        slides produced so far. A run interrupted by a non-``Exception``
        (a UI rerun, ``KeyboardInterrupt``) is left in ``ERROR`` and re-raised.
        """

        validate_product(product)
        self._transition(PipelineStage.THINKING, notify=False)
        self.failure_message = None

        try:
            self._emit(EventKind.STAGE_CHANGED)
            self.store.reset()
            plan = await self.planner.generate_plan(product)
            self._transition(PipelineStage.GENERATING)

            for position, section in enumerate(plan.sections, start=1):
                LOGGER.info(
                    "Rendering section %d/%d (%s): %s",
                    position, len(plan.sections), section.type.value, section.title,
                )
                slice_ = await self.renderer.render(section, product)
                state = self.store.append(slice_)
                self._emit(EventKind.SLICE_ADDED, slices=state.slices)

            self._transition(PipelineStage.COMPLETED)
        except Exception as exc:
            if not self.is_busy:
                raise
            LOGGER.exception("Pipeline failed during %s", self.stage.value)
            self.failure_message = f"장애 발생: {exc}"
            self._transition(PipelineStage.ERROR)
            self._emit(EventKind.FAILED, message=self.failure_message)
        except BaseException:
            # Interrupted from outside (e.g. a UI rerun); leave a restartable stage.
            if self.is_busy:
                LOGGER.warning("Pipeline interrupted during %s", self.stage.value)
                self.failure_message = "장애 발생: 작업이 중단되었습니다."
                self._transition(PipelineStage.ERROR, notify=False)
            raise

        return PipelineResult(
            stage=self.stage,
            slices=self.store.slices,
            error=self.failure_message,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _transition(self, target: PipelineStage, *, notify: bool = True) -> None:
        allowed = TRANSITIONS.get(self.stage, frozenset())
        if target not in allowed:
            raise InvalidStageTransition(
                f"Cannot move from {self.stage.value} to {target.value}"
            )
        LOGGER.debug("Stage %s -> %s", self.stage.value, target.value)
        self.stage = target
        if notify:
            self._emit(EventKind.STAGE_CHANGED)

    def _emit(
        self,
        kind: EventKind,
        *,
        slices: Optional[Tuple[GeneratedSlice, ...]] = None,
        message: Optional[str] = None,
    ) -> None:
        event = PipelineEvent(
            kind=kind,
            stage=self.stage,
            slices=self.store.slices if slices is None else slices,
            message=message,
        )
        for listener in list(self._listeners):
            listener(event)
