"""
Workflow stages, transitions, and structured events.

One WorkflowRun per query. Events are handed to an optional callback so callers
(SSE stream, CLI verbose mode, tests) observe progress without parsing logs.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class WorkflowStage(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


# Dispatching only reaches ERROR through cancellation; tool failures are data.
_TRANSITIONS: dict[WorkflowStage, frozenset[WorkflowStage]] = {
    WorkflowStage.IDLE: frozenset({WorkflowStage.PLANNING}),
    WorkflowStage.PLANNING: frozenset({WorkflowStage.VALIDATING, WorkflowStage.ERROR}),
    WorkflowStage.VALIDATING: frozenset({WorkflowStage.DISPATCHING, WorkflowStage.ERROR}),
    WorkflowStage.DISPATCHING: frozenset({WorkflowStage.SYNTHESIZING, WorkflowStage.ERROR}),
    WorkflowStage.SYNTHESIZING: frozenset({WorkflowStage.COMPLETE, WorkflowStage.ERROR}),
    WorkflowStage.COMPLETE: frozenset(),
    WorkflowStage.ERROR: frozenset(),
}


@dataclass(frozen=True)
class WorkflowEvent:
    """One observable step: a stage change or a tool invocation start/finish."""

    kind: str
    stage: WorkflowStage
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.kind, "stage": self.stage.value, **self.data}


EventCallback = Callable[[WorkflowEvent], None]


class WorkflowRun:
    """Tracks the stage of a single run and emits an event on every transition."""

    def __init__(self, on_event: Optional[EventCallback] = None) -> None:
        self.stage = WorkflowStage.IDLE
        self.history: list[WorkflowStage] = [WorkflowStage.IDLE]
        self._on_event = on_event

    @property
    def finished(self) -> bool:
        return self.stage in (WorkflowStage.COMPLETE, WorkflowStage.ERROR)

    def advance(self, target: WorkflowStage, /, **data: Any) -> None:
        if target not in _TRANSITIONS[self.stage]:
            raise RuntimeError(f"Illegal workflow transition {self.stage.value} -> {target.value}")
        logger.info("[workflow] stage %s -> %s", self.stage.value, target.value)
        self.stage = target
        self.history.append(target)
        self.emit("stage", **data)

    def emit(self, kind: str, /, **data: Any) -> None:
        if self._on_event is not None:
            self._on_event(WorkflowEvent(kind=kind, stage=self.stage, data=data))
