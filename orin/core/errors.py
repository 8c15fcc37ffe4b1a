"""
Application errors.

Workflow errors are fatal to a single query and keep their kind all the way to
the caller (API, CLI). Tool failures never end a run: the dispatcher records
ToolExecutionError (and any other executor failure) as an error ToolResult.
"""

from typing import Optional

from orin.agent.state import WorkflowStage


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. the model provider) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LLMCallError(ServiceUnavailableError):
    """A model call could not be completed (no provider, network, timeout, empty reply)."""


class WorkflowError(Exception):
    """Base class for errors that end a workflow run."""

    kind = "workflow"

    def __init__(self, message: str, stage: Optional[WorkflowStage] = None) -> None:
        self.message = message
        self.stage = stage
        super().__init__(message)

    @property
    def stage_name(self) -> Optional[str]:
        return self.stage.value if self.stage is not None else None


class PlanGenerationError(WorkflowError):
    """The planning model call failed or its output did not match the Plan schema."""

    kind = "plan_generation"


class SynthesisError(WorkflowError):
    """The synthesis model call failed."""

    kind = "synthesis"


class WorkflowCancelled(WorkflowError):
    """The caller cancelled the run before it completed."""

    kind = "cancelled"


class ToolExecutionError(Exception):
    """A single tool invocation failed. Recorded as an error ToolResult."""

    def __init__(self, tool: str, argument: str, message: str) -> None:
        self.tool = tool
        self.argument = argument
        self.message = message
        super().__init__(f"{tool}({argument!r}): {message}")


class AggregatorSealedError(RuntimeError):
    """Raised on a write to a ResultAggregator after it was sealed."""
