"""
Plan data model, decode step, and validator.

The planning model returns raw text. decode_plan turns it into a typed Plan or
raises PlanGenerationError; nothing downstream ever branches on untyped fields.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from orin.agent.llm import strip_code_fences
from orin.agent.state import WorkflowStage
from orin.core.errors import PlanGenerationError

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    """Closed set of capabilities a plan may reference."""

    WEB_SEARCH = "webSearch"
    FETCH_URL = "fetchUrl"
    GENERATE_HAIKU = "generateHaiku"


class Plan(BaseModel):
    """Structured output of planning. Created once per query and never mutated."""

    # strict: a string is never promoted to a one-element list, numbers are not strings, etc.
    model_config = ConfigDict(strict=True, frozen=True, extra="forbid", populate_by_name=True)

    reasoning: str = Field(..., min_length=1, description="Brief explanation of the planning approach.")
    tools: list[ToolName] = Field(..., description="Tools to use, in invocation order.")
    parameters: dict[ToolName, list[str]] = Field(
        ..., description="Arguments per tool. A missing or empty entry means zero invocations."
    )
    expected_workflow: str = Field(
        ...,
        alias="expectedWorkflow",
        description="How the tool results will be used to answer the query.",
    )


@dataclass(frozen=True)
class ToolInvocation:
    """One (tool, argument) unit of work. `index` is the position in the flattened plan."""

    index: int
    tool: ToolName
    argument: str


def _summarize_validation(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)


def decode_plan(raw_text: str) -> Plan:
    """
    Decode the planning model's raw reply into a Plan.

    Raises:
        PlanGenerationError: invalid JSON, unknown tool identifier, missing field, or wrong type.
    """
    content = strip_code_fences(raw_text)
    if not content:
        raise PlanGenerationError("Planner returned an empty response", stage=WorkflowStage.PLANNING)
    try:
        plan = Plan.model_validate_json(content)
    except ValidationError as e:
        logger.warning("[plan:decode] schema mismatch: %s", e)
        raise PlanGenerationError(
            f"Plan does not match schema: {_summarize_validation(e)}",
            stage=WorkflowStage.PLANNING,
        ) from e
    logger.info("[plan:decode] OUT tools=%s", [t.value for t in plan.tools])
    return plan


def validate_plan(plan: Plan, registry: Mapping[ToolName, object]) -> Plan:
    """Semantic checks the schema cannot express. Returns the plan unchanged."""
    if not plan.reasoning.strip():
        raise PlanGenerationError("Plan reasoning is blank", stage=WorkflowStage.VALIDATING)
    missing = [tool.value for tool in plan.tools if tool not in registry]
    if missing:
        raise PlanGenerationError(
            f"Plan references tools with no registered executor: {', '.join(missing)}",
            stage=WorkflowStage.VALIDATING,
        )
    return plan


def flatten_plan(plan: Plan) -> list[ToolInvocation]:
    """
    Flatten `tools` x `parameters[tool]` into the ordered invocation list.

    Entries for tools absent from `tools` contribute nothing; duplicate
    arguments are kept as separate invocations.
    """
    invocations: list[ToolInvocation] = []
    for tool in plan.tools:
        for argument in plan.parameters.get(tool) or []:
            invocations.append(ToolInvocation(index=len(invocations), tool=tool, argument=argument))
    return invocations


def count_invocations(plan: Plan) -> int:
    return sum(len(plan.parameters.get(tool) or []) for tool in plan.tools)
