"""
Plan generator: one planning model call, decoded into a typed Plan. No retry.
"""

import logging
from typing import Awaitable, Callable, Optional

from orin.agent.llm import complete_json
from orin.agent.plan import Plan, decode_plan
from orin.agent.prompts import build_planner_prompt, today_reference
from orin.agent.state import WorkflowStage
from orin.core.config import OPENAI_PLANNER_MODEL, PLANNER_MAX_TOKENS
from orin.core.errors import PlanGenerationError

logger = logging.getLogger(__name__)

PlannerLLM = Callable[[str], Awaitable[str]]


async def _default_planner_llm(prompt: str) -> str:
    return await complete_json(prompt, model=OPENAI_PLANNER_MODEL, max_tokens=PLANNER_MAX_TOKENS)


async def generate_plan(
    query: str,
    today: Optional[str] = None,
    llm: Optional[PlannerLLM] = None,
) -> Plan:
    """
    Ask the planning model for a Plan.

    Raises:
        PlanGenerationError: the model call failed or the reply did not decode into a Plan.
            Cancellation propagates unchanged.
    """
    today = today or today_reference()
    call = llm or _default_planner_llm
    prompt = build_planner_prompt(query, today)
    logger.info("[planner] IN  query=%r today=%s prompt_len=%d", query, today, len(prompt))
    try:
        raw = await call(prompt)
    except Exception as e:
        raise PlanGenerationError(f"Planning model call failed: {e}", stage=WorkflowStage.PLANNING) from e
    logger.debug("[planner] raw=%r", raw[:1000])
    plan = decode_plan(raw)
    logger.info(
        "[planner] OUT tools=%s parameters=%s",
        [t.value for t in plan.tools],
        {k.value: len(v) for k, v in plan.parameters.items()},
    )
    return plan
