"""
Response synthesizer: one model call over the query, plan metadata, and sealed results.
No retry and no fallback text; a failed call ends the workflow.
"""

import logging
from typing import Awaitable, Callable, Optional

from orin.agent.llm import complete_text
from orin.agent.prompts import build_synthesis_prompt
from orin.agent.results import SynthesisInput
from orin.agent.state import WorkflowStage
from orin.core.config import OPENAI_SYNTHESIS_MODEL, SYNTHESIS_MAX_TOKENS
from orin.core.errors import SynthesisError

logger = logging.getLogger(__name__)

SynthesisLLM = Callable[[str], Awaitable[str]]


async def _default_synthesis_llm(prompt: str) -> str:
    return await complete_text(prompt, model=OPENAI_SYNTHESIS_MODEL, max_tokens=SYNTHESIS_MAX_TOKENS)


async def synthesize(synthesis_input: SynthesisInput, llm: Optional[SynthesisLLM] = None) -> str:
    """
    Produce the final answer.

    Raises:
        SynthesisError: the model call failed or returned nothing.
    """
    call = llm or _default_synthesis_llm
    prompt = build_synthesis_prompt(synthesis_input)
    logger.info(
        "[synthesizer] IN  query=%r results=%d errors=%d prompt_len=%d",
        synthesis_input.query,
        len(synthesis_input.results),
        synthesis_input.error_count,
        len(prompt),
    )
    try:
        answer = (await call(prompt) or "").strip()
    except Exception as e:
        raise SynthesisError(f"Synthesis model call failed: {e}", stage=WorkflowStage.SYNTHESIZING) from e
    if not answer:
        raise SynthesisError("Synthesis model returned an empty answer", stage=WorkflowStage.SYNTHESIZING)
    logger.info("[synthesizer] OUT answer_len=%d", len(answer))
    return answer
