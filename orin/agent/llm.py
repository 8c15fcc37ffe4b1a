"""
Model access: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses the HF router.

Every failure surfaces as LLMCallError so callers decide the policy
(fatal for planning and synthesis, fallback text for the haiku tool).
"""

import logging

import httpx
from openai import AsyncOpenAI, OpenAIError

from orin.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_SYNTHESIS_MODEL,
)
from orin.core.errors import LLMCallError

logger = logging.getLogger(__name__)


def strip_code_fences(raw_text: str) -> str:
    """Remove a ```json ... ``` wrapper that models add despite being told not to."""
    content = (raw_text or "").strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]
    return content.strip()


async def _call_openai(prompt: str, model: str, max_tokens: int, json_mode: bool) -> str:
    """Call OpenAI chat completions. Returns generated text."""
    extra = {"response_format": {"type": "json_object"}} if json_mode else {}
    try:
        async with AsyncOpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT) as client:
            response = await client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                **extra,
            )
    except OpenAIError as e:
        raise LLMCallError(f"OpenAI request failed: {e}") from e
    try:
        msg = response.choices[0].message if response.choices else None
        out = ((msg.content if msg else None) or "").strip()
    except (AttributeError, TypeError) as e:
        raise LLMCallError(f"OpenAI returned an unreadable response: {e}") from e
    logger.info("[llm:openai] OUT model=%s response_len=%d", model, len(out))
    return out


async def _call_hf(prompt: str, max_tokens: int) -> str:
    """Call Hugging Face router chat completions. Returns generated text."""
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "max_tokens": max_tokens,
    }
    try:
        async with httpx.AsyncClient(timeout=LLM_API_TIMEOUT) as client:
            response = await client.post(HF_CHAT_URL, json=payload, headers=headers)
    except httpx.HTTPError as e:
        raise LLMCallError(f"HF request failed: {e}") from e
    if response.status_code != 200:
        raise LLMCallError(f"HF LLM error {response.status_code}: {response.text[:200]}")
    try:
        choices = response.json().get("choices") or []
        out = ""
        if choices and isinstance(choices[0], dict):
            out = ((choices[0].get("message") or {}).get("content") or "").strip()
    except (ValueError, AttributeError, TypeError) as e:
        raise LLMCallError(f"HF LLM returned an unreadable response: {response.text[:200]}") from e
    logger.info("[llm:hf] OUT model=%s response_len=%d", HF_LLM_MODEL, len(out))
    return out


async def complete_text(
    prompt: str,
    model: str = OPENAI_SYNTHESIS_MODEL,
    max_tokens: int = 512,
    json_mode: bool = False,
) -> str:
    """
    Run one model call and return its text. `model` names the OpenAI model; the HF
    fallback always uses HF_LLM_MODEL.

    Raises:
        LLMCallError: no provider configured, request failed, or the reply was empty.
    """
    logger.info("[llm] IN  prompt_len=%d model=%s max_tokens=%d json=%s", len(prompt), model, max_tokens, json_mode)
    logger.debug("[llm] prompt_sample=%r", prompt[:500])
    if OPENAI_API_KEY:
        out = await _call_openai(prompt, model, max_tokens, json_mode)
    elif HF_API_KEY:
        out = await _call_hf(prompt, max_tokens)
    else:
        raise LLMCallError("No model provider configured (set OPENAI_API_KEY or HF_API_KEY)")
    if not out:
        raise LLMCallError("Model returned an empty response")
    return out


async def complete_json(prompt: str, model: str, max_tokens: int = 1024) -> str:
    """Model call that asks for a JSON object. Returns the raw text with code fences removed."""
    out = await complete_text(prompt, model=model, max_tokens=max_tokens, json_mode=True)
    return strip_code_fences(out)
