"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the orchestrator decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


# OpenAI (planner, synthesis, haiku). When set, all model calls go to OpenAI.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_PLANNER_MODEL: str = os.getenv("OPENAI_PLANNER_MODEL", "").strip() or "gpt-4.1-mini"
OPENAI_SYNTHESIS_MODEL: str = os.getenv("OPENAI_SYNTHESIS_MODEL", "").strip() or "gpt-4.1-mini"
OPENAI_HAIKU_MODEL: str = os.getenv("OPENAI_HAIKU_MODEL", "").strip() or "gpt-4.1-nano"

# Hugging Face router chat (fallback when OPENAI_API_KEY is not set)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Model call limits (seconds / tokens)
LLM_API_TIMEOUT: float = _env_float("LLM_API_TIMEOUT", 60.0)
PLANNER_MAX_TOKENS: int = 1024
SYNTHESIS_MAX_TOKENS: int = 2048
HAIKU_MAX_TOKENS: int = 128

# Web search (ddgs). Upstream request is clamped to [MIN, MAX]; only the top KEEP are attached.
SEARCH_DEFAULT_RESULTS: int = 5
SEARCH_MIN_RESULTS: int = 3
SEARCH_MAX_RESULTS: int = 5
SEARCH_KEEP_RESULTS: int = 3
SEARCH_REGION: str = os.getenv("SEARCH_REGION", "us-en").strip() or "us-en"
SEARCH_TIMEOUT: int = _env_int("SEARCH_TIMEOUT", 10)

# URL fetch (httpx + trafilatura)
FETCH_MAX_CHARS: int = 2000
FETCH_TIMEOUT: float = _env_float("FETCH_TIMEOUT", 30.0)
FETCH_CONNECT_TIMEOUT: float = 10.0
FETCH_RETRIES: int = 2
FETCH_USER_AGENT: str = "Mozilla/5.0 (compatible; OrinAgent/1.0)"

# Dispatch: max tool invocations in flight for one workflow run
DISPATCH_MAX_CONCURRENCY: int = _env_int("DISPATCH_MAX_CONCURRENCY", 4)

# Returned by the haiku tool whenever generation fails
HAIKU_FALLBACK: str = (
    "AI dreams unfold here\n"
    "Words dance like cherry blossoms\n"
    "Spring code gently flows"
)
