"""
Capability registry: tool executors for webSearch, fetchUrl, and generateHaiku.

Each executor owns its failure policy:
- webSearch / fetchUrl raise ToolExecutionError, which the dispatcher records as an error result;
- generateHaiku never raises and falls back to a fixed haiku marked `degraded`.
Adding a tool means adding a ToolName member and registering an executor here.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Awaitable, Callable, Mapping, Optional, Protocol

import httpx
import trafilatura
from ddgs import DDGS

from orin.agent.llm import complete_text
from orin.agent.plan import ToolName
from orin.core.config import (
    FETCH_CONNECT_TIMEOUT,
    FETCH_MAX_CHARS,
    FETCH_RETRIES,
    FETCH_TIMEOUT,
    FETCH_USER_AGENT,
    HAIKU_FALLBACK,
    HAIKU_MAX_TOKENS,
    OPENAI_HAIKU_MODEL,
    SEARCH_DEFAULT_RESULTS,
    SEARCH_KEEP_RESULTS,
    SEARCH_MAX_RESULTS,
    SEARCH_MIN_RESULTS,
    SEARCH_REGION,
    SEARCH_TIMEOUT,
)
from orin.core.errors import ToolExecutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOutput:
    """Successful executor output. `degraded` marks a canned fallback instead of a real result."""

    payload: Any
    degraded: bool = False


class ToolExecutor(Protocol):
    name: ToolName
    description: str
    parameter: str

    async def execute(self, argument: str) -> ToolOutput:
        ...


# --- webSearch ---

SearchProvider = Callable[[str, int], Awaitable[list[dict[str, Any]]]]


async def ddgs_search(query: str, max_results: int) -> list[dict[str, Any]]:
    """Run a DuckDuckGo text search in a worker thread (ddgs is synchronous)."""

    def _run() -> list[dict[str, Any]]:
        with DDGS(timeout=SEARCH_TIMEOUT) as ddgs:
            return list(ddgs.text(query, region=SEARCH_REGION, max_results=max_results))

    return await asyncio.to_thread(_run)


def clamp_result_count(requested: Optional[int]) -> int:
    """Upstream result count, kept within [SEARCH_MIN_RESULTS, SEARCH_MAX_RESULTS]."""
    return min(max(requested or SEARCH_DEFAULT_RESULTS, SEARCH_MIN_RESULTS), SEARCH_MAX_RESULTS)


def _normalize_search_item(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": (raw.get("title") or "").strip(),
        "url": (raw.get("href") or raw.get("url") or "").strip(),
        "snippet": (raw.get("body") or raw.get("snippet") or "").strip(),
    }


class WebSearchExecutor:
    name = ToolName.WEB_SEARCH
    description = "Search the web for current information (news, events, research, general facts)"
    parameter = "query (string)"

    def __init__(self, provider: Optional[SearchProvider] = None, num_results: Optional[int] = None) -> None:
        self._provider = provider or ddgs_search
        self.num_results = clamp_result_count(num_results)

    async def execute(self, argument: str) -> ToolOutput:
        query = (argument or "").strip()
        if not query:
            raise ToolExecutionError(self.name.value, argument, "Search query cannot be empty")
        try:
            raw = await self._provider(query, self.num_results)
            items = [_normalize_search_item(r) for r in raw or []]
        except Exception as e:
            logger.warning("[tools:webSearch] failed query=%r: %s", query, e)
            raise ToolExecutionError(self.name.value, argument, f"Web search failed: {e}") from e
        logger.info("[tools:webSearch] OUT query=%r results=%d kept=%d", query, len(items), min(len(items), SEARCH_KEEP_RESULTS))
        return ToolOutput({"query": query, "results": items[:SEARCH_KEEP_RESULTS], "totalResults": len(items)})


# --- fetchUrl ---

ClientFactory = Callable[[], AsyncContextManager[Any]]


def default_client_factory() -> httpx.AsyncClient:
    """A fresh client per invocation; transport retries cover connect failures."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(FETCH_TIMEOUT, connect=FETCH_CONNECT_TIMEOUT),
        headers={"User-Agent": FETCH_USER_AGENT},
        transport=httpx.AsyncHTTPTransport(retries=FETCH_RETRIES),
    )


def to_markdown(body: str, content_type: str) -> str:
    """Convert an HTML page to Markdown; other text content is returned as-is."""
    if "html" not in (content_type or "").lower():
        return body
    extracted = trafilatura.extract(body, output_format="markdown", include_tables=True, include_comments=False)
    if not extracted:
        extracted = trafilatura.extract(
            body, output_format="markdown", include_tables=True, include_comments=False, favor_recall=True
        )
    if not extracted:
        raise ValueError("Could not extract readable content from the page")
    return extracted


class FetchUrlExecutor:
    name = ToolName.FETCH_URL
    description = "Fetch a web page and convert its content to Markdown"
    parameter = "url (string, http:// or https://)"

    def __init__(self, client_factory: Optional[ClientFactory] = None, max_chars: int = FETCH_MAX_CHARS) -> None:
        self._client_factory = client_factory or default_client_factory
        self.max_chars = max_chars

    async def execute(self, argument: str) -> ToolOutput:
        url = (argument or "").strip()
        if not url.startswith(("http://", "https://")):
            raise ToolExecutionError(self.name.value, argument, f"Invalid URL: {url!r} (must start with http:// or https://)")
        try:
            # The client is the scoped resource: released on success, error, and cancellation.
            async with self._client_factory() as client:
                response = await client.get(url)
                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                content = await asyncio.to_thread(to_markdown, response.text, content_type)
        except Exception as e:
            logger.warning("[tools:fetchUrl] failed url=%s: %s", url, e)
            raise ToolExecutionError(self.name.value, argument, f"Fetch failed: {e}") from e
        logger.info("[tools:fetchUrl] OUT url=%s content_len=%d", url, len(content))
        return ToolOutput(
            {
                "url": url,
                "content": content[: self.max_chars],
                "contentLength": len(content),
                "truncated": len(content) > self.max_chars,
            }
        )


# --- generateHaiku ---

HaikuLLM = Callable[[str], Awaitable[str]]


def build_haiku_prompt(prompt: str) -> str:
    return f"""Generate a traditional haiku (5-7-5 syllable pattern) based on this prompt: {prompt}

Rules:
- Follow the 5-7-5 syllable pattern strictly
- Include nature imagery when possible
- Capture a moment or emotion
- Return only the haiku, no explanations
- Use line breaks between the three lines"""


async def _default_haiku_llm(prompt: str) -> str:
    return await complete_text(prompt, model=OPENAI_HAIKU_MODEL, max_tokens=HAIKU_MAX_TOKENS)


class HaikuExecutor:
    name = ToolName.GENERATE_HAIKU
    description = "Generate a traditional haiku (5-7-5 syllable pattern)"
    parameter = "prompt (string)"

    def __init__(self, llm: Optional[HaikuLLM] = None) -> None:
        self._llm = llm or _default_haiku_llm

    async def execute(self, argument: str) -> ToolOutput:
        degraded = False
        try:
            haiku = (await self._llm(build_haiku_prompt(argument))).strip()
            if not haiku:
                raise ValueError("empty haiku")
        except Exception as e:
            logger.warning("[tools:generateHaiku] generation failed, using fallback: %s", e)
            haiku, degraded = HAIKU_FALLBACK, True
        return ToolOutput({"prompt": argument, "haiku": haiku, "syllablePattern": "5-7-5"}, degraded=degraded)


# --- registry ---

def build_registry(
    search_provider: Optional[SearchProvider] = None,
    client_factory: Optional[ClientFactory] = None,
    haiku_llm: Optional[HaikuLLM] = None,
) -> dict[ToolName, ToolExecutor]:
    """Build the closed registry. Fails if any ToolName has no executor."""
    executors: list[ToolExecutor] = [
        WebSearchExecutor(search_provider),
        FetchUrlExecutor(client_factory),
        HaikuExecutor(haiku_llm),
    ]
    registry = {executor.name: executor for executor in executors}
    missing = [tool.value for tool in ToolName if tool not in registry]
    if missing:
        raise RuntimeError(f"No executor registered for: {', '.join(missing)}")
    return registry


TOOL_REGISTRY: dict[ToolName, ToolExecutor] = build_registry()


def describe_registry(registry: Optional[Mapping[ToolName, ToolExecutor]] = None) -> list[dict[str, str]]:
    """Tool catalog for discovery / documentation."""
    registry = registry if registry is not None else TOOL_REGISTRY
    return [
        {"name": tool.value, "description": executor.description, "parameter": executor.parameter}
        for tool, executor in registry.items()
    ]
