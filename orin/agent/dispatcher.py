"""
Tool dispatcher: flatten a validated Plan and run every invocation through the registry.

Invocations run concurrently up to a cap, but results are always appended in
flattened plan order, never in completion order. Cancelling the dispatch
cancels queued and in-flight invocations; no aggregator is returned, so
partial results never reach synthesis.
"""

import asyncio
import logging
from typing import Mapping, Optional

from orin.agent.plan import Plan, ToolInvocation, ToolName, flatten_plan
from orin.agent.results import ResultAggregator, ToolResult
from orin.agent.state import WorkflowRun
from orin.agent.tools import ToolExecutor
from orin.core.config import DISPATCH_MAX_CONCURRENCY
from orin.core.errors import ToolExecutionError

logger = logging.getLogger(__name__)


async def run_invocation(invocation: ToolInvocation, executor: ToolExecutor) -> ToolResult:
    """
    Run one invocation. Any failure, including a malformed executor output, is
    recorded as an error result; only cancellation propagates.
    """
    try:
        output = await executor.execute(invocation.argument)
        return ToolResult(
            index=invocation.index,
            tool=invocation.tool.value,
            argument=invocation.argument,
            payload=output.payload,
            degraded=output.degraded,
        )
    except ToolExecutionError as e:
        message = e.message
    except Exception as e:
        logger.exception("[dispatcher] invocation %d %s raised unexpectedly", invocation.index, invocation.tool.value)
        message = f"Unexpected {type(e).__name__}: {e}"
    return ToolResult(
        index=invocation.index,
        tool=invocation.tool.value,
        argument=invocation.argument,
        error=message,
    )


async def dispatch_plan(
    plan: Plan,
    registry: Mapping[ToolName, ToolExecutor],
    max_concurrency: Optional[int] = None,
    run: Optional[WorkflowRun] = None,
) -> ResultAggregator:
    """Execute every invocation of `plan` and return the sealed aggregator."""
    invocations = flatten_plan(plan)
    limit = max(max_concurrency or DISPATCH_MAX_CONCURRENCY, 1)
    semaphore = asyncio.Semaphore(limit)
    logger.info("[dispatcher] IN  invocations=%d max_concurrency=%d", len(invocations), limit)

    async def run_one(invocation: ToolInvocation) -> ToolResult:
        async with semaphore:
            if run is not None:
                run.emit("tool_started", index=invocation.index, tool=invocation.tool.value, argument=invocation.argument)
            result = await run_invocation(invocation, registry[invocation.tool])
            logger.info(
                "[dispatcher] invocation %d %s(%r) -> %s%s",
                invocation.index,
                invocation.tool.value,
                invocation.argument,
                "ok" if result.ok else "error",
                " (degraded)" if result.degraded else "",
            )
            if run is not None:
                run.emit(
                    "tool_finished",
                    index=invocation.index,
                    tool=invocation.tool.value,
                    argument=invocation.argument,
                    ok=result.ok,
                    degraded=result.degraded,
                    error=result.error,
                )
            return result

    # gather returns results in argument order regardless of completion order
    results = await asyncio.gather(*(run_one(inv) for inv in invocations))

    aggregator = ResultAggregator()
    for result in results:
        aggregator.append(result)
    aggregator.seal()
    logger.info(
        "[dispatcher] OUT results=%d errors=%d", len(aggregator), sum(1 for r in aggregator.results if not r.ok)
    )
    return aggregator
