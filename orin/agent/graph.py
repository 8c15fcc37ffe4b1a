"""
LangGraph workflow: plan_query → validate_plan → execute_tools → synthesize_answer.

Every query gets a fresh graph and WorkflowRun; nothing carries over between runs.
Planning, validation and synthesis failures end the run with a WorkflowError.
Tool failures are recorded as ToolResults and never end the run.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional, TypedDict

from langgraph.graph import END, StateGraph

from orin.agent.dispatcher import dispatch_plan
from orin.agent.plan import Plan, ToolName, count_invocations, validate_plan
from orin.agent.planner import PlannerLLM, generate_plan
from orin.agent.prompts import today_reference
from orin.agent.results import ResultAggregator, SynthesisInput, ToolResult
from orin.agent.state import EventCallback, WorkflowEvent, WorkflowRun, WorkflowStage
from orin.agent.synthesizer import SynthesisLLM, synthesize
from orin.agent.tools import TOOL_REGISTRY, ToolExecutor
from orin.core.errors import WorkflowCancelled, WorkflowError

logger = logging.getLogger(__name__)


class WorkflowState(TypedDict, total=False):
    query: str
    today: str
    plan: Plan
    results: ResultAggregator
    answer: str


@dataclass(frozen=True)
class WorkflowResult:
    plan: Plan
    tool_results: tuple[ToolResult, ...]
    answer: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": self.plan.model_dump(mode="json", by_alias=True),
            "tool_results": [r.to_dict() for r in self.tool_results],
            "answer": self.answer,
        }


def build_graph(
    run: WorkflowRun,
    registry: Mapping[ToolName, ToolExecutor],
    planner_llm: Optional[PlannerLLM] = None,
    synthesis_llm: Optional[SynthesisLLM] = None,
    max_concurrency: Optional[int] = None,
):
    """Build and compile the workflow graph for one run."""

    async def _plan_query(state: WorkflowState) -> dict:
        plan = await generate_plan(state["query"], today=state["today"], llm=planner_llm)
        return {"plan": plan}

    async def _validate_plan(state: WorkflowState) -> dict:
        run.advance(WorkflowStage.VALIDATING)
        plan = validate_plan(state["plan"], registry)
        run.emit("plan", plan=plan.model_dump(mode="json", by_alias=True))
        return {"plan": plan}

    async def _execute_tools(state: WorkflowState) -> dict:
        plan = state["plan"]
        run.advance(WorkflowStage.DISPATCHING, invocations=count_invocations(plan))
        aggregator = await dispatch_plan(plan, registry, max_concurrency=max_concurrency, run=run)
        return {"results": aggregator}

    async def _synthesize_answer(state: WorkflowState) -> dict:
        run.advance(WorkflowStage.SYNTHESIZING)
        synthesis_input = SynthesisInput.build(state["query"], state["plan"], state["results"])
        answer = await synthesize(synthesis_input, llm=synthesis_llm)
        return {"answer": answer}

    graph = StateGraph(WorkflowState)

    graph.add_node("plan_query", _plan_query)
    graph.add_node("validate_plan", _validate_plan)
    graph.add_node("execute_tools", _execute_tools)
    graph.add_node("synthesize_answer", _synthesize_answer)

    graph.set_entry_point("plan_query")
    graph.add_edge("plan_query", "validate_plan")
    graph.add_edge("validate_plan", "execute_tools")
    graph.add_edge("execute_tools", "synthesize_answer")
    graph.add_edge("synthesize_answer", END)

    return graph.compile()


def _fail(run: WorkflowRun, kind: str, message: str) -> None:
    if not run.finished:
        run.advance(WorkflowStage.ERROR, kind=kind, message=message)


async def _await_unless_cancelled(task: asyncio.Task, cancel_event: Optional[asyncio.Event]) -> Any:
    """Await `task`; if `cancel_event` fires first, cancel the task and report it."""
    if cancel_event is None:
        return await task
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
    if task in done:
        return task.result()
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    return None


async def run_workflow(
    query: str,
    *,
    today: Optional[str] = None,
    cancel_event: Optional[asyncio.Event] = None,
    on_event: Optional[EventCallback] = None,
    planner_llm: Optional[PlannerLLM] = None,
    synthesis_llm: Optional[SynthesisLLM] = None,
    registry: Optional[Mapping[ToolName, ToolExecutor]] = None,
    max_concurrency: Optional[int] = None,
) -> WorkflowResult:
    """
    Answer one query: plan, execute tools, synthesize.

    Raises:
        ValueError: empty query.
        PlanGenerationError: planning or plan validation failed.
        SynthesisError: the synthesis model call failed.
        WorkflowCancelled: `cancel_event` was set before the run completed.
    """
    if not query or not str(query).strip():
        raise ValueError("query is required")
    q = str(query).strip()
    run = WorkflowRun(on_event)
    graph = build_graph(
        run,
        registry if registry is not None else TOOL_REGISTRY,
        planner_llm=planner_llm,
        synthesis_llm=synthesis_llm,
        max_concurrency=max_concurrency,
    )
    initial: WorkflowState = {"query": q, "today": today or today_reference()}
    logger.info("[run_workflow] START query=%r today=%s", q, initial["today"])
    run.advance(WorkflowStage.PLANNING, query=q)
    task = asyncio.ensure_future(graph.ainvoke(initial))
    try:
        final = await _await_unless_cancelled(task, cancel_event)
    except WorkflowError as e:
        logger.warning("[run_workflow] FAILED kind=%s stage=%s: %s", e.kind, e.stage_name, e.message)
        _fail(run, e.kind, e.message)
        raise
    except asyncio.CancelledError:
        task.cancel()
        _fail(run, WorkflowCancelled.kind, "run cancelled by caller")
        raise
    if final is None:
        stage = run.stage
        logger.info("[run_workflow] CANCELLED stage=%s", stage.value)
        _fail(run, WorkflowCancelled.kind, f"cancelled during {stage.value}")
        raise WorkflowCancelled(f"Workflow cancelled during {stage.value}", stage=stage)

    aggregator: ResultAggregator = final["results"]
    result = WorkflowResult(plan=final["plan"], tool_results=aggregator.results, answer=final["answer"])
    run.advance(WorkflowStage.COMPLETE, answer_len=len(result.answer))
    logger.info("[run_workflow] END results=%d answer_len=%d", len(result.tool_results), len(result.answer))
    return result


async def run_workflow_stream(query: str, **kwargs: Any) -> AsyncIterator[dict[str, Any]]:
    """
    Run the workflow and yield events as dicts: stage, plan, tool_started, tool_finished,
    then {"event": "done", plan, tool_results, answer} or {"event": "error", kind, stage, message}.
    """
    queue: asyncio.Queue[WorkflowEvent] = asyncio.Queue()
    task = asyncio.ensure_future(run_workflow(query, on_event=queue.put_nowait, **kwargs))
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                yield getter.result().to_dict()
                continue
            getter.cancel()
            break
        while not queue.empty():
            yield queue.get_nowait().to_dict()
        try:
            result = task.result()
        except WorkflowError as e:
            yield {"event": "error", "kind": e.kind, "stage": e.stage_name, "message": e.message}
            return
        except ValueError as e:
            yield {"event": "error", "kind": "invalid_query", "stage": WorkflowStage.IDLE.value, "message": str(e)}
            return
        yield {"event": "done", **result.to_dict()}
    finally:
        if not task.done():
            task.cancel()
