"""
Tests for the tool dispatcher: ordering under concurrency, failure isolation, cancellation.
"""

import asyncio

import pytest

from conftest import FakeExecutor, make_plan
from orin.agent.dispatcher import dispatch_plan
from orin.agent.plan import ToolName
from orin.agent.state import WorkflowRun
from orin.agent.tools import ToolOutput


def test_results_follow_plan_order_when_completion_is_reversed(fake_registry) -> None:
    # Earlier invocations sleep longer, so they finish last.
    fake_registry[ToolName.WEB_SEARCH] = FakeExecutor(ToolName.WEB_SEARCH, delays={"s1": 0.05, "s2": 0.03})
    fake_registry[ToolName.FETCH_URL] = FakeExecutor(ToolName.FETCH_URL, delays={"https://u.test": 0.0})
    plan = make_plan(
        [ToolName.WEB_SEARCH, ToolName.FETCH_URL],
        {ToolName.WEB_SEARCH: ["s1", "s2"], ToolName.FETCH_URL: ["https://u.test"]},
    )

    aggregator = asyncio.run(dispatch_plan(plan, fake_registry, max_concurrency=3))

    assert fake_registry[ToolName.WEB_SEARCH].completed == ["s2", "s1"]
    assert [(r.index, r.tool, r.argument) for r in aggregator.results] == [
        (0, "webSearch", "s1"),
        (1, "webSearch", "s2"),
        (2, "fetchUrl", "https://u.test"),
    ]
    assert aggregator.sealed


def test_result_count_equals_sum_of_parameters(fake_registry) -> None:
    plan = make_plan(
        [ToolName.WEB_SEARCH, ToolName.FETCH_URL, ToolName.GENERATE_HAIKU],
        {ToolName.WEB_SEARCH: ["a", "b"], ToolName.GENERATE_HAIKU: ["c", "d", "e"]},
    )
    aggregator = asyncio.run(dispatch_plan(plan, fake_registry))
    assert len(aggregator) == 5
    assert fake_registry[ToolName.FETCH_URL].calls == []


def test_one_failure_does_not_abort_siblings(fake_registry) -> None:
    fake_registry[ToolName.WEB_SEARCH] = FakeExecutor(ToolName.WEB_SEARCH, failures=("bad query",))
    plan = make_plan([ToolName.WEB_SEARCH], {ToolName.WEB_SEARCH: ["bad query", "good query"]})

    aggregator = asyncio.run(dispatch_plan(plan, fake_registry))

    first, second = aggregator.results
    assert not first.ok and first.error == "bad query failed" and first.payload is None
    assert second.ok and second.payload == {"echo": "good query"}


def test_empty_plan_yields_sealed_empty_aggregator(fake_registry) -> None:
    aggregator = asyncio.run(dispatch_plan(make_plan([], {}), fake_registry))
    assert len(aggregator) == 0
    assert aggregator.sealed


def test_concurrency_cap_is_respected(fake_registry) -> None:
    args = [f"q{i}" for i in range(6)]
    executor = FakeExecutor(ToolName.WEB_SEARCH, delays={a: 0.01 for a in args})
    fake_registry[ToolName.WEB_SEARCH] = executor
    plan = make_plan([ToolName.WEB_SEARCH], {ToolName.WEB_SEARCH: args})

    asyncio.run(dispatch_plan(plan, fake_registry, max_concurrency=2))

    assert executor.max_in_flight == 2
    assert sorted(executor.completed) == sorted(args)


def test_sequential_dispatch_with_cap_of_one(fake_registry) -> None:
    executor = FakeExecutor(ToolName.WEB_SEARCH, delays={"a": 0.02, "b": 0.0})
    fake_registry[ToolName.WEB_SEARCH] = executor
    plan = make_plan([ToolName.WEB_SEARCH], {ToolName.WEB_SEARCH: ["a", "b"]})

    aggregator = asyncio.run(dispatch_plan(plan, fake_registry, max_concurrency=1))

    assert executor.completed == ["a", "b"]
    assert [r.argument for r in aggregator.results] == ["a", "b"]


def test_events_are_emitted_per_invocation(fake_registry) -> None:
    events = []
    run = WorkflowRun(events.append)
    plan = make_plan([ToolName.GENERATE_HAIKU], {ToolName.GENERATE_HAIKU: ["x", "y"]})

    asyncio.run(dispatch_plan(plan, fake_registry, run=run))

    kinds = [e.kind for e in events]
    assert kinds.count("tool_started") == 2
    assert kinds.count("tool_finished") == 2


def test_cancellation_stops_new_invocations(fake_registry) -> None:
    args = ["slow1", "slow2", "never1", "never2"]
    executor = FakeExecutor(ToolName.WEB_SEARCH, delays={a: 10 for a in args})
    fake_registry[ToolName.WEB_SEARCH] = executor
    plan = make_plan([ToolName.WEB_SEARCH], {ToolName.WEB_SEARCH: args})

    async def scenario() -> None:
        task = asyncio.ensure_future(dispatch_plan(plan, fake_registry, max_concurrency=2))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert executor.calls == ["slow1", "slow2"]
    assert executor.completed == []
    assert executor.in_flight == 0


class _BrokenExecutor:
    """Executor that misbehaves without raising ToolExecutionError."""

    def __init__(self, name: ToolName, mode: str) -> None:
        self.name = name
        self.description = "broken"
        self.parameter = "argument (string)"
        self.mode = mode

    async def execute(self, argument: str) -> ToolOutput:
        if self.mode == "raise":
            raise AttributeError("'int' object has no attribute 'strip'")
        return ToolOutput(None)


@pytest.mark.parametrize("mode, fragment", [("raise", "AttributeError"), ("empty", "ValueError")])
def test_unexpected_executor_failure_becomes_error_result(fake_registry, mode, fragment) -> None:
    fake_registry[ToolName.WEB_SEARCH] = _BrokenExecutor(ToolName.WEB_SEARCH, mode)
    plan = make_plan(
        [ToolName.WEB_SEARCH, ToolName.GENERATE_HAIKU],
        {ToolName.WEB_SEARCH: ["q"], ToolName.GENERATE_HAIKU: ["moon"]},
    )

    aggregator = asyncio.run(dispatch_plan(plan, fake_registry))

    broken, haiku = aggregator.results
    assert not broken.ok and fragment in broken.error
    assert haiku.ok and haiku.payload == {"echo": "moon"}
    assert aggregator.sealed
