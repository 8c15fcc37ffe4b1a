"""
Unit tests for ToolResult, ResultAggregator and SynthesisInput.
"""

import json

import pytest

from conftest import make_plan
from orin.agent.results import ResultAggregator, SynthesisInput, ToolResult
from orin.core.errors import AggregatorSealedError


def _ok(index: int = 0) -> ToolResult:
    return ToolResult(index=index, tool="webSearch", argument="q", payload={"results": []})


class TestToolResult:
    def test_exactly_one_of_payload_or_error(self) -> None:
        with pytest.raises(ValueError):
            ToolResult(index=0, tool="webSearch", argument="q")
        with pytest.raises(ValueError):
            ToolResult(index=0, tool="webSearch", argument="q", payload={}, error="boom")

    def test_to_dict_for_error(self) -> None:
        entry = ToolResult(index=3, tool="fetchUrl", argument="https://x.test", error="Fetch failed").to_dict()
        assert entry == {
            "index": 3,
            "tool": "fetchUrl",
            "argument": "https://x.test",
            "status": "error",
            "degraded": False,
            "error": "Fetch failed",
        }

    def test_result_is_immutable(self) -> None:
        result = _ok()
        with pytest.raises(AttributeError):
            result.error = "changed"  # type: ignore[misc]


class TestResultAggregator:
    def test_append_after_seal_fails(self) -> None:
        aggregator = ResultAggregator()
        aggregator.append(_ok(0))
        aggregator.seal()
        with pytest.raises(AggregatorSealedError):
            aggregator.append(_ok(1))
        assert len(aggregator) == 1

    def test_results_is_a_snapshot(self) -> None:
        aggregator = ResultAggregator()
        aggregator.append(_ok(0))
        assert isinstance(aggregator.results, tuple)

    def test_serialize_is_stable_and_attributable(self) -> None:
        aggregator = ResultAggregator()
        aggregator.append(_ok(0))
        aggregator.append(ToolResult(index=1, tool="generateHaiku", argument="sea", payload={"haiku": "h"}, degraded=True))
        aggregator.seal()
        data = json.loads(aggregator.serialize())
        assert [(e["index"], e["tool"], e["argument"], e["status"]) for e in data] == [
            (0, "webSearch", "q", "success"),
            (1, "generateHaiku", "sea", "success"),
        ]
        assert data[1]["degraded"] is True
        assert aggregator.serialize() == aggregator.serialize()


class TestSynthesisInput:
    def test_requires_sealed_aggregator(self) -> None:
        with pytest.raises(RuntimeError):
            SynthesisInput.build("q", make_plan([], {}), ResultAggregator())

    def test_carries_plan_metadata(self) -> None:
        aggregator = ResultAggregator()
        aggregator.append(ToolResult(index=0, tool="webSearch", argument="q", error="down"))
        aggregator.seal()
        plan = make_plan([], {}, reasoning="why", expected_workflow="how")
        synthesis_input = SynthesisInput.build("question", plan, aggregator)
        assert synthesis_input.reasoning == "why"
        assert synthesis_input.expected_workflow == "how"
        assert synthesis_input.error_count == 1
