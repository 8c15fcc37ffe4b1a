"""
ToolResult, the append-only ResultAggregator, and the read-only SynthesisInput.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

from orin.core.errors import AggregatorSealedError


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one invocation: exactly one of payload / error is set."""

    index: int
    tool: str
    argument: str
    payload: Optional[Any] = None
    error: Optional[str] = None
    degraded: bool = False

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.error is None):
            raise ValueError("ToolResult needs exactly one of payload or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "index": self.index,
            "tool": self.tool,
            "argument": self.argument,
            "status": "success" if self.ok else "error",
            "degraded": self.degraded,
        }
        if self.ok:
            entry["result"] = self.payload
        else:
            entry["error"] = self.error
        return entry


class ResultAggregator:
    """Ordered, append-only ToolResult sequence; read-only once sealed."""

    def __init__(self) -> None:
        self._results: list[ToolResult] = []
        self._sealed = False

    def append(self, result: ToolResult) -> None:
        if self._sealed:
            raise AggregatorSealedError("Cannot append to a sealed ResultAggregator")
        self._results.append(result)

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def results(self) -> tuple[ToolResult, ...]:
        return tuple(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self):
        return iter(tuple(self._results))

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._results]

    def serialize(self) -> str:
        """Stable JSON rendering for the synthesis prompt, one entry per invocation in order."""
        return json.dumps(self.to_list(), indent=2, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class SynthesisInput:
    """Everything the synthesizer sees. Built once, from a sealed aggregator."""

    query: str
    reasoning: str
    expected_workflow: str
    results: tuple[ToolResult, ...]
    serialized_results: str

    @classmethod
    def build(cls, query: str, plan, aggregator: ResultAggregator) -> "SynthesisInput":
        if not aggregator.sealed:
            raise RuntimeError("SynthesisInput requires a sealed ResultAggregator")
        return cls(
            query=query,
            reasoning=plan.reasoning,
            expected_workflow=plan.expected_workflow,
            results=aggregator.results,
            serialized_results=aggregator.serialize(),
        )

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)
