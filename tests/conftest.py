"""
Shared fakes: scripted executors and model calls so tests need no network or API keys.
"""

import asyncio
import json
from typing import Any

import pytest

from orin.agent.plan import Plan, ToolName
from orin.agent.tools import ToolOutput
from orin.core.errors import LLMCallError, ToolExecutionError


class FakeExecutor:
    """Executor whose per-argument delay and failure are scripted by the test."""

    def __init__(self, name: ToolName, delays: dict[str, float] | None = None, failures: tuple[str, ...] = ()) -> None:
        self.name = name
        self.description = f"fake {name.value}"
        self.parameter = "argument (string)"
        self.delays = delays or {}
        self.failures = set(failures)
        self.calls: list[str] = []
        self.completed: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def execute(self, argument: str) -> ToolOutput:
        self.calls.append(argument)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(argument, 0))
            if argument in self.failures:
                raise ToolExecutionError(self.name.value, argument, f"{argument} failed")
            self.completed.append(argument)
            return ToolOutput({"echo": argument})
        finally:
            self.in_flight -= 1


def make_plan(
    tools: list[ToolName],
    parameters: dict[ToolName, list[str]],
    reasoning: str = "Use the tools in order.",
    expected_workflow: str = "Combine the results.",
) -> Plan:
    return Plan(reasoning=reasoning, tools=tools, parameters=parameters, expected_workflow=expected_workflow)


def plan_json(tools: list[str], parameters: dict[str, Any], **extra: Any) -> str:
    body = {
        "reasoning": "Use the tools in order.",
        "tools": tools,
        "parameters": parameters,
        "expectedWorkflow": "Combine the results.",
    }
    body.update(extra)
    return json.dumps(body)


class ScriptedLLM:
    """Async model call returning a fixed reply (or raising) and recording prompts."""

    def __init__(self, reply: str = "", error: Exception | None = None, delay: float = 0) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_registry() -> dict[ToolName, FakeExecutor]:
    return {tool: FakeExecutor(tool) for tool in ToolName}


@pytest.fixture
def failing_llm() -> ScriptedLLM:
    return ScriptedLLM(error=LLMCallError("provider unreachable"))
