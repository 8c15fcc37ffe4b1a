"""
Tests for the interactive shell's line handling.
"""

import asyncio
from unittest.mock import AsyncMock, patch

from conftest import make_plan
from orin.agent.graph import WorkflowResult
from orin.cli import process_query
from orin.core.errors import PlanGenerationError


def test_exit_commands_stop_the_loop() -> None:
    for word in ("exit", "QUIT", " bye ", "q"):
        assert asyncio.run(process_query(word)) is False


def test_blank_line_prints_hint(capsys) -> None:
    assert asyncio.run(process_query("   ")) is True
    assert "Please enter a query" in capsys.readouterr().out


def test_answer_is_printed(capsys) -> None:
    result = WorkflowResult(plan=make_plan([], {}), tool_results=(), answer="Forty-two.")
    with patch("orin.cli.run_workflow", AsyncMock(return_value=result)):
        assert asyncio.run(process_query("meaning of life")) is True
    assert "Forty-two." in capsys.readouterr().out


def test_fatal_error_is_reported_and_loop_continues(capsys) -> None:
    with patch("orin.cli.run_workflow", AsyncMock(side_effect=PlanGenerationError("no plan"))):
        assert asyncio.run(process_query("anything")) is True
    out = capsys.readouterr().out
    assert "plan_generation" in out and "no plan" in out
