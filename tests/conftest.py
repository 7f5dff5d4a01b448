"""Shared pytest fixtures and helpers for agent_harness tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from agent_harness.conversation import ToolInvocation
from agent_harness.llm import FINAL_ANSWER, TOOL_USE, ModelResponse
from agent_harness.tool_guard import ToolGuard
from agent_harness.tool_result import ToolResult


@pytest.fixture
def workspace(tmp_path):
    """A temporary directory that acts as the workspace root."""
    return tmp_path


@pytest.fixture
def guard(workspace):
    return ToolGuard(workspace_root=str(workspace))


# ── Plain helper functions ─────────────────────────────────────────────────
# Each test file imports these directly:
#   from conftest import assert_ok, assert_fail, make_file

def make_file(workspace: Path, relative_path: str, content: str = "hello\n") -> Path:
    p = workspace / relative_path
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


def assert_ok(result: ToolResult) -> None:
    assert result.ok, f"Expected ok=True but got error: {result.error_code} - {result.message}"


def assert_fail(result: ToolResult, error_code: str | None = None) -> None:
    assert not result.ok, f"Expected ok=False but result succeeded: {result.message}"
    if error_code:
        assert result.error_code == error_code, (
            f"Expected error_code={error_code!r}, got {result.error_code!r}"
        )


def assert_error_text(text: str) -> None:
    assert isinstance(text, str)
    assert text.startswith("Error:"), f"Expected an 'Error:' text, got: {text[:200]!r}"


# ── Scripted inference client ───────────────────────────────────────────────

def final(text: str = "done") -> ModelResponse:
    return ModelResponse(stop=FINAL_ANSWER, text=text, raw_stop_reason="stop")


def tool_use(*calls: tuple, text: str = "") -> ModelResponse:
    """Build a tool_use response from (id, name, arguments) tuples."""
    return ModelResponse(
        stop=TOOL_USE,
        text=text,
        tool_calls=[ToolInvocation(id=i, name=n, arguments=a) for i, n, a in calls],
        raw_stop_reason="tool_calls",
    )


class ScriptedLLM:
    """Replays a fixed list of responses and records every request."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests: list[list[dict]] = []
        self.tools_seen: list = []

    def complete(self, messages, tools=None):
        self.requests.append([dict(m) for m in messages])
        self.tools_seen.append(tools)
        if not self.responses:
            raise AssertionError("ScriptedLLM ran out of responses")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RepeatingLLM:
    """Always asks for the same tool call; used to exercise the iteration cap."""

    def __init__(self, name: str = "list_files", arguments: dict | None = None):
        self.name = name
        self.arguments = arguments if arguments is not None else {"path": "."}
        self.calls = 0

    def complete(self, messages, tools=None):
        self.calls += 1
        return tool_use((f"call_{self.calls}", self.name, dict(self.arguments)))
