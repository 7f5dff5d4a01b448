"""Tests for ToolDeclaration, Tool.execute and WorkspaceTool path handling."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from agent_harness.tool_result import ToolResult
from agent_harness.tools import build_tools
from agent_harness.tools.base import Tool, ToolDeclaration, WorkspaceTool


class _Boom(Tool):
    declaration = ToolDeclaration(name="boom", description="always raises")

    def run(self, args: Dict[str, Any]) -> ToolResult:
        raise RuntimeError("kaboom")


class _Echo(WorkspaceTool):
    declaration = ToolDeclaration(
        name="echo",
        description="echo a path",
        parameters={"path": {"type": "string", "description": "p"}},
        required=("path",),
    )

    def run(self, args: Dict[str, Any]) -> ToolResult:
        return ToolResult.success(data={"output": self._display(self._resolve(args["path"]))})


class TestDeclaration:
    def test_to_openai_shape(self):
        decl = _Echo.declaration
        schema = decl.to_openai()
        assert schema["type"] == "function"
        fn = schema["function"]
        assert fn["name"] == "echo"
        assert fn["parameters"] == {
            "type": "object",
            "properties": {"path": {"type": "string", "description": "p"}},
            "required": ["path"],
        }

    def test_declaration_is_frozen(self):
        with pytest.raises(Exception):
            _Echo.declaration.name = "other"


class TestExecute:
    def test_exception_becomes_error_text(self):
        text = _Boom().execute({})
        assert text.startswith("Error: unexpected failure in boom")
        assert "kaboom" in text

    def test_missing_required_key_is_error_text(self, workspace):
        text = _Echo(str(workspace)).execute({})
        assert text.startswith("Error:")


class TestWorkspacePaths:
    def test_relative_path_resolves_inside_root(self, workspace):
        assert _Echo(str(workspace)).execute({"path": "a/b.txt"}) == "a/b.txt"

    def test_empty_path_is_root(self, workspace):
        assert _Echo(str(workspace)).execute({"path": ""}) == "."

    def test_absolute_path_outside_root_shown_absolute(self, workspace, tmp_path_factory):
        other = tmp_path_factory.mktemp("elsewhere") / "x.txt"
        assert _Echo(str(workspace)).execute({"path": str(other)}) == str(other.resolve())


def test_build_tools_names(workspace):
    names = [t.name for t in build_tools(str(workspace))]
    assert names == [
        "read_file", "list_files", "bash", "edit_file",
        "code_search", "git_operations", "workspace_manager",
    ]


def test_build_tools_passes_timeouts(workspace):
    tools = {t.name: t for t in build_tools(str(workspace), command_timeout=5, search_timeout=3)}
    assert tools["bash"]._timeout == 5
    assert tools["code_search"]._timeout == 3
