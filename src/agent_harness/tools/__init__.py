"""
agent_harness.tools
~~~~~~~~~~~~~~~~~~~
All built-in tools in one place. Import from here so callers don't need to
know individual module paths.

Quick registration example::

    from agent_harness.registry import ToolRegistry
    from agent_harness.tools import build_tools

    registry = ToolRegistry(build_tools(workspace_root="/workspace"))
    schemas = [d.to_openai() for d in registry.declarations()]
"""
from __future__ import annotations

from typing import List

from agent_harness.tools.base import Tool, ToolDeclaration, WorkspaceTool
from agent_harness.tools.code_search import CodeSearchTool
from agent_harness.tools.edit_file import EditFileTool
from agent_harness.tools.git_operations import GitOperationsTool
from agent_harness.tools.list_files import ListFilesTool
from agent_harness.tools.read_file import ReadFileTool
from agent_harness.tools.run_command import RunCommandTool
from agent_harness.tools.workspace_manager import WorkspaceManagerTool

__all__ = [
    "Tool", "ToolDeclaration", "WorkspaceTool",
    "ReadFileTool", "ListFilesTool", "RunCommandTool", "EditFileTool",
    "CodeSearchTool", "GitOperationsTool", "WorkspaceManagerTool",
    "build_tools",
]


def build_tools(
    workspace_root: str,
    command_timeout: int = 60,
    search_timeout: int = 10,
) -> List[Tool]:
    """Construct every built-in tool bound to ``workspace_root``."""
    return [
        ReadFileTool(workspace_root),
        ListFilesTool(workspace_root),
        RunCommandTool(workspace_root, timeout=command_timeout),
        EditFileTool(workspace_root),
        CodeSearchTool(workspace_root, timeout=search_timeout),
        GitOperationsTool(workspace_root),
        WorkspaceManagerTool(workspace_root),
    ]
