from __future__ import annotations

from typing import Any, Dict, List

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

DECLARATION = ToolDeclaration(
    name="list_files",
    description=(
        "List files and directories at a given path. "
        "If no path is provided, lists files in the current directory."
    ),
    parameters={
        "path": {
            "type": "string",
            "description": "The directory path to list (defaults to current directory).",
        },
    },
)


class ListFilesTool(WorkspaceTool):
    declaration = DECLARATION

    def run(self, args: Dict[str, Any]) -> ToolResult:
        raw_path = args.get("path") or "."
        root = self._resolve(raw_path)

        if not root.exists():
            return ToolResult.failure("DIR_NOT_FOUND", f"Directory not found: {raw_path}")
        if not root.is_dir():
            return ToolResult.failure("NOT_A_DIR", f"Path is not a directory: {raw_path}")

        try:
            entries = sorted(root.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
        except OSError as exc:
            return ToolResult.failure("LIST_ERROR", f"Could not list {raw_path}: {exc}")

        lines: List[str] = [
            f"[dir] {entry.name}/" if entry.is_dir() else f"[file] {entry.name}"
            for entry in entries
        ]
        return ToolResult.success(
            data={"path": str(root), "output": "\n".join(lines) or "(empty directory)", "count": len(lines)},
        )
