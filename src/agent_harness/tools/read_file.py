from __future__ import annotations

import logging
from typing import Any, Dict

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

_log = logging.getLogger(__name__)

DECLARATION = ToolDeclaration(
    name="read_file",
    description=(
        "Read the contents of a given relative file path. "
        "Use this when you want to see what's inside a file. "
        "Do not use this with directory names."
    ),
    parameters={
        "path": {"type": "string", "description": "The relative path to the file to read."},
    },
    required=("path",),
)


class ReadFileTool(WorkspaceTool):
    declaration = DECLARATION

    def run(self, args: Dict[str, Any]) -> ToolResult:
        path = self._resolve(args["path"])

        if not path.exists():
            return ToolResult.failure("FILE_NOT_FOUND", f"File not found: {args['path']}")
        if path.is_dir():
            return ToolResult.failure(
                "IS_A_DIRECTORY",
                f"{args['path']} is a directory; use list_files to see its entries",
            )

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            return ToolResult.failure("BINARY_FILE", f"{args['path']} is a binary file and cannot be read as text")
        except OSError as exc:
            return ToolResult.failure("READ_ERROR", f"Could not read file {args['path']}: {exc}")

        _log.debug("Read %s (%d chars)", path, len(content))
        return ToolResult.success(data={"path": str(path), "content": content})
