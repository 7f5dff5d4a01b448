from __future__ import annotations

import logging
from typing import Any, Dict

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

_log = logging.getLogger(__name__)

DECLARATION = ToolDeclaration(
    name="edit_file",
    description=(
        "Edit a file by replacing old_str with new_str. "
        "If old_str is empty, creates a new file with new_str as content; "
        "this fails if the file already exists. "
        "Otherwise old_str must appear in the file and its first occurrence is replaced."
    ),
    parameters={
        "path": {"type": "string", "description": "The path to the file to edit."},
        "old_str": {"type": "string", "description": "The string to replace (empty for new file)."},
        "new_str": {"type": "string", "description": "The new content to insert."},
    },
    required=("path", "old_str", "new_str"),
)


class EditFileTool(WorkspaceTool):
    declaration = DECLARATION

    def run(self, args: Dict[str, Any]) -> ToolResult:
        raw_path: str = args["path"]
        old_str: str = args["old_str"]
        new_str: str = args["new_str"]
        path = self._resolve(raw_path)

        if old_str == "":
            return self._create(raw_path, path, new_str)

        if not path.exists():
            return ToolResult.failure("FILE_NOT_FOUND", f"File not found: {raw_path}")
        if not path.is_file():
            return ToolResult.failure("NOT_A_FILE", f"Path is not a file: {raw_path}")

        try:
            original = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return ToolResult.failure("READ_ERROR", f"Could not read file {raw_path}: {exc}")

        if old_str not in original:
            return ToolResult.failure(
                "MATCH_NOT_FOUND",
                f"old_str was not found in {raw_path}. Use read_file to inspect current content.",
            )

        updated = original.replace(old_str, new_str, 1)
        try:
            path.write_text(updated, encoding="utf-8")
        except OSError as exc:
            return ToolResult.failure("WRITE_ERROR", f"Could not write file {raw_path}: {exc}")

        _log.debug("Edited %s", path)
        return ToolResult.success(
            data={"path": str(path), "occurrences": original.count(old_str)},
            message=f"Successfully edited file {raw_path}",
        )

    def _create(self, raw_path: str, path, content: str) -> ToolResult:
        if path.exists():
            return ToolResult.failure(
                "FILE_EXISTS",
                f"File already exists: {raw_path}. "
                "Pass a non-empty old_str to edit it instead of creating it.",
            )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            return ToolResult.failure("WRITE_ERROR", f"Could not create file {raw_path}: {exc}")

        _log.debug("Created %s (%d bytes)", path, len(content.encode("utf-8")))
        return ToolResult.success(
            data={"path": str(path), "bytes_written": len(content.encode("utf-8"))},
            message=f"Successfully created file {raw_path}",
        )
