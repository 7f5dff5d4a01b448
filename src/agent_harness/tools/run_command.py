from __future__ import annotations

import logging
import subprocess
from typing import Any, Dict

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

_log = logging.getLogger(__name__)

DECLARATION = ToolDeclaration(
    name="bash",
    description=(
        "Execute a bash command in the workspace and return its output. "
        "Use this to run shell commands. Commands that wait for interactive "
        "input receive no stdin and are stopped by a timeout."
    ),
    parameters={
        "command": {"type": "string", "description": "The bash command to execute."},
        "timeout_sec": {
            "type": "integer",
            "description": "Timeout in seconds. Defaults to the harness setting (60).",
        },
    },
    required=("command",),
)


class RunCommandTool(WorkspaceTool):
    declaration = DECLARATION

    def __init__(self, workspace_root: str, timeout: int = 60) -> None:
        super().__init__(workspace_root)
        self._timeout = timeout

    def run(self, args: Dict[str, Any]) -> ToolResult:
        command: str = args["command"]
        timeout = int(args.get("timeout_sec") or self._timeout)

        if not command.strip():
            return ToolResult.failure("EMPTY_COMMAND", "command must not be empty")

        _log.debug("Executing: %s", command)
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                cwd=str(self._workspace_root),
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return ToolResult.failure(
                "TIMEOUT",
                f"Command timed out after {timeout} seconds: {command}",
            )
        except OSError as exc:
            return ToolResult.failure("EXEC_ERROR", f"Execution failed: {exc}")

        output = proc.stdout or proc.stderr
        if proc.returncode != 0:
            return ToolResult.failure(
                "NON_ZERO_EXIT",
                f"Command exited with code {proc.returncode}: {command}",
                data={"exit_code": proc.returncode, "output": output.strip()},
            )

        return ToolResult.success(
            data={"exit_code": 0, "output": output or "(no output)"},
        )
