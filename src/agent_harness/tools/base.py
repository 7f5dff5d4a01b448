"""Base types for the tool system."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from agent_harness.tool_result import ToolResult

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDeclaration:
    """Model-facing description of a tool: name, description, parameter schema."""

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    required: Tuple[str, ...] = ()

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": self.parameters,
            "required": list(self.required),
        }

    def to_openai(self) -> Dict[str, Any]:
        """Render as an OpenAI-format function tool (the shape litellm expects)."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema(),
            },
        }


class Tool:
    """A named capability: a declaration plus an execution function.

    Subclasses set ``declaration`` and implement :meth:`run`. Callers use
    :meth:`execute`, which always returns text and never raises.
    """

    declaration: ToolDeclaration

    @property
    def name(self) -> str:
        return self.declaration.name

    def run(self, args: Dict[str, Any]) -> ToolResult:
        raise NotImplementedError

    def execute(self, args: Dict[str, Any]) -> str:
        try:
            result = self.run(args)
        except Exception as exc:
            _log.exception("Tool %s failed unexpectedly", self.name)
            result = ToolResult.failure(
                "UNEXPECTED",
                f"unexpected failure in {self.name}: {type(exc).__name__}: {exc}",
            )
        return result.to_text()


class WorkspaceTool(Tool):
    """Tool that resolves relative paths against a workspace root."""

    def __init__(self, workspace_root: str) -> None:
        self._workspace_root = Path(workspace_root).resolve()

    def _resolve(self, raw_path: Optional[str]) -> Path:
        if not raw_path:
            return self._workspace_root
        path = Path(raw_path).expanduser()
        if not path.is_absolute():
            path = self._workspace_root / path
        return path.resolve()

    def _display(self, path: Path) -> str:
        try:
            return str(path.relative_to(self._workspace_root)) or "."
        except ValueError:
            return str(path)
