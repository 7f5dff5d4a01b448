"""Tool registry and dispatcher."""

import logging
from typing import Any, Iterable, Iterator

from agent_harness.tool_guard import ToolGuard
from agent_harness.tools import build_tools
from agent_harness.tools.base import Tool, ToolDeclaration
from agent_harness.utils import DEFAULT_MAX_OUTPUT_CHARS, INVALID_JSON_KEY, truncate_output

_log = logging.getLogger(__name__)


class ToolRegistry:
    """Name-indexed collection of tools, built once and read during a run."""

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        name = tool.declaration.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def declarations(self) -> list[ToolDeclaration]:
        return [tool.declaration for tool in self._tools.values()]

    def openai_tools(self) -> list[dict[str, Any]]:
        """Declarations in the function-tool format sent to the model."""
        return [d.to_openai() for d in self.declarations()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())


class Dispatcher:
    """Routes a requested tool name and raw input to a tool; always returns text."""

    def __init__(
        self,
        registry: ToolRegistry,
        guard: ToolGuard | None = None,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
    ) -> None:
        self.registry = registry
        self.guard = guard
        self.max_output_chars = max_output_chars

    def dispatch(self, name: str, arguments: Any) -> str:
        tool = self.registry.get(name)
        if tool is None:
            _log.warning("Model requested unknown tool %r", name)
            return f"Unknown tool: {name}"

        if isinstance(arguments, dict) and INVALID_JSON_KEY in arguments:
            return f"Error: Invalid input for {name}: arguments are not valid JSON"

        if self.guard is not None:
            problem = self.guard.check(tool.declaration, arguments)
            if problem:
                _log.info("Rejected input for %s: %s", name, problem)
                return f"Error: Invalid input for {name}: {problem}"
        elif not isinstance(arguments, dict):
            return f"Error: Invalid input for {name}: arguments must be a JSON object"

        try:
            output = tool.execute(arguments)
        except Exception as exc:
            _log.exception("Tool %s broke the always-return-text contract", name)
            return f"Unexpected error executing {name}: {exc}"

        if not isinstance(output, str):
            output = str(output)
        return truncate_output(output, self.max_output_chars)


def build_registry(workspace_root: str, config: Any, extra_tools: Iterable[Tool] = ()) -> ToolRegistry:
    """Registry of the built-in tools plus any bridged ones.

    A bridged tool whose name collides with an existing one is skipped with
    a warning rather than aborting startup.
    """
    registry = ToolRegistry(build_tools(
        workspace_root,
        command_timeout=config.command_timeout,
        search_timeout=config.search_timeout,
    ))
    for tool in extra_tools:
        try:
            registry.register(tool)
        except ValueError as exc:
            _log.warning("Skipping external tool: %s", exc)
    return registry
