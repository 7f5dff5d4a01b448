"""Input checks applied at the dispatch boundary, before a tool runs."""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from agent_harness.tools.base import ToolDeclaration

_log = logging.getLogger(__name__)

_TYPE_MAP = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "array": list,
    "object": dict,
}

_PATH_KEYS = ("path", "name", "destination")


class ToolGuard:
    """Validates raw tool input against a declaration.

    ``check`` returns None when the input is acceptable, otherwise a short
    reason. Paths that leave the workspace are logged but not blocked;
    confinement is advisory.
    """

    def __init__(self, workspace_root: str, deny_tools: Optional[Iterable[str]] = None) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self.deny_tools = set(deny_tools or ())

    def check(self, declaration: ToolDeclaration, args: Any) -> Optional[str]:
        if declaration.name in self.deny_tools:
            return f"tool '{declaration.name}' is disabled by configuration"

        if not isinstance(args, dict):
            return f"arguments must be a JSON object, got {type(args).__name__}"

        error = self._validate(args, declaration)
        if error:
            return error

        self._warn_outside_workspace(declaration.name, args)
        return None

    def _validate(self, args: Dict[str, Any], declaration: ToolDeclaration) -> Optional[str]:
        """Minimal JSON-schema-style validation (required, type, enum, array items)."""
        for field in declaration.required:
            if field not in args or args[field] is None:
                return f"missing required field '{field}'"

        for key, value in args.items():
            spec = declaration.parameters.get(key)
            if spec is None or value is None:
                continue
            error = _check_value(key, value, spec)
            if error:
                return error
        return None

    def _warn_outside_workspace(self, tool_name: str, args: Dict[str, Any]) -> None:
        for key in _PATH_KEYS:
            value = args.get(key)
            if not isinstance(value, str) or not value or "\n" in value:
                continue
            try:
                (self.workspace_root / value).resolve().relative_to(self.workspace_root)
            except ValueError:
                _log.warning("%s: %s=%r resolves outside the workspace", tool_name, key, value)


def _check_value(key: str, value: Any, spec: Dict[str, Any]) -> Optional[str]:
    expected = spec.get("type")
    python_type = _TYPE_MAP.get(expected)
    if python_type is not None:
        # bool is a subclass of int; JSON keeps them apart
        if isinstance(value, bool) and expected in ("integer", "number"):
            return f"field '{key}' expected type '{expected}', got bool"
        if not isinstance(value, python_type):
            return f"field '{key}' expected type '{expected}', got {type(value).__name__}"

    allowed = spec.get("enum")
    if allowed is not None and value not in allowed:
        return f"field '{key}' must be one of {', '.join(map(str, allowed))}; got {value!r}"

    if expected == "array" and isinstance(spec.get("items"), dict):
        for i, item in enumerate(value):
            error = _check_value(f"{key}[{i}]", item, spec["items"])
            if error:
                return error
    return None
