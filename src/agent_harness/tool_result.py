from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ERROR_PREFIX = "Error:"


@dataclass
class ToolResult:
    """Standard envelope for all tool responses.

    Tools build one of these internally; the model only ever sees the text
    produced by :meth:`to_text`. Failures always render with the ``Error:``
    prefix so the model and tests can tell them apart from successes.
    """

    ok: bool
    error_code: Optional[str]
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return not self.ok

    @property
    def output(self) -> Optional[str]:
        """Primary payload: data['content'], data['output'], or None."""
        for key in ("content", "output"):
            value = self.data.get(key)
            if value is not None:
                return value
        return None

    def to_text(self) -> str:
        if not self.ok:
            text = f"{ERROR_PREFIX} {self.message}"
            if self.output:
                text += f"\n\n{self.output}"
        else:
            parts = [p for p in (self.message, self.output) if p]
            text = "\n\n".join(parts)
        if self.warnings:
            text += "\n" + "\n".join(f"Warning: {w}" for w in self.warnings)
        return text

    @classmethod
    def success(
        cls,
        data: Optional[Dict[str, Any]] = None,
        message: str = "",
        warnings: Optional[List[str]] = None,
    ) -> "ToolResult":
        return cls(
            ok=True,
            error_code=None,
            message=message,
            data=data or {},
            warnings=warnings or [],
        )

    @classmethod
    def failure(
        cls,
        error_code: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        warnings: Optional[List[str]] = None,
    ) -> "ToolResult":
        return cls(
            ok=False,
            error_code=error_code,
            message=message,
            data=data or {},
            warnings=warnings or [],
        )

