from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

_log = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 50
MAX_PER_FILE = 5

SKIP_DIRS = {".git", "node_modules", "dist", "build", "__pycache__", ".venv"}

# ripgrep type names mapped to extensions for the pure-Python backend
_TYPE_EXTENSIONS = {
    "py": (".py", ".pyi"),
    "js": (".js", ".jsx", ".mjs", ".cjs"),
    "ts": (".ts", ".tsx", ".cts", ".mts"),
    "rust": (".rs",),
    "rs": (".rs",),
    "go": (".go",),
    "java": (".java",),
    "c": (".c", ".h"),
    "cpp": (".cpp", ".cc", ".cxx", ".hpp", ".hh", ".h"),
    "md": (".md", ".markdown"),
    "json": (".json",),
    "yaml": (".yaml", ".yml"),
    "sh": (".sh", ".bash"),
}

DECLARATION = ToolDeclaration(
    name="code_search",
    description=(
        "Search for code patterns using ripgrep (rg), with a built-in fallback when rg is missing.\n\n"
        "Useful for finding function definitions and usages, variable references, "
        "import statements, TODO/FIXME comments, and patterns to refactor.\n\n"
        "Examples:\n"
        '- "def main" - find main functions\n'
        '- "import.*litellm" - find litellm imports\n'
        '- "TODO|FIXME" - find all TODOs and FIXMEs\n'
        '- "\\bclient\\b" - find the exact word "client"\n\n'
        "Results are grouped by file with line numbers; at most 5 lines are shown per file "
        "and the total is capped by max_results."
    ),
    parameters={
        "pattern": {"type": "string", "description": "The search pattern (literal text or regex)."},
        "path": {"type": "string", "description": "Directory or file to search (default: current directory)."},
        "file_type": {"type": "string", "description": "File type: ts, js, py, rs, etc."},
        "case_sensitive": {"type": "boolean", "description": "Case-sensitive search (default: false)."},
        "max_results": {"type": "integer", "description": "Maximum matches to return (default: 50)."},
    },
    required=("pattern",),
)


@dataclass
class SearchMatch:
    file: str
    line: int
    content: str


def format_search_results(pattern: str, matches: List[SearchMatch]) -> str:
    """Group matches by file, showing at most MAX_PER_FILE lines per file."""
    if not matches:
        return f"No matches found for pattern: {pattern}"

    by_file: Dict[str, List[SearchMatch]] = {}
    for match in matches:
        by_file.setdefault(match.file, []).append(match)

    lines = [f"Found {len(matches)} matches in {len(by_file)} files:", ""]
    for file, file_matches in by_file.items():
        lines.append(f"{file} ({len(file_matches)} matches):")
        for match in file_matches[:MAX_PER_FILE]:
            lines.append(f"  Line {match.line}: {match.content}")
        if len(file_matches) > MAX_PER_FILE:
            lines.append(f"  ... and {len(file_matches) - MAX_PER_FILE} more matches")
        lines.append("")
    return "\n".join(lines).rstrip()


class CodeSearchTool(WorkspaceTool):
    declaration = DECLARATION

    def __init__(self, workspace_root: str, timeout: int = 10) -> None:
        super().__init__(workspace_root)
        self._timeout = timeout
        self._rg_available = shutil.which("rg") is not None

    def run(self, args: Dict[str, Any]) -> ToolResult:
        pattern: str = args["pattern"]
        case_sensitive = bool(args.get("case_sensitive", False))
        file_type: Optional[str] = args.get("file_type") or None
        max_results = int(args.get("max_results") or DEFAULT_MAX_RESULTS)
        if max_results < 1:
            return ToolResult.failure("INVALID_ARGS", "max_results must be at least 1")

        raw_path = args.get("path") or "."
        search_path = self._resolve(raw_path)
        if not search_path.exists():
            return ToolResult.failure("PATH_NOT_FOUND", f"Search path does not exist: {raw_path}")

        _log.debug("Searching for %r in %s", pattern, search_path)
        if self._rg_available:
            return self._run_rg(pattern, search_path, case_sensitive, file_type, max_results)
        return self._run_python(pattern, search_path, case_sensitive, file_type, max_results)

    # ------------------------------------------------------------------ rg

    def _run_rg(
        self,
        pattern: str,
        search_path: Path,
        case_sensitive: bool,
        file_type: Optional[str],
        max_results: int,
    ) -> ToolResult:
        cmd = ["rg", "--json", f"--max-count={max_results}"]
        if not case_sensitive:
            cmd.append("--ignore-case")
        if file_type:
            cmd += ["--type", file_type]
        cmd += ["--", pattern, str(search_path)]

        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired:
            return ToolResult.failure(
                "TIMEOUT",
                f"Search timed out after {self._timeout} seconds. Please refine your pattern.",
            )
        except OSError as exc:
            return ToolResult.failure("RG_ERROR", f"Error searching: {exc}")

        # rg exits 1 when nothing matched; that is a result, not a fault
        if proc.returncode == 1:
            return self._result(pattern, [], truncated=False)

        matches: List[SearchMatch] = []
        truncated = False
        for line in proc.stdout.splitlines():
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if obj.get("type") != "match":
                continue
            if len(matches) >= max_results:
                truncated = True
                break
            data = obj["data"]
            path_text = data["path"].get("text", "")
            line_text = data["lines"].get("text", "")
            matches.append(SearchMatch(
                file=self._display(Path(path_text).resolve()),
                line=data["line_number"],
                content=line_text.strip(),
            ))

        if proc.returncode == 2 and not matches:
            return ToolResult.failure("RG_ERROR", f"Error searching: {proc.stderr.strip()}")

        warnings = []
        if proc.returncode == 2:
            warnings.append(f"Some files could not be searched: {proc.stderr.strip()[:200]}")
        return self._result(pattern, matches, truncated, warnings)

    # ---------------------------------------------------------- python fallback

    def _run_python(
        self,
        pattern: str,
        search_path: Path,
        case_sensitive: bool,
        file_type: Optional[str],
        max_results: int,
    ) -> ToolResult:
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            regex = re.compile(pattern, flags)
        except re.error as exc:
            return ToolResult.failure("INVALID_REGEX", f"Invalid regex pattern: {exc}")

        extensions = None
        if file_type:
            extensions = _TYPE_EXTENSIONS.get(file_type, (f".{file_type}",))

        deadline = time.monotonic() + self._timeout
        matches: List[SearchMatch] = []
        truncated = False

        for file_path in self._iter_files(search_path):
            if time.monotonic() > deadline:
                return ToolResult.failure(
                    "TIMEOUT",
                    f"Search timed out after {self._timeout} seconds. Please refine your pattern.",
                )
            if extensions and file_path.suffix not in extensions:
                continue
            try:
                lines = file_path.read_text(encoding="utf-8").splitlines()
            except (OSError, UnicodeDecodeError):
                continue
            for i, line in enumerate(lines):
                if regex.search(line):
                    if len(matches) >= max_results:
                        truncated = True
                        break
                    matches.append(SearchMatch(self._display(file_path), i + 1, line.strip()))
            if truncated:
                break

        return self._result(pattern, matches, truncated)

    @staticmethod
    def _iter_files(root: Path) -> Iterator[Path]:
        if root.is_file():
            yield root
            return
        for path in sorted(root.rglob("*")):
            if any(part in SKIP_DIRS for part in path.relative_to(root).parts):
                continue
            if path.is_file():
                yield path

    def _result(
        self,
        pattern: str,
        matches: List[SearchMatch],
        truncated: bool,
        warnings: Optional[List[str]] = None,
    ) -> ToolResult:
        warnings = list(warnings or [])
        if truncated:
            warnings.append(f"Results truncated at {len(matches)} matches.")
        return ToolResult.success(
            data={
                "output": format_search_results(pattern, matches),
                "match_count": len(matches),
                "truncated": truncated,
                "parser_used": "ripgrep" if self._rg_available else "python_re",
            },
            warnings=warnings,
        )
