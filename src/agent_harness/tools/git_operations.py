from __future__ import annotations

import logging
import subprocess
from typing import Any, Callable, Dict, List

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool

_log = logging.getLogger(__name__)

OPERATIONS = ("status", "add", "commit", "push", "pull", "log", "diff", "branch", "checkout", "init")

DECLARATION = ToolDeclaration(
    name="git_operations",
    description=(
        "Perform common Git operations in the workspace.\n\n"
        "OPERATIONS:\n"
        "- status: Show working tree status\n"
        '- add: Stage files for commit (pass files array, or ["."] for all)\n'
        "- commit: Create a commit (requires message)\n"
        "- push: Push commits to remote\n"
        "- pull: Pull changes from remote\n"
        "- log: Show commit history (optional limit, default 10)\n"
        "- diff: Show unstaged changes\n"
        "- branch: List branches, or create one when branch is given\n"
        "- checkout: Switch branches (requires branch)\n"
        "- init: Initialize a new Git repository\n\n"
        "Requires git to be installed. All operations except init assume an existing repository."
    ),
    parameters={
        "operation": {
            "type": "string",
            "enum": list(OPERATIONS),
            "description": "Git operation to perform.",
        },
        "files": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Files to operate on (for add).",
        },
        "message": {"type": "string", "description": "Commit message (required for commit)."},
        "branch": {"type": "string", "description": "Branch name (for branch, checkout)."},
        "limit": {"type": "integer", "description": "Number of commits to show (for log)."},
    },
    required=("operation",),
)


class GitOperationsTool(WorkspaceTool):
    declaration = DECLARATION

    def __init__(self, workspace_root: str, timeout: int = 30) -> None:
        super().__init__(workspace_root)
        self._timeout = timeout
        self._handlers: Dict[str, Callable[[Dict[str, Any]], ToolResult]] = {
            "status": self._status,
            "add": self._add,
            "commit": self._commit,
            "push": self._push,
            "pull": self._pull,
            "log": self._history,
            "diff": self._diff,
            "branch": self._branch,
            "checkout": self._checkout,
            "init": self._init,
        }

    def run(self, args: Dict[str, Any]) -> ToolResult:
        operation = args["operation"]
        handler = self._handlers.get(operation)
        if handler is None:
            return ToolResult.failure(
                "UNKNOWN_OPERATION",
                f"Unknown operation: {operation}. Available: {', '.join(OPERATIONS)}",
            )
        try:
            return handler(args)
        except subprocess.TimeoutExpired:
            return ToolResult.failure("TIMEOUT", f"git {operation} timed out after {self._timeout} seconds")
        except FileNotFoundError:
            return ToolResult.failure("GIT_NOT_FOUND", "git is not installed or not on PATH")

    def _git(self, git_args: List[str]) -> subprocess.CompletedProcess:
        _log.debug("git %s", " ".join(git_args))
        return subprocess.run(
            ["git"] + git_args,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            cwd=str(self._workspace_root),
            timeout=self._timeout,
        )

    def _checked(self, operation: str, git_args: List[str]) -> "subprocess.CompletedProcess | ToolResult":
        proc = self._git(git_args)
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout).strip()
            return ToolResult.failure("GIT_FAILED", f"git {operation} failed: {detail}")
        return proc

    # ------------------------------------------------------------------ ops

    def _status(self, args: Dict[str, Any]) -> ToolResult:
        proc = self._checked("status", ["status", "--short"])
        if isinstance(proc, ToolResult):
            return proc
        if not proc.stdout.strip():
            return ToolResult.success(message="Working tree clean - no changes to commit")
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Git status:")

    def _add(self, args: Dict[str, Any]) -> ToolResult:
        files: List[str] = args.get("files") or []
        if not files:
            return ToolResult.failure("MISSING_ARGS", "'files' array required for add operation")
        proc = self._checked("add", ["add", "--"] + files)
        if isinstance(proc, ToolResult):
            return proc
        return ToolResult.success(message=f"Staged files: {', '.join(files)}")

    def _commit(self, args: Dict[str, Any]) -> ToolResult:
        message = args.get("message")
        if not message:
            return ToolResult.failure("MISSING_ARGS", "'message' required for commit operation")
        proc = self._checked("commit", ["commit", "-m", message])
        if isinstance(proc, ToolResult):
            return proc
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Commit created:")

    def _push(self, args: Dict[str, Any]) -> ToolResult:
        proc = self._checked("push", ["push"])
        if isinstance(proc, ToolResult):
            return proc
        # git push reports progress on stderr
        return ToolResult.success(
            data={"output": (proc.stdout or proc.stderr).rstrip()},
            message="Push completed:",
        )

    def _pull(self, args: Dict[str, Any]) -> ToolResult:
        proc = self._checked("pull", ["pull"])
        if isinstance(proc, ToolResult):
            return proc
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Pull completed:")

    def _history(self, args: Dict[str, Any]) -> ToolResult:
        limit = int(args.get("limit") or 10)
        proc = self._git(["log", "--oneline", "--decorate", "-n", str(limit)])
        if proc.returncode != 0:
            # a repository without commits makes git log fail
            if "does not have any commits" in proc.stderr:
                return ToolResult.success(message="No commits yet")
            return ToolResult.failure("GIT_FAILED", f"git log failed: {proc.stderr.strip()}")
        if not proc.stdout.strip():
            return ToolResult.success(message="No commits yet")
        return ToolResult.success(
            data={"output": proc.stdout.rstrip()},
            message=f"Recent commits (last {limit}):",
        )

    def _diff(self, args: Dict[str, Any]) -> ToolResult:
        proc = self._checked("diff", ["diff"])
        if isinstance(proc, ToolResult):
            return proc
        if not proc.stdout.strip():
            return ToolResult.success(message="No changes in working directory")
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Changes:")

    def _branch(self, args: Dict[str, Any]) -> ToolResult:
        branch = args.get("branch")
        if branch:
            proc = self._checked("branch", ["branch", branch])
            if isinstance(proc, ToolResult):
                return proc
            return ToolResult.success(message=f"Created branch: {branch}")
        proc = self._checked("branch", ["branch", "-a"])
        if isinstance(proc, ToolResult):
            return proc
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Branches:")

    def _checkout(self, args: Dict[str, Any]) -> ToolResult:
        branch = args.get("branch")
        if not branch:
            return ToolResult.failure("MISSING_ARGS", "'branch' required for checkout operation")
        proc = self._checked("checkout", ["checkout", branch])
        if isinstance(proc, ToolResult):
            return proc
        # checkout writes "Switched to branch" on stderr
        return ToolResult.success(
            data={"output": (proc.stdout or proc.stderr).rstrip()},
            message=f"Switched to branch: {branch}",
        )

    def _init(self, args: Dict[str, Any]) -> ToolResult:
        proc = self._checked("init", ["init"])
        if isinstance(proc, ToolResult):
            return proc
        return ToolResult.success(data={"output": proc.stdout.rstrip()}, message="Initialized Git repository:")
