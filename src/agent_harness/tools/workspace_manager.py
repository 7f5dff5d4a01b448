"""workspace_manager: multi-step project operations behind one tool.

Actions are independent of each other. ``init`` is all-or-nothing: if any
step after the project directory is created fails, the directory is removed
before the error is reported.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import shutil
import subprocess
import tomllib
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import ToolDeclaration, WorkspaceTool
from agent_harness.tools.templates import TEMPLATES, render_next_steps, render_template

_log = logging.getLogger(__name__)

ACTIONS = ("init", "scaffold", "clean", "analyze", "backup")

IGNORED_DIRS = {"node_modules", ".git", "dist", "build", "__pycache__", ".venv"}
BACKUP_IGNORE = ["node_modules", ".git", "dist", "build", "__pycache__", ".venv", "*.log", "backups"]
BACKUP_MANIFEST = "BACKUP-INFO.json"

DECLARATION = ToolDeclaration(
    name="workspace_manager",
    description=(
        "Manage workspace and project structures.\n\n"
        "ACTIONS:\n"
        f"- init: Create a new project from a template ({', '.join(TEMPLATES)}); "
        "requires template and name; fails if the directory exists and never leaves a partial project\n"
        "- scaffold: Create a custom directory/file structure from a nested mapping; "
        "keys ending in '/' (or with mapping values) are directories, other keys are files "
        "whose value is the file content; existing files are left untouched\n"
        "- clean: Remove the named files or directories (e.g. ['node_modules', 'dist']); "
        "missing targets are skipped\n"
        "- analyze: Report project type, dependencies, layout conventions and file types\n"
        "- backup: Copy the project into a timestamped folder under destination (default 'backups')\n\n"
        "USE CASES:\n"
        '- "Create a new TypeScript project called my-app"\n'
        '- "Clean all node_modules and build files"\n'
        '- "Analyze this project"\n'
        '- "Backup the project before refactoring"'
    ),
    parameters={
        "action": {
            "type": "string",
            "enum": list(ACTIONS),
            "description": "The workspace operation to perform.",
        },
        "template": {
            "type": "string",
            "enum": list(TEMPLATES),
            "description": "Project template (for init).",
        },
        "name": {"type": "string", "description": "Project name / directory (for init)."},
        "structure": {"type": "object", "description": "Custom structure (for scaffold)."},
        "targets": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Paths to remove (for clean).",
        },
        "destination": {"type": "string", "description": "Backup destination path (default: backups)."},
    },
    required=("action",),
)


class WorkspaceManagerTool(WorkspaceTool):
    declaration = DECLARATION

    def __init__(self, workspace_root: str, git_timeout: int = 30) -> None:
        super().__init__(workspace_root)
        self._git_timeout = git_timeout

    def run(self, args: Dict[str, Any]) -> ToolResult:
        action = args["action"]
        if action == "init":
            if not args.get("template") or not args.get("name"):
                return ToolResult.failure("MISSING_ARGS", "init requires 'template' and 'name'")
            return self.init_project(args["template"], args["name"])
        if action == "scaffold":
            if not isinstance(args.get("structure"), dict):
                return ToolResult.failure("MISSING_ARGS", "scaffold requires 'structure' (an object)")
            return self.scaffold(args["structure"])
        if action == "clean":
            if not isinstance(args.get("targets"), list):
                return ToolResult.failure("MISSING_ARGS", "clean requires 'targets' array")
            return self.clean(args["targets"])
        if action == "analyze":
            return self.analyze()
        if action == "backup":
            return self.backup(args.get("destination") or "backups")
        return ToolResult.failure(
            "UNKNOWN_ACTION", f"Unknown action: {action}. Available: {', '.join(ACTIONS)}"
        )

    # ------------------------------------------------------------------ init

    def init_project(self, template_name: str, name: str) -> ToolResult:
        template = TEMPLATES.get(template_name)
        if template is None:
            return ToolResult.failure(
                "UNKNOWN_TEMPLATE",
                f"Unknown template '{template_name}'. Available: {', '.join(TEMPLATES)}",
            )

        target = self._resolve(name)
        if target.exists():
            return ToolResult.failure("ALREADY_EXISTS", f"Directory '{name}' already exists")

        _log.info("Initializing %s project at %s", template_name, target)
        created: List[str] = []
        try:
            target.mkdir(parents=True)
            for rel_path, content in render_template(template, target.name).items():
                file_path = target / rel_path
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_text(content, encoding="utf-8")
                created.append(rel_path)
        except Exception as exc:
            shutil.rmtree(target, ignore_errors=True)
            return ToolResult.failure(
                "INIT_FAILED",
                f"Error initializing project: {exc}. No files were left behind.",
            )

        git_note = "Git repository initialized" if self._git_init(target) else "Git not initialized (git unavailable)"

        lines = [f"Created {template.title}: {name}", "", "Files created:"]
        lines += [f"  {path}" for path in created]
        lines += ["", git_note, "", "Next steps:"]
        lines += [f"  {step}" for step in render_next_steps(template, name)]
        return ToolResult.success(
            data={"path": str(target), "files": created, "output": "\n".join(lines)},
        )

    def _git_init(self, target: Path) -> bool:
        try:
            proc = subprocess.run(
                ["git", "init"],
                cwd=str(target),
                capture_output=True,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=self._git_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            _log.debug("git init skipped for %s: %s", target, exc)
            return False
        return proc.returncode == 0

    # ------------------------------------------------------------------ scaffold

    def scaffold(self, structure: Dict[str, Any]) -> ToolResult:
        created: List[str] = []
        skipped: List[str] = []
        try:
            self._scaffold_into(structure, self._workspace_root, created, skipped)
        except OSError as exc:
            summary = "\n".join(f"  {item}" for item in created)
            return ToolResult.failure(
                "SCAFFOLD_FAILED",
                f"Error scaffolding: {exc}",
                data={"output": f"Created before the failure:\n{summary}" if created else ""},
            )

        lines = ["Scaffolded structure:", ""]
        lines += [f"  {item}" for item in created]
        lines += ["", f"Total: {len(created)} items created"]
        warnings = [f"Skipped existing file: {item}" for item in skipped]
        return ToolResult.success(
            data={"created": created, "output": "\n".join(lines)},
            warnings=warnings,
        )

    def _scaffold_into(
        self,
        structure: Dict[str, Any],
        base: Path,
        created: List[str],
        skipped: List[str],
    ) -> None:
        for key, value in structure.items():
            is_dir = key.endswith("/") or isinstance(value, dict)
            path = base / key.rstrip("/")
            if is_dir:
                path.mkdir(parents=True, exist_ok=True)
                created.append(f"[dir] {self._display(path)}/")
                if isinstance(value, dict):
                    self._scaffold_into(value, path, created, skipped)
                continue
            if path.exists():
                skipped.append(self._display(path))
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(value if isinstance(value, str) else "", encoding="utf-8")
            created.append(f"[file] {self._display(path)}")

    # ------------------------------------------------------------------ clean

    def clean(self, targets: List[str]) -> ToolResult:
        deleted: List[str] = []
        errors: List[str] = []

        for target in targets:
            path = self._resolve(str(target))
            if path == self._workspace_root:
                errors.append(f"{target}: refusing to delete the workspace root")
                continue
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                    deleted.append(f"[dir] {target}/")
                else:
                    path.unlink()
                    deleted.append(f"[file] {target}")
            except FileNotFoundError:
                continue
            except OSError as exc:
                errors.append(f"{target}: {exc}")

        lines = ["Workspace cleaned"]
        if deleted:
            lines += ["", "Deleted:"] + [f"  {item}" for item in deleted]
        if errors:
            lines += ["", "Errors:"] + [f"  {item}" for item in errors]
        if not deleted and not errors:
            lines.append("No files matched the targets")
        return ToolResult.success(
            data={"deleted": deleted, "errors": errors, "output": "\n".join(lines)},
        )

    # ------------------------------------------------------------------ analyze

    def analyze(self) -> ToolResult:
        root = self._workspace_root
        analysis: Dict[str, Any] = {
            "type": "Unknown",
            "language": "Unknown",
            "framework": "None",
            "manifest": None,
            "scripts": [],
            "dependencies": {"prod": 0, "dev": 0},
        }

        package_json = root / "package.json"
        pyproject = root / "pyproject.toml"
        if package_json.is_file():
            self._analyze_package_json(package_json, analysis)
        elif pyproject.is_file():
            self._analyze_pyproject(pyproject, analysis)

        top_dirs = {p.name for p in root.iterdir() if p.is_dir()}
        structure = {
            "src": "src" in top_dirs,
            "tests": bool(top_dirs & {"test", "tests", "__tests__"}),
            "build": bool(top_dirs & {"dist", "build"}),
        }

        extensions: Counter = Counter()
        for file_path in self._iter_project_files(root):
            extensions[file_path.suffix or "(no ext)"] += 1

        analysis["structure"] = structure
        analysis["files"] = {"total": sum(extensions.values()), "by_ext": dict(extensions)}
        return ToolResult.success(
            data={"analysis": analysis, "output": format_analysis(analysis, extensions)},
        )

    @staticmethod
    def _analyze_package_json(path: Path, analysis: Dict[str, Any]) -> None:
        try:
            pkg = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            analysis["manifest"] = f"package.json (unreadable: {exc})"
            return
        if not isinstance(pkg, dict):
            analysis["manifest"] = "package.json (unreadable: not an object)"
            return
        deps = pkg.get("dependencies") or {}
        dev_deps = pkg.get("devDependencies") or {}
        analysis.update(
            type="Node.js",
            manifest="package.json",
            scripts=sorted(pkg.get("scripts") or {}),
            dependencies={"prod": len(deps), "dev": len(dev_deps)},
            language="TypeScript" if "typescript" in dev_deps or "typescript" in deps else "JavaScript",
        )
        for dep, framework in (("react", "React"), ("express", "Express"), ("next", "Next.js")):
            if dep in deps:
                analysis["framework"] = framework
                break

    @staticmethod
    def _analyze_pyproject(path: Path, analysis: Dict[str, Any]) -> None:
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            analysis["manifest"] = f"pyproject.toml (unreadable: {exc})"
            return
        project = data.get("project", {})
        deps = project.get("dependencies", [])
        optional = project.get("optional-dependencies", {})
        analysis.update(
            type="Python",
            language="Python",
            manifest="pyproject.toml",
            scripts=sorted(project.get("scripts", {})),
            dependencies={"prod": len(deps), "dev": sum(len(v) for v in optional.values())},
        )
        lowered = " ".join(deps).lower()
        for dep, framework in (("django", "Django"), ("fastapi", "FastAPI"), ("flask", "Flask")):
            if dep in lowered:
                analysis["framework"] = framework
                break

    @staticmethod
    def _iter_project_files(root: Path):
        for path in root.rglob("*"):
            if any(part in IGNORED_DIRS for part in path.relative_to(root).parts):
                continue
            if path.is_file():
                yield path

    # ------------------------------------------------------------------ backup

    def backup(self, destination: str) -> ToolResult:
        dest_root = self._resolve(destination)
        now = datetime.now(timezone.utc)
        backup_path = dest_root / f"backup-{now.strftime('%Y%m%dT%H%M%SZ')}"
        suffix = 1
        while backup_path.exists():
            suffix += 1
            backup_path = dest_root / f"backup-{now.strftime('%Y%m%dT%H%M%SZ')}-{suffix}"

        try:
            backup_path.mkdir(parents=True)
            copied = _copy_tree(self._workspace_root, backup_path, BACKUP_IGNORE, exclude={dest_root})
            manifest = {
                "timestamp": now.isoformat(),
                "files": len(copied),
                "source": str(self._workspace_root),
            }
            (backup_path / BACKUP_MANIFEST).write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        except OSError as exc:
            return ToolResult.failure("BACKUP_FAILED", f"Error creating backup: {exc}")

        _log.info("Backed up %d files to %s", len(copied), backup_path)
        return ToolResult.success(
            data={
                "path": str(backup_path),
                "files": len(copied),
                "output": (
                    f"Backup created: {self._display(backup_path)}\n\n"
                    f"Files: {len(copied)}\nDate: {now.isoformat()}"
                ),
            },
        )


def _copy_tree(src: Path, dest: Path, ignore: List[str], exclude: Optional[set] = None) -> List[str]:
    """Copy src into dest, skipping names matching ``ignore`` and paths in ``exclude``."""
    copied: List[str] = []
    exclude = exclude or set()
    dest.mkdir(parents=True, exist_ok=True)
    for item in sorted(src.iterdir()):
        if item.resolve() in exclude or item.resolve() == dest.resolve():
            continue
        if any(fnmatch.fnmatch(item.name, pattern) for pattern in ignore):
            continue
        target = dest / item.name
        if item.is_dir() and not item.is_symlink():
            copied += _copy_tree(item, target, ignore, exclude)
        elif item.is_file():
            shutil.copy2(item, target)
            copied.append(str(item))
    return copied


def format_analysis(a: Dict[str, Any], extensions: Counter) -> str:
    def mark(flag: bool) -> str:
        return "yes" if flag else "no"

    lines = [
        "Project Analysis",
        "",
        f"Type: {a['type']}",
        f"Language: {a['language']}",
        f"Framework: {a['framework']}",
        "",
    ]
    if a["manifest"]:
        lines += [
            f"Manifest: {a['manifest']}",
            "Dependencies:",
            f"  Production: {a['dependencies']['prod']}",
            f"  Development: {a['dependencies']['dev']}",
            "",
            f"Scripts: {', '.join(a['scripts']) or 'none'}",
            "",
        ]
    else:
        lines += ["No package.json or pyproject.toml found", ""]
    lines += [
        "Structure:",
        f"  src/ directory: {mark(a['structure']['src'])}",
        f"  test/ directory: {mark(a['structure']['tests'])}",
        f"  build/ directory: {mark(a['structure']['build'])}",
        "",
        f"Files: {a['files']['total']} total",
    ]
    lines += [f"  {ext}: {count}" for ext, count in extensions.most_common(10)]
    return "\n".join(lines)
