"""Project templates for ``workspace_manager init``.

Each template maps relative file paths to content. Content is either a
string or a callable taking the project name and returning a string.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Union

FileContent = Union[str, Callable[[str], str]]


@dataclass(frozen=True)
class ProjectTemplate:
    title: str
    files: Dict[str, FileContent]
    setup: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)

    def render(self, name: str) -> Dict[str, str]:
        return {
            path: content(name) if callable(content) else content
            for path, content in self.files.items()
        }


def _package_json(**fields) -> Callable[[str], str]:
    def render(name: str) -> str:
        return json.dumps({"name": name, "version": "1.0.0", **fields}, indent=2) + "\n"
    return render


_TS_DEV_DEPENDENCIES = {
    "@types/node": "^22.10.5",
    "ts-node": "^10.9.2",
    "typescript": "^5.7.3",
}

TYPESCRIPT = ProjectTemplate(
    title="TypeScript Project",
    files={
        "src/index.ts": 'console.log("Hello TypeScript!");\n\nexport {};\n',
        "package.json": _package_json(
            main="dist/index.js",
            scripts={
                "build": "tsc",
                "start": "node dist/index.js",
                "dev": "ts-node src/index.ts",
                "test": 'echo "No tests yet"',
            },
            devDependencies=_TS_DEV_DEPENDENCIES,
        ),
        "tsconfig.json": json.dumps(
            {
                "compilerOptions": {
                    "target": "ES2022",
                    "module": "commonjs",
                    "outDir": "./dist",
                    "rootDir": "./src",
                    "strict": True,
                    "esModuleInterop": True,
                    "skipLibCheck": True,
                    "forceConsistentCasingInFileNames": True,
                },
                "include": ["src/**/*"],
                "exclude": ["node_modules", "dist"],
            },
            indent=2,
        ) + "\n",
        "README.md": lambda name: (
            f"# {name}\n\n"
            "TypeScript project created with workspace_manager.\n\n"
            "## Setup\n\n```bash\nnpm install\n```\n\n"
            "## Development\n\n```bash\nnpm run dev\n```\n\n"
            "## Build\n\n```bash\nnpm run build\nnpm start\n```\n"
        ),
        ".gitignore": "node_modules/\ndist/\n*.log\n.env\n.DS_Store\n",
    },
    setup=["npm install"],
    next_steps=["npm run dev"],
)

EXPRESS = ProjectTemplate(
    title="Express API",
    files={
        "src/index.ts": (
            "import express, { Request, Response } from 'express';\n\n"
            "const app = express();\n"
            "const PORT = process.env.PORT || 3000;\n\n"
            "app.use(express.json());\n\n"
            "app.get('/', (req: Request, res: Response) => {\n"
            "  res.json({ message: 'API is running', timestamp: new Date().toISOString() });\n"
            "});\n\n"
            "app.get('/health', (req: Request, res: Response) => {\n"
            "  res.json({ status: 'healthy' });\n"
            "});\n\n"
            "app.listen(PORT, () => {\n"
            "  console.log(`Server running on http://localhost:${PORT}`);\n"
            "});\n"
        ),
        "src/routes/.gitkeep": "",
        "src/middleware/.gitkeep": "",
        "src/controllers/.gitkeep": "",
        "package.json": _package_json(
            main="dist/index.js",
            scripts={
                "build": "tsc",
                "start": "node dist/index.js",
                "dev": "ts-node src/index.ts",
            },
            dependencies={"express": "^4.18.2"},
            devDependencies={"@types/express": "^4.17.21", **_TS_DEV_DEPENDENCIES},
        ),
        "tsconfig.json": json.dumps(
            {
                "compilerOptions": {
                    "target": "ES2022",
                    "module": "commonjs",
                    "outDir": "./dist",
                    "rootDir": "./src",
                    "strict": True,
                    "esModuleInterop": True,
                },
            },
            indent=2,
        ) + "\n",
        "README.md": lambda name: (
            f"# {name}\n\n"
            "Express API created with workspace_manager.\n\n"
            "## Setup\n\n```bash\nnpm install\n```\n\n"
            "## Development\n\n```bash\nnpm run dev\n```\n\n"
            "API will be available at http://localhost:3000\n"
        ),
        ".env.example": "PORT=3000\nNODE_ENV=development\n",
        ".gitignore": "node_modules/\ndist/\n*.log\n.env\n",
    },
    setup=["npm install"],
    next_steps=["npm run dev"],
)

NODE = ProjectTemplate(
    title="Node.js Project",
    files={
        "index.js": 'console.log("Hello Node.js!");\n',
        "package.json": _package_json(main="index.js", scripts={"start": "node index.js"}),
        "README.md": lambda name: f"# {name}\n\nNode.js project.\n",
        ".gitignore": "node_modules/\n*.log\n",
    },
    next_steps=["npm start"],
)


def _python_module(name: str) -> str:
    return name.replace("-", "_").replace(" ", "_").lower()


PYTHON = ProjectTemplate(
    title="Python Project",
    files={
        "pyproject.toml": lambda name: (
            "[build-system]\n"
            'requires = ["setuptools>=68"]\n'
            'build-backend = "setuptools.build_meta"\n\n'
            "[project]\n"
            f'name = "{name}"\n'
            'version = "0.1.0"\n'
            'requires-python = ">=3.11"\n'
            "dependencies = []\n\n"
            "[project.optional-dependencies]\n"
            'test = ["pytest>=8"]\n'
        ),
        "src/{module}/__init__.py": lambda name: f'"""{name}."""\n',
        "src/{module}/__main__.py": lambda name: (
            "def main() -> None:\n"
            f'    print("Hello from {name}!")\n\n\n'
            'if __name__ == "__main__":\n'
            "    main()\n"
        ),
        "tests/test_smoke.py": lambda name: (
            f"import {_python_module(name)}\n\n\n"
            "def test_imports():\n"
            f"    assert {_python_module(name)}.__doc__\n"
        ),
        "README.md": lambda name: (
            f"# {name}\n\n"
            "Python project created with workspace_manager.\n\n"
            "```bash\npip install -e '.[test]'\npytest\n```\n"
        ),
        ".gitignore": "__pycache__/\n*.pyc\n.venv/\ndist/\nbuild/\n*.egg-info/\n",
    },
    setup=["pip install -e '.[test]'"],
    next_steps=["python -m {module}"],
)

TEMPLATES: Dict[str, ProjectTemplate] = {
    "typescript": TYPESCRIPT,
    "express": EXPRESS,
    "node": NODE,
    "python": PYTHON,
}


def render_template(template: ProjectTemplate, name: str) -> Dict[str, str]:
    """Render file paths and contents for a project called ``name``."""
    module = _python_module(name)
    return {
        path.format(module=module): content
        for path, content in template.render(name).items()
    }


def render_next_steps(template: ProjectTemplate, name: str) -> List[str]:
    module = _python_module(name)
    return [f"cd {name}"] + [
        step.format(module=module) for step in template.setup + template.next_steps
    ]
