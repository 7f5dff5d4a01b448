"""Bridge external MCP servers into the tool registry.

Servers are declared in an ``mcp-config.json`` style file::

    {"mcpServers": {"github": {"command": "npx",
                               "args": ["-y", "@modelcontextprotocol/server-github"],
                               "env": {"GITHUB_TOKEN": "${GITHUB_TOKEN}"}}}}

Each discovery or call opens its own stdio session and closes it before
returning, so no server process outlives the operation that needed it.
"""

import asyncio
import json
import logging
import os
import re
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Iterable

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_harness.tool_result import ToolResult
from agent_harness.tools.base import Tool, ToolDeclaration

_log = logging.getLogger(__name__)

SERVERS_ENV_VAR = "MCP_SERVERS"
NO_OUTPUT = "Tool executed successfully (no output)"
DEFAULT_CALL_TIMEOUT = 120

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


class McpConfigError(Exception):
    """Raised when the server config file or one server's entry is unusable."""


class McpServerConfig(BaseModel):
    """How to launch one stdio MCP server."""

    model_config = ConfigDict(extra="ignore")

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


def load_mcp_config(path: str | Path) -> dict[str, McpServerConfig]:
    """Read server definitions; a missing file means no servers.

    Raises:
        McpConfigError: If the file is not JSON or an entry is malformed.
    """
    path = Path(path)
    if not path.exists():
        _log.info("No MCP config at %s", path)
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise McpConfigError(f"Cannot read MCP config {path}: {e}") from None

    servers = raw.get("mcpServers") if isinstance(raw, dict) else None
    if not isinstance(servers, dict):
        raise McpConfigError(f"MCP config {path} has no 'mcpServers' mapping")

    configs = {}
    for name, entry in servers.items():
        try:
            configs[name] = McpServerConfig.model_validate(entry)
        except ValidationError as e:
            raise McpConfigError(f"Invalid MCP server '{name}' in {path}: {e}") from None
    return configs


def expand_env(value: str, environ: dict[str, str] | None = None) -> str:
    """Replace ``${VAR}`` references; an unset or empty variable is an error."""
    environ = os.environ if environ is None else environ

    def _sub(match: re.Match) -> str:
        var = match.group(1)
        resolved = environ.get(var)
        if not resolved:
            raise McpConfigError(f"Environment variable not set: {var}")
        return resolved

    return _ENV_REF.sub(_sub, value)


def expand_server_config(
    config: McpServerConfig, environ: dict[str, str] | None = None
) -> McpServerConfig:
    return McpServerConfig(
        command=config.command,
        args=[expand_env(a, environ) for a in config.args],
        env={k: expand_env(v, environ) for k, v in config.env.items()},
    )


def select_servers(
    configs: dict[str, McpServerConfig],
    requested: str | Iterable[str] | None = None,
) -> dict[str, McpServerConfig]:
    """Pick the servers to enable.

    Explicit names (argument, else the ``MCP_SERVERS`` variable) win;
    otherwise every configured server is enabled. Unknown names are skipped.
    """
    if requested is None:
        requested = os.environ.get(SERVERS_ENV_VAR) or None
    if requested is None:
        return dict(configs)

    if isinstance(requested, str):
        names = [n.strip() for n in requested.split(",")]
    else:
        names = [n.strip() for n in requested]

    selected = {}
    for name in names:
        if not name:
            continue
        if name not in configs:
            _log.warning("MCP server '%s' is not configured; skipping", name)
            continue
        selected[name] = configs[name]
    return selected


def _block_to_text(block: Any) -> str:
    kind = getattr(block, "type", None)
    if kind == "text":
        return block.text
    if kind == "resource":
        resource = block.resource
        lines = [f"Resource: {resource.uri}"]
        text = getattr(resource, "text", None)
        if text is not None:
            lines.append(text)
        else:
            lines.append(f"[binary resource: {getattr(resource, 'mimeType', None) or 'unknown'}]")
        return "\n".join(lines)
    if kind in ("image", "audio"):
        return f"[{kind}: {getattr(block, 'mimeType', None) or 'unknown'}]"
    if hasattr(block, "model_dump"):
        return json.dumps(block.model_dump(mode="json"), indent=2)
    try:
        return json.dumps(block, indent=2, default=str)
    except (TypeError, ValueError):
        return str(block)


def flatten_content(blocks: Iterable[Any] | None, is_error: bool = False) -> str:
    """Collapse an MCP tool result's content blocks into one text."""
    parts = [_block_to_text(b) for b in blocks or []]
    text = "\n\n".join(p for p in parts if p)
    if not text:
        text = "tool reported an error with no output" if is_error else NO_OUTPUT
    if is_error:
        return f"Error: {text}"
    return text


class McpBridge:
    """Discovers and calls tools on the enabled MCP servers."""

    def __init__(
        self,
        servers: dict[str, McpServerConfig],
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        self.servers = servers
        self.call_timeout = call_timeout

    def load_tools(self) -> list["McpTool"]:
        """Wrap every tool every reachable server offers; failing servers are skipped."""
        tools: list[McpTool] = []
        for name in self.servers:
            try:
                listed = asyncio.run(self._list_tools(name))
            except Exception as e:
                _log.warning("Failed to initialize MCP server '%s': %s; continuing without it", name, e)
                continue
            for spec in listed:
                tools.append(McpTool(self, name, spec))
            _log.info("MCP server '%s': %d tools loaded", name, len(listed))
        return tools

    def call_tool(self, server: str, tool: str, arguments: dict[str, Any]) -> str:
        """Invoke one tool and return its flattened text.

        Raises:
            Exception: Connection, protocol, or timeout failures propagate to
                the caller, which reports them as tool errors.
        """
        result = asyncio.run(self._call_tool(server, tool, arguments))
        return flatten_content(
            getattr(result, "content", None),
            is_error=bool(getattr(result, "isError", False)),
        )

    def _parameters(self, name: str) -> StdioServerParameters:
        config = expand_server_config(self.servers[name])
        return StdioServerParameters(
            command=config.command,
            args=config.args,
            env={**os.environ, **config.env},
        )

    async def _open(self, stack: AsyncExitStack, name: str) -> ClientSession:
        read, write = await stack.enter_async_context(stdio_client(self._parameters(name)))
        session = await stack.enter_async_context(ClientSession(read, write))
        await session.initialize()
        return session

    async def _list_tools(self, name: str) -> list[Any]:
        async with AsyncExitStack() as stack:
            session = await self._open(stack, name)
            response = await session.list_tools()
            return list(response.tools)

    async def _call_tool(self, server: str, tool: str, arguments: dict[str, Any]) -> Any:
        async def _run() -> Any:
            async with AsyncExitStack() as stack:
                session = await self._open(stack, server)
                return await session.call_tool(tool, arguments)

        return await asyncio.wait_for(_run(), timeout=self.call_timeout)


class McpTool(Tool):
    """A tool served by an MCP server, registered as ``<server>_<tool>``."""

    def __init__(self, bridge: McpBridge, server: str, spec: Any) -> None:
        self.bridge = bridge
        self.server = server
        self.remote_name = spec.name
        schema = getattr(spec, "inputSchema", None) or {}
        self.declaration = ToolDeclaration(
            name=f"{server}_{spec.name}",
            description=f"[MCP: {server}] {spec.description or spec.name}",
            parameters=dict(schema.get("properties") or {}),
            required=tuple(schema.get("required") or ()),
        )

    def run(self, args: dict[str, Any]) -> ToolResult:
        try:
            text = self.bridge.call_tool(self.server, self.remote_name, args)
        except TimeoutError:
            return ToolResult.failure(
                "MCP_TIMEOUT",
                f"MCP tool {self.server}.{self.remote_name} timed out after "
                f"{self.bridge.call_timeout} seconds",
            )
        except Exception as e:
            return ToolResult.failure(
                "MCP_CALL_FAILED",
                f"MCP tool {self.server}.{self.remote_name} failed: {e}",
            )
        if text.startswith("Error: "):
            return ToolResult.failure("MCP_TOOL_ERROR", text[len("Error: "):])
        return ToolResult.success(data={"output": text})
