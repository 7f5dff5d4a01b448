"""agent-harness CLI entry point."""

import logging
import os
import sys
from pathlib import Path

import click
import litellm
import truststore
from rich.logging import RichHandler

from agent_harness import __version__
from agent_harness.agent import Agent, AgentOutcome
from agent_harness.config import ConfigError, apply_cli_overrides, load_config
from agent_harness.llm import LLMClient
from agent_harness.mcp_bridge import (
    SERVERS_ENV_VAR,
    McpBridge,
    McpConfigError,
    load_mcp_config,
    select_servers,
)
from agent_harness.registry import Dispatcher, build_registry
from agent_harness.renderer import Renderer
from agent_harness.system_prompt import build_system_prompt
from agent_harness.tool_guard import ToolGuard

litellm.suppress_debug_info = True

EXIT_COMPLETED = 0
EXIT_FATAL = 1
EXIT_ITERATION_LIMIT = 3

_log = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; WARNING by default, INFO with --verbose."""
    level = logging.INFO if verbose else logging.WARNING
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    handler = RichHandler(show_time=False, show_path=verbose, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)
    # litellm is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def _load_bridge_tools(config_path: str, requested: str | None, enabled: bool, renderer: Renderer) -> list:
    if not enabled:
        return []
    try:
        configs = load_mcp_config(config_path)
    except McpConfigError as e:
        renderer.print_warning(f"{e}; continuing without MCP servers")
        return []
    servers = select_servers(configs, requested)
    if not servers:
        renderer.print_info("No MCP servers enabled")
        return []
    renderer.print_info(f"Enabling MCP servers: {', '.join(servers)}")
    tools = McpBridge(servers).load_tools()
    renderer.print_info(f"MCP initialization complete: {len(tools)} tools")
    return tools


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("task", nargs=-1, required=True)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Config file (default ~/.agent-harness/config.yaml)")
@click.option("--model", default=None, help="Override LLM model (e.g., anthropic/claude-sonnet-4-20250514)")
@click.option("--api-base", default=None, help="Override the inference API base URL")
@click.option("--max-iterations", type=int, default=None, help="Maximum inference calls for the task")
@click.option("--workspace", type=click.Path(exists=True, file_okay=False, path_type=Path), default=None,
              help="Workspace root for tools (default: current directory)")
@click.option("--mcp", "mcp_servers", default=None,
              help="Comma-separated MCP server names to enable")
@click.option("--mcp-config", "mcp_config", default=None, help="Path to mcp-config.json")
@click.option("--verbose", "-v", is_flag=True, help="Log agent activity at INFO level")
@click.version_option(__version__, prog_name="agent-harness")
def main(
    task: tuple[str, ...],
    config_path: Path | None,
    model: str | None,
    api_base: str | None,
    max_iterations: int | None,
    workspace: Path | None,
    mcp_servers: str | None,
    mcp_config: str | None,
    verbose: bool,
) -> None:
    """Run TASK with an LLM that can read, edit, search and run commands."""
    configure_logging(verbose)
    # use the OS certificate store for HTTPS to the inference service
    truststore.inject_into_ssl()
    renderer = Renderer()

    try:
        config = load_config(config_path)
        config = apply_cli_overrides(
            config,
            model=model,
            api_base=api_base,
            max_iterations=max_iterations,
            mcp_config_path=mcp_config,
        )
    except ConfigError as e:
        renderer.print_error(str(e))
        sys.exit(EXIT_FATAL)

    workspace_root = str((workspace or Path.cwd()).resolve())
    task_text = " ".join(task).strip()
    if not task_text:
        raise click.UsageError("TASK must not be empty")

    bridge_enabled = bool(mcp_servers) or bool(os.environ.get(SERVERS_ENV_VAR)) or mcp_config is not None
    extra_tools = _load_bridge_tools(config.mcp_config_path, mcp_servers, bridge_enabled, renderer)

    registry = build_registry(workspace_root, config, extra_tools)
    dispatcher = Dispatcher(
        registry,
        ToolGuard(workspace_root, deny_tools=config.deny_tools),
        max_output_chars=config.max_tool_output_chars,
    )
    agent = Agent(
        LLMClient(config),
        registry,
        dispatcher,
        renderer=renderer,
        max_iterations=config.max_iterations,
        system_prompt=build_system_prompt(workspace_root, config.system_prompt),
    )

    renderer.render_task(task_text, config.model)
    _log.info("Workspace %s, %d tools registered", workspace_root, len(registry))
    result = agent.run(task_text)
    renderer.render_separator()

    if result.outcome is AgentOutcome.COMPLETED:
        renderer.render_final(result.text)
        renderer.print_success(f"Completed in {result.iterations} iteration(s)")
        sys.exit(EXIT_COMPLETED)
    if result.outcome is AgentOutcome.ITERATION_LIMIT:
        renderer.print_warning(result.text)
        sys.exit(EXIT_ITERATION_LIMIT)
    renderer.print_error(f"Fatal error: {result.text}")
    sys.exit(EXIT_FATAL)


if __name__ == "__main__":
    main()
