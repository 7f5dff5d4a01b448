"""Tests for the CLI entry point."""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from agent_harness.cli import EXIT_ITERATION_LIMIT, main
from agent_harness.llm import InferenceError

from conftest import RepeatingLLM, ScriptedLLM, final, tool_use


@pytest.fixture()
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({"model": "openai/gpt-4o", "api_base": "http://localhost:4000"}))
    return path


@pytest.fixture()
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture(autouse=True)
def no_truststore():
    with patch("agent_harness.cli.truststore.inject_into_ssl"):
        yield


@pytest.fixture(autouse=True)
def no_mcp_env(monkeypatch):
    monkeypatch.delenv("MCP_SERVERS", raising=False)


def _run(args, llm):
    with patch("agent_harness.cli.LLMClient", return_value=llm):
        return CliRunner().invoke(main, args)


class TestCli:
    def test_missing_task_is_usage_error(self, config_file):
        result = CliRunner().invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 2

    def test_completed(self, config_file, project):
        llm = ScriptedLLM([
            tool_use(("c1", "edit_file", {"path": "x.txt", "old_str": "", "new_str": "hello"})),
            final("Created x.txt"),
        ])
        result = _run(["--config", str(config_file), "--workspace", str(project), "create", "x.txt"], llm)
        assert result.exit_code == 0, result.output
        assert (project / "x.txt").read_text() == "hello"
        assert "Created x.txt" in result.output
        assert llm.requests[0][1] == {"role": "user", "content": "create x.txt"}

    def test_iteration_limit_exit_code(self, config_file, project):
        result = _run(
            ["--config", str(config_file), "--workspace", str(project), "--max-iterations", "2", "loop"],
            RepeatingLLM(),
        )
        assert result.exit_code == EXIT_ITERATION_LIMIT
        assert "iteration limit of 2" in result.output

    def test_fatal_error_exit_code(self, config_file, project):
        result = _run(
            ["--config", str(config_file), "--workspace", str(project), "go"],
            ScriptedLLM([InferenceError("Authentication failed")]),
        )
        assert result.exit_code == 1
        assert "Authentication failed" in result.output

    def test_config_error_exit_code(self, tmp_path, project):
        bad = tmp_path / "bad.yaml"
        bad.write_text(yaml.dump({"model": "m", "max_iterations": 0}))
        result = CliRunner().invoke(main, ["--config", str(bad), "--workspace", str(project), "go"])
        assert result.exit_code == 1
        assert "max_iterations" in result.output

    def test_model_override_reaches_client(self, config_file, project):
        with patch("agent_harness.cli.LLMClient", return_value=ScriptedLLM([final()])) as cls:
            CliRunner().invoke(main, [
                "--config", str(config_file), "--workspace", str(project), "--model", "ollama_chat/qwen", "go",
            ])
        assert cls.call_args.args[0].model == "ollama_chat/qwen"

    def test_mcp_tools_registered_when_requested(self, config_file, project, tmp_path):
        mcp_config = tmp_path / "mcp-config.json"
        mcp_config.write_text('{"mcpServers": {"gh": {"command": "gh-mcp"}}}')
        llm = ScriptedLLM([final()])
        with patch("agent_harness.cli.McpBridge.load_tools", return_value=[]) as load:
            result = _run([
                "--config", str(config_file), "--workspace", str(project),
                "--mcp", "gh", "--mcp-config", str(mcp_config), "go",
            ], llm)
        assert result.exit_code == 0, result.output
        load.assert_called_once()

    def test_bridge_not_started_by_default(self, config_file, project):
        with patch("agent_harness.cli.McpBridge") as bridge:
            _run(["--config", str(config_file), "--workspace", str(project), "go"], ScriptedLLM([final()]))
        bridge.assert_not_called()
