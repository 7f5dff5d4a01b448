"""Tests for HarnessConfig loading, validation and CLI overrides."""

import pytest
import yaml

from agent_harness.config import (
    DEFAULT_MODEL,
    ConfigError,
    HarnessConfig,
    apply_cli_overrides,
    load_config,
)


def _write(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


class TestDefaults:
    def test_field_defaults(self):
        c = HarnessConfig(model="m")
        assert c.temperature == 0.0
        assert c.max_output_tokens == 4096
        assert c.max_iterations == 25
        assert c.max_retries == 3
        assert c.retry_backoff == 1.0
        assert c.command_timeout == 60
        assert c.search_timeout == 10
        assert c.max_tool_output_chars == 30000
        assert c.mcp_config_path == "mcp-config.json"
        assert c.api_base is None
        assert c.deny_tools == []

    def test_api_base_trailing_slash_stripped(self):
        assert HarnessConfig(model="m", api_base="http://localhost:4000/").api_base == "http://localhost:4000"

    def test_api_base_scheme_required(self):
        with pytest.raises(ValueError):
            HarnessConfig(model="m", api_base="localhost:4000")

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            HarnessConfig(model="m", colour="blue")

    def test_repr_hides_api_key(self):
        assert "secret" not in repr(HarnessConfig(model="m", api_key="secret"))


class TestLoadConfig:
    def test_valid_file(self, tmp_path):
        path = _write(tmp_path, {"model": "openai/gpt-4o", "max_iterations": 5})
        c = load_config(path)
        assert c.model == "openai/gpt-4o"
        assert c.max_iterations == 5

    def test_missing_default_file_uses_environment(self, tmp_path, monkeypatch):
        monkeypatch.setattr("agent_harness.config.DEFAULT_CONFIG_FILE", tmp_path / "none.yaml")
        monkeypatch.setenv("AGENT_HARNESS_MODEL", "ollama_chat/llama3.2")
        assert load_config().model == "ollama_chat/llama3.2"

    def test_missing_default_file_default_model(self, tmp_path, monkeypatch):
        monkeypatch.setattr("agent_harness.config.DEFAULT_CONFIG_FILE", tmp_path / "none.yaml")
        monkeypatch.delenv("AGENT_HARNESS_MODEL", raising=False)
        monkeypatch.delenv("AGENT_HARNESS_API_BASE", raising=False)
        assert load_config().model == DEFAULT_MODEL

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigError, match="empty or not a valid YAML mapping"):
            load_config(_write(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(_write(tmp_path, "model: [unclosed"))

    def test_validation_errors_listed_per_field(self, tmp_path):
        path = _write(tmp_path, {"model": "m", "max_iterations": 0, "api_base": "ftp://x"})
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        message = str(exc.value)
        assert "  - max_iterations:" in message
        assert "  - api_base:" in message


class TestOverrides:
    def test_no_overrides_returns_same(self):
        c = HarnessConfig(model="m")
        assert apply_cli_overrides(c) is c

    def test_overrides_win(self):
        c = apply_cli_overrides(HarnessConfig(model="m"), model="other", max_iterations=3, api_base="https://x/")
        assert (c.model, c.max_iterations, c.api_base) == ("other", 3, "https://x")

    def test_invalid_override(self):
        with pytest.raises(ConfigError, match="Invalid CLI override"):
            apply_cli_overrides(HarnessConfig(model="m"), max_iterations=0)
