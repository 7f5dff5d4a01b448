"""Configuration management - Pydantic model with YAML loading and CLI overrides."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_DIR = Path.home() / ".agent-harness"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

DEFAULT_MODEL = "anthropic/claude-sonnet-4-20250514"
MODEL_ENV_VAR = "AGENT_HARNESS_MODEL"
API_BASE_ENV_VAR = "AGENT_HARNESS_API_BASE"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class HarnessConfig(BaseModel):
    """Harness configuration with validation."""

    model_config = ConfigDict(extra="forbid")

    model: str
    api_base: str | None = None
    api_key: str | None = None

    # Model sampling parameters
    temperature: float = 0.0
    max_output_tokens: int = Field(default=4096, ge=1)

    # Loop and retry bounds
    max_iterations: int = Field(default=25, ge=1)
    max_retries: int = Field(default=3, ge=0)
    retry_backoff: float = Field(default=1.0, ge=0)

    # Tool bounds
    command_timeout: int = Field(default=60, ge=1)
    search_timeout: int = Field(default=10, ge=1)
    max_tool_output_chars: int = Field(default=30000, ge=100)
    deny_tools: list[str] = Field(default_factory=list)

    mcp_config_path: str = "mcp-config.json"
    system_prompt: str | None = None

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Must not be empty")
        return v.strip()

    @field_validator("api_base")
    @classmethod
    def validate_api_base(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError("Must start with http:// or https://")
        return v.rstrip("/")

    def __repr__(self) -> str:
        api_key_display = "***" if self.api_key else "None"
        return (
            f"HarnessConfig(model={self.model!r}, "
            f"api_base={self.api_base!r}, "
            f"api_key={api_key_display!r}, "
            f"max_iterations={self.max_iterations!r}, "
            f"max_output_tokens={self.max_output_tokens!r})"
        )

    def __str__(self) -> str:
        return self.__repr__()


def _format_errors(e: ValidationError) -> str:
    errors = []
    for err in e.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        errors.append(f"  - {field}: {err['msg']}")
    return "\n".join(errors)


def config_from_env() -> HarnessConfig:
    """Defaults used when no config file exists."""
    data: dict = {"model": os.environ.get(MODEL_ENV_VAR) or DEFAULT_MODEL}
    api_base = os.environ.get(API_BASE_ENV_VAR)
    if api_base:
        data["api_base"] = api_base
    try:
        return HarnessConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration from environment\n\n{_format_errors(e)}") from None


def load_config(config_path: Path | None = None) -> HarnessConfig:
    """Load and validate config from YAML file.

    Args:
        config_path: Path to config file. Defaults to ~/.agent-harness/config.yaml.
            A missing default file falls back to environment defaults; a
            missing explicit path is an error.

    Returns:
        Validated HarnessConfig instance.

    Raises:
        ConfigError: If the file is missing (explicit path), empty, or invalid.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE

    if not path.exists():
        if config_path is None:
            return config_from_env()
        raise ConfigError(
            f"Configuration file not found.\n\n"
            f"Expected location: {path}\n\n"
            f"Minimal example:\n"
            f"  model: {DEFAULT_MODEL}\n\n"
            f"Optional fields: api_base, api_key, max_iterations, command_timeout"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}\n\n  {e}") from None

    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid configuration in {path}\n\n"
            f"  Config file is empty or not a valid YAML mapping.\n\n"
            f"Minimal example:\n"
            f"  model: {DEFAULT_MODEL}"
        )

    try:
        return HarnessConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}\n\n{_format_errors(e)}") from None


def apply_cli_overrides(
    config: HarnessConfig,
    model: str | None = None,
    api_base: str | None = None,
    max_iterations: int | None = None,
    mcp_config_path: str | None = None,
) -> HarnessConfig:
    """Apply CLI flag overrides to config. Returns a new HarnessConfig instance.

    Override precedence: Defaults → YAML → CLI flags.
    """
    overrides = {}
    if model is not None:
        overrides["model"] = model
    if api_base is not None:
        overrides["api_base"] = api_base
    if max_iterations is not None:
        overrides["max_iterations"] = max_iterations
    if mcp_config_path is not None:
        overrides["mcp_config_path"] = mcp_config_path

    if not overrides:
        return config

    try:
        return HarnessConfig.model_validate(config.model_dump() | overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid CLI override:\n\n{_format_errors(e)}") from None
