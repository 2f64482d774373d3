"""
Configuration management for promptweave.

Provides YAML-based configuration with programmatic overrides,
configuration hierarchy (overrides > YAML > defaults), and validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from promptweave.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    PROJECT_TEMPLATES_SUBDIR,
)
from promptweave.exceptions import ConfigError

DEFAULT_CONFIG_FILE = "~/.promptweave/config.yaml"


class LLMSettings(BaseModel):
    """Chat-completion defaults and transport settings."""

    default_model: str = Field(
        default=DEFAULT_MODEL,
        description="Model used when neither the template nor its system templates set one",
    )
    default_temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        description="Sampling temperature used when no template sets one",
    )
    default_max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS,
        description="Completion token ceiling used when no template sets one",
    )
    api_base: str | None = Field(
        default=None,
        description="Custom API base URL (e.g. an OpenRouter or Azure endpoint)",
    )
    api_keys: dict[str, str] = Field(
        default_factory=dict,
        description="API keys exported to the environment, e.g. OPENAI_API_KEY",
    )
    timeout: float = Field(
        default=120.0,
        description="Request timeout in seconds",
    )

    @field_validator("default_temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature is within the range accepted by chat APIs."""
        if not (0.0 <= v <= 2.0):
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v

    @field_validator("default_max_tokens", "timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level",
    )
    verbose: bool = Field(
        default=False,
        description="Force DEBUG logging",
    )


class TemplateSettings(BaseModel):
    """Template search locations."""

    global_dir: str = Field(
        default="~/.promptweave",
        description="Directory holding user-wide templates under templates/",
    )
    project_subdir: str = Field(
        default=PROJECT_TEMPLATES_SUBDIR,
        description="Template directory relative to the project root",
    )


class PromptweaveConfig(BaseModel):
    """Top-level configuration."""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    templates: TemplateSettings = Field(default_factory=TemplateSettings)


def load_yaml(config_file: str) -> dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_file: Path to YAML configuration file

    Returns:
        Dictionary with parsed YAML content, empty if the file is missing

    Raises:
        ConfigError: If YAML is invalid or the extension is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml"]:
        raise ConfigError(
            f"Config file must have .yaml or .yml extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f.read())
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")
    return data


def apply_overrides(
    config_dict: dict[str, Any],
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply overrides to a config dictionary.

    Args:
        config_dict: Configuration dictionary
        overrides: Overrides, nested keys written as "llm.default_model"

    Returns:
        Configuration dictionary with overrides applied
    """
    if overrides is None:
        return config_dict

    for key, value in overrides.items():
        if "." in key:
            parts = key.split(".")
            current = config_dict
            for part in parts[:-1]:
                if part not in current:
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = value
        else:
            config_dict[key] = value

    return config_dict


def load_config(
    config_file: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> PromptweaveConfig:
    """
    Load configuration with hierarchy: overrides > YAML > defaults.

    Args:
        config_file: Path to YAML config file (default: ~/.promptweave/config.yaml)
        overrides: Dictionary of overrides

    Returns:
        Validated PromptweaveConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_dict = load_yaml(config_file)
    config_dict = apply_overrides(config_dict, overrides)

    try:
        return PromptweaveConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def save_config(config: PromptweaveConfig, config_file: str | None = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: PromptweaveConfig instance to save
        config_file: Path to YAML config file (default: ~/.promptweave/config.yaml)

    Raises:
        OSError: If file operations fail
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    config_path = Path(config_file).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="python", exclude_none=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)

    # API keys may be stored here
    config_path.chmod(0o600)
