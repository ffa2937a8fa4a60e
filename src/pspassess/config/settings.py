"""
Configuration settings management for pspassess.

This module handles loading and validating tool settings from a YAML file
with support for environment variable overrides.

Configuration is loaded from ~/.pspassess/config.yaml by default, with the
path overridable via the PSPASSESS_CONFIG environment variable. Settings
describe how the tool runs (log level, template and output directories,
risk registry target); the organization being assessed is described by a
separate organization config file (see pspassess.config.organization).
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".pspassess"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

DEFAULT_OUTPUT_DIR = "assessments"
DEFAULT_DOCS_DIR = "docs"

RISK_REGISTRY_ENVIRONMENTS = ("us", "fedramp", "dev")


@dataclass
class RiskRegistryConfig:
    """
    Risk registry connection settings.

    The API token is deliberately absent: it is supplied per run via the
    command line or the PSPASSESS_RISK_REGISTRY_TOKEN environment variable.
    """

    account: str = ""
    environment: str = "us"
    base_url: str = ""


@dataclass
class Settings:
    """
    Complete pspassess configuration settings.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
        templates_dir: Template pack directory. Empty means resolve at run
            time (./templates if present, else the packaged templates).
        output_dir: Directory for assessment reports.
        docs_dir: Directory for rendered policy and procedure documents.
        risk_registry: Risk registry connection settings.
    """

    log_level: str = "INFO"
    templates_dir: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    docs_dir: str = DEFAULT_DOCS_DIR

    risk_registry: RiskRegistryConfig = field(default_factory=RiskRegistryConfig)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from PSPASSESS_CONFIG environment variable if set,
    otherwise returns the default path (~/.pspassess/config.yaml).
    """
    env_path = os.environ.get("PSPASSESS_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> Settings:
    """
    Load configuration from YAML file.

    Reads configuration from the specified path (or default if not provided),
    applies environment variable overrides, and validates the configuration.
    A missing file is not an error; defaults are used.

    Args:
        config_path: Optional path to configuration file.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
                          contains invalid settings.
    """
    if config_path is None:
        config_path = get_config_path()

    settings = Settings()

    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping at the top level"
            )
        settings = _apply_config_data(settings, config_data)

    settings = _apply_environment_overrides(settings)

    _validate_config(settings)

    return settings


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Apply configuration data from parsed YAML to settings."""
    tool_data = data.get("pspassess", {}) or {}

    if "log_level" in tool_data:
        settings.log_level = str(tool_data["log_level"]).upper()
    if "templates_dir" in tool_data:
        settings.templates_dir = str(tool_data["templates_dir"])
    if "output_dir" in tool_data:
        settings.output_dir = str(tool_data["output_dir"])
    if "docs_dir" in tool_data:
        settings.docs_dir = str(tool_data["docs_dir"])

    registry = data.get("risk_registry", {}) or {}
    if "account" in registry:
        settings.risk_registry.account = str(registry["account"])
    if "environment" in registry:
        settings.risk_registry.environment = str(registry["environment"]).lower()
    if "base_url" in registry:
        settings.risk_registry.base_url = str(registry["base_url"])

    return settings


def _apply_environment_overrides(settings: Settings) -> Settings:
    """Apply environment variable overrides to settings."""
    env_map: dict[str, tuple[str, Callable[[str], Any]]] = {
        "PSPASSESS_LOG_LEVEL": ("log_level", lambda x: x.upper()),
        "PSPASSESS_TEMPLATES_DIR": ("templates_dir", str),
        "PSPASSESS_OUTPUT_DIR": ("output_dir", str),
        "PSPASSESS_DOCS_DIR": ("docs_dir", str),
        "PSPASSESS_RISK_REGISTRY_ACCOUNT": ("risk_registry.account", str),
        "PSPASSESS_RISK_REGISTRY_ENV": ("risk_registry.environment", lambda x: x.lower()),
        "PSPASSESS_RISK_REGISTRY_URL": ("risk_registry.base_url", str),
    }

    for env_var, (attr_path, converter) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested_attr(settings, attr_path, converter(value))

    return settings


def _set_nested_attr(obj: Any, path: str, value: Any) -> None:
    """Set a nested attribute on an object using dot notation."""
    parts = path.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    setattr(obj, parts[-1], value)


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if settings.log_level not in valid_log_levels:
        raise ConfigurationError(
            f"Invalid log_level: {settings.log_level}. "
            f"Must be one of: {', '.join(sorted(valid_log_levels))}"
        )

    if not settings.output_dir:
        raise ConfigurationError("output_dir must not be empty")

    environment = settings.risk_registry.environment
    if not settings.risk_registry.base_url and environment not in RISK_REGISTRY_ENVIRONMENTS:
        raise ConfigurationError(
            f"Invalid risk_registry.environment: {environment}. "
            f"Must be one of: {', '.join(RISK_REGISTRY_ENVIRONMENTS)}"
        )
