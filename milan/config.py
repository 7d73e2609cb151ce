"""
Configuration module for the Milan agent.

Uses pydantic-settings for environment-based configuration with sensible
defaults. An optional YAML file (``config.yaml`` with a ``milan:`` section)
can supply values too; environment variables win over the file.
"""

from __future__ import annotations

import json
import os
import pathlib
import sys
from typing import Annotated, Any, Dict, List, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .errors import ConfigError

DEFAULT_CONFIG_PATH = "config.yaml"


class Settings(BaseSettings):
    """
    Agent settings.

    All settings can be overridden via environment variables.
    Example: MILAN_PORT=9090 MILAN_ALLOWED_IPS='["100.64.0.*"]'
    """

    model_config = SettingsConfigDict(env_prefix="MILAN_", extra="ignore")

    # Listener
    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind; all interfaces by default"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="TCP port the agent listens on"
    )

    # Access control (loopback is always allowed on top of this)
    allowed_ips: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Allowed caller IPs; '*' may replace whole dot segments"
    )

    # Scripts
    scripts_dir: str = Field(
        default="./scripts",
        description="Directory holding the scripts; created if missing"
    )
    script_extension: str = Field(
        default=".py",
        description="File extension appended to the script name"
    )
    interpreter: str = Field(
        default=sys.executable,
        description="Program used to run scripts; empty runs the file directly"
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Hard wall-clock limit for one script run"
    )

    # Service metadata
    service_name: str = Field(
        default="milan",
        description="Service name reported by the status route"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for the agent"
    )

    @field_validator("allowed_ips", mode="before")
    @classmethod
    def _split_ip_string(cls, value: Any) -> Any:
        # Accept "10.0.0.1, 10.0.0.*" as well as a list
        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            return [part.strip() for part in value.split(",") if part.strip()]
        if value is None:
            return []
        return value

    @field_validator("script_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        if value and not value.startswith("."):
            return f".{value}"
        return value

    @property
    def scripts_path(self) -> pathlib.Path:
        return pathlib.Path(self.scripts_dir).expanduser()


def _read_yaml_section(path: pathlib.Path) -> Dict[str, Any]:
    """Return the ``milan:`` mapping of a YAML config file."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping")

    section = data.get("milan") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'milan' section in {path} must be a mapping")
    return section


def load_settings(config_path: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build settings from defaults, an optional YAML file, env vars and overrides.

    An explicit ``config_path`` that does not exist is an error; the default
    ``config.yaml`` is only read when present.

    Raises:
        ConfigError: When the file is unreadable or any value is invalid
    """
    file_values: Dict[str, Any] = {}

    if config_path is not None:
        path = pathlib.Path(config_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config not found: {path}")
        file_values = _read_yaml_section(path)
    elif pathlib.Path(DEFAULT_CONFIG_PATH).is_file():
        file_values = _read_yaml_section(pathlib.Path(DEFAULT_CONFIG_PATH))

    # Environment beats the file: drop file keys that have an env override
    prefix = Settings.model_config.get("env_prefix", "")
    values = {
        k: v for k, v in file_values.items()
        if f"{prefix}{k}".upper() not in os.environ
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def ensure_scripts_dir(settings: Settings) -> pathlib.Path:
    """Create the scripts directory if it is missing and return it."""
    path = settings.scripts_path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Cannot create scripts directory {path}: {e}") from e
    if not path.is_dir():
        raise ConfigError(f"Scripts path is not a directory: {path}")
    return path
