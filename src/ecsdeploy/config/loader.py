"""Configuration loader for ecsdeploy.

This module provides the ConfigLoader class for loading, parsing, and
validating the deploy configuration from a YAML file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from ecsdeploy.config.env_loader import substitute_env_vars
from ecsdeploy.config.validator import flatten_pydantic_errors
from ecsdeploy.lib.errors import ConfigError, FileNotFoundError
from ecsdeploy.models.config import DeployConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "ecsdeploy.yml"

# Environment variables that override values from the file.
ENV_VAR_MAP = {
    "timeout": "ECSDEPLOY_TIMEOUT",
    "poll_interval": "ECSDEPLOY_POLL_INTERVAL",
}

# Environment variables that fill values missing from the file.
ENV_FALLBACK_MAP = {
    "region": ("AWS_REGION", "AWS_DEFAULT_REGION"),
    "profile": ("AWS_PROFILE",),
}


def _parse_env_value(field_name: str, value: str) -> Any:
    """Parse an environment variable value for a config field.

    Raises:
        ValueError: If value cannot be parsed
    """
    if field_name in ("timeout", "poll_interval"):
        return float(value)
    return value


class ConfigLoader:
    """Load and validate ecsdeploy configuration files."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the loader.

        Args:
            env: Environment mapping used for substitution and overrides;
                defaults to os.environ
        """
        self._env = env

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    def parse_yaml(self, path: Path) -> dict[str, Any]:
        """Read a YAML file with ``${VAR}`` substitution.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigError: If the file cannot be read or parsed
        """
        if not path.is_file():
            raise FileNotFoundError(
                str(path),
                f"Create {DEFAULT_CONFIG_FILE} or pass --config with its path.",
            )
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(
                field="config", message=f"Failed to read {path}: {exc}"
            ) from exc

        substituted = substitute_env_vars(raw_text, self.env)
        try:
            content = yaml.safe_load(substituted)
        except yaml.YAMLError as exc:
            raise ConfigError(
                field="config", message=f"Invalid YAML in {path}: {exc}"
            ) from exc

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                field="config", message=f"{path} must contain a YAML mapping"
            )
        return content

    def apply_env_overrides(self, data: dict[str, Any]) -> dict[str, Any]:
        """Apply ECSDEPLOY_* overrides and AWS_* fallbacks to raw config data."""
        merged = dict(data)
        env = self.env
        for field_name, env_var in ENV_VAR_MAP.items():
            if env_var not in env:
                continue
            try:
                merged[field_name] = _parse_env_value(field_name, env[env_var])
            except ValueError as exc:
                raise ConfigError(
                    field=field_name,
                    message=f"Invalid value for {env_var}: {env[env_var]!r}",
                ) from exc
        for field_name, env_vars in ENV_FALLBACK_MAP.items():
            if merged.get(field_name):
                continue
            for env_var in env_vars:
                if env.get(env_var):
                    merged[field_name] = env[env_var]
                    break
        return merged

    def load_deploy_config(self, path: str | Path) -> DeployConfig:
        """Load the deploy configuration file.

        Relative task definition paths are resolved against the directory
        holding the configuration file.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigError: If the file is invalid
        """
        config_path = Path(path)
        data = self.apply_env_overrides(self.parse_yaml(config_path))

        task_definition = data.get("task_definition")
        if isinstance(task_definition, str) and task_definition:
            td_path = Path(task_definition)
            if not td_path.is_absolute():
                td_path = config_path.resolve().parent / td_path
            data["task_definition"] = td_path

        try:
            config = DeployConfig.model_validate(data)
        except PydanticValidationError as exc:
            messages = flatten_pydantic_errors(exc)
            raise ConfigError(field="config", message="\n".join(messages)) from exc

        logger.debug(
            "Loaded config from %s: cluster=%s service=%s",
            config_path,
            config.cluster,
            config.service,
        )
        return config
