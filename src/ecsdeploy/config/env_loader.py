"""Environment variable substitution and .env loading.

Supports the ``${VAR_NAME}`` and ``${VAR_NAME:-default}`` patterns in
configuration and task definition files.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from ecsdeploy.lib.errors import ConfigError, FileNotFoundError

ENV_VAR_PATTERN = re.compile(
    r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
)


def get_env_var(
    name: str,
    default: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Return an environment variable value or the given default."""
    source = os.environ if env is None else env
    return source.get(name, default)


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ``${VAR}`` references in text with environment values.

    Args:
        text: Raw text containing variable references
        env: Mapping to resolve from (defaults to os.environ)

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default
    """
    source = os.environ if env is None else env

    def _replace(match: re.Match[str]) -> str:
        name = match.group("name")
        if name in source:
            return source[name]
        default = match.group("default")
        if default is not None:
            return default
        raise ConfigError(
            field=name,
            message=f"Environment variable '{name}' is not set and has no default",
        )

    return ENV_VAR_PATTERN.sub(_replace, text)


def load_env_file(path: str | Path, override: bool = False) -> None:
    """Load variables from a .env file into the process environment.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    env_path = Path(path)
    if not env_path.is_file():
        raise FileNotFoundError(
            str(env_path), "Check the --envfile path points to an existing file."
        )
    load_dotenv(env_path, override=override)
