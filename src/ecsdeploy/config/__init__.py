"""Configuration loading and validation for ecsdeploy.

Main components:
- ConfigLoader: Load and validate ecsdeploy.yml files
- Environment variable substitution (${VAR_NAME} pattern)
- .env file loading for --envfile
"""

from ecsdeploy.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from ecsdeploy.config.loader import ConfigLoader

__all__ = [
    "ConfigLoader",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
