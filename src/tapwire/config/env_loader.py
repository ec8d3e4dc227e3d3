"""Environment variable and configuration file loading."""

from pathlib import Path
from typing import Any

import yaml

from tapwire.errors import ConfigurationError


def get_global_config_path() -> Path:
    """Return the path of the global ~/.tapwire/config.yml file."""
    return Path.home() / ".tapwire" / "config.yml"


def get_project_env_path(project_dir: Path | None = None) -> Path:
    """Return the path of the project .tapwire/.env file."""
    return (project_dir or Path.cwd()) / ".tapwire" / ".env"


def load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from .env file."""
    env_vars = {}
    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    # Remove quotes if present
                    value = value.strip().strip("\"'")
                    env_vars[key.strip()] = value
    return env_vars


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; a missing or empty file loads as an empty dict."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")
    return data


def load_global_config() -> dict[str, Any]:
    """Load global configuration from ~/.tapwire/config.yml."""
    return load_yaml_file(get_global_config_path())


def load_project_config(project_dir: Path | None = None) -> dict[str, str]:
    """Load project-specific configuration from .tapwire/.env."""
    return load_env_file(get_project_env_path(project_dir))
