"""Configuration getter functions."""

import os
from pathlib import Path
from typing import Any

from tapwire.errors import ConfigurationError

from .env_loader import load_global_config, load_project_config

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


def get_config(key: str, project_dir: Path | None = None, default: Any = None) -> Any:
    """
    Get configuration value with priority:
    1. Environment variable
    2. Project .env file
    3. Global config file
    4. Default value

    Args:
        key: Configuration key
        project_dir: Optional project directory
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    # 1. Check environment variable
    env_value = os.environ.get(key)
    if env_value:
        return env_value

    # 2. Check project .env file
    project_config = load_project_config(project_dir)
    if key in project_config:
        return project_config[key]

    # 3. Check global config
    global_config = load_global_config()
    if key in global_config:
        return global_config[key]

    # 4. Return default
    return default


def get_bool(key: str, project_dir: Path | None = None, default: bool = False) -> bool:
    """Get a boolean configuration value."""
    value = get_config(key, project_dir)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key}: expected a boolean, got {value!r}")


def get_int(key: str, project_dir: Path | None = None, default: int = 0) -> int:
    """Get an integer configuration value."""
    value = get_config(key, project_dir)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key}: expected an integer, got {value!r}") from exc


def get_float(key: str, project_dir: Path | None = None, default: float = 0.0) -> float:
    """Get a float configuration value."""
    value = get_config(key, project_dir)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key}: expected a number, got {value!r}") from exc


def get_listen_host(project_dir: Path | None = None) -> str:
    """Get the address the proxy server binds to (default: 127.0.0.1)."""
    return str(get_config("TAPWIRE_LISTEN_HOST", project_dir, default="127.0.0.1"))


def get_listen_port(project_dir: Path | None = None) -> int:
    """Get the port the proxy server listens on (default: 8080)."""
    return get_int("TAPWIRE_LISTEN_PORT", project_dir, default=8080)


def get_timeout(project_dir: Path | None = None) -> float:
    """Get the upstream request timeout in seconds (default: 30)."""
    return get_float("TAPWIRE_TIMEOUT", project_dir, default=30.0)


def get_verify_ssl(project_dir: Path | None = None) -> bool:
    """Get whether upstream TLS certificates are verified (default: no)."""
    return get_bool("TAPWIRE_VERIFY_SSL", project_dir, default=False)


def get_rules_file(project_dir: Path | None = None) -> Path | None:
    """Get the path of the YAML rule file, if one is configured."""
    value = get_config("TAPWIRE_RULES_FILE", project_dir)
    return Path(value) if value else None


def get_verbose(project_dir: Path | None = None) -> bool:
    """Get whether verbose logging is enabled."""
    return get_bool("TAPWIRE_VERBOSE", project_dir, default=False)
