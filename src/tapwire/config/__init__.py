"""
Configuration management for Tapwire.

Supports multiple configuration sources in order of priority:
1. Environment variables (highest priority)
2. Project .env file (.tapwire/.env)
3. Global config file (~/.tapwire/config.yml)
4. Default values (lowest priority)
"""

from .env_loader import (
    get_global_config_path,
    get_project_env_path,
    load_env_file,
    load_global_config,
    load_project_config,
    load_yaml_file,
)
from .getters import (
    get_bool,
    get_config,
    get_float,
    get_int,
    get_listen_host,
    get_listen_port,
    get_rules_file,
    get_timeout,
    get_verbose,
    get_verify_ssl,
)
from .rules import load_rule_file

__all__ = [
    # env_loader
    "get_global_config_path",
    "get_project_env_path",
    "load_env_file",
    "load_global_config",
    "load_project_config",
    "load_yaml_file",
    # getters
    "get_bool",
    "get_config",
    "get_float",
    "get_int",
    "get_listen_host",
    "get_listen_port",
    "get_rules_file",
    "get_timeout",
    "get_verbose",
    "get_verify_ssl",
    # rules
    "load_rule_file",
]
