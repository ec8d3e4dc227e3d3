"""Loading proxy rules from YAML files."""

import logging
from pathlib import Path

from tapwire.errors import ConfigurationError
from tapwire.modules.proxy.rule import ProxyRule

from .env_loader import load_yaml_file

logger = logging.getLogger(__name__)


def load_rule_file(path: Path) -> ProxyRule:
    """Load a rule from a YAML file.

    The rule may be the whole document or sit under a top-level ``rule`` key::

        rule:
          host: "re:\\.example\\.com$"
          port: {range: [8000, 8999]}
          request_path: /api
          response_status: [200, 299]
    """
    if not path.exists():
        raise ConfigurationError(f"rule file not found: {path}")
    data = load_yaml_file(path)
    if "rule" in data:
        data = data["rule"] or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: 'rule' must be a mapping")
    rule = ProxyRule.from_mapping(data)
    logger.debug("Loaded rule from %s: %s", path, rule.describe())
    return rule
