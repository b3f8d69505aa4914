"""
YAML configuration file support.

A config file provides defaults for CLI options. Keys use the long option
names without the leading dashes, for example::

    vuln-type: [os, library]
    severity: [CRITICAL, HIGH]
    ignore-unfixed: true
    timeout: 120
    format: json
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from core.exceptions import ConfigurationException

logger = logging.getLogger(__name__)

CONFIG_KEYS = {
    "vuln-type": "vuln_type",
    "severity": "severity",
    "ignore-unfixed": "ignore_unfixed",
    "timeout": "timeout",
    "cache-dir": "cache_dir",
    "platform": "platform",
    "format": "format",
    "exit-code": "exit_code",
}
"""Config file keys mapped to argparse destinations."""


def load_config(path: Path) -> dict[str, Any]:
    """
    Load a YAML config file.

    Args:
        path: Config file path

    Returns:
        Mapping of argparse destination names to values; list-valued options
        may be given either as YAML lists or comma-separated strings

    Raises:
        ConfigurationException: If the file is unreadable or holds invalid keys or values
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationException(f"Config file not found: {path}") from e
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationException(f"Failed to read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationException(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigurationException(
            f"Unknown key(s) in {path}: {', '.join(unknown)}. "
            f"Valid keys: {', '.join(CONFIG_KEYS)}"
        )

    config = {}
    for key, value in data.items():
        dest = CONFIG_KEYS[key]
        if dest == "ignore_unfixed" and not isinstance(value, bool):
            raise ConfigurationException(
                f"Invalid value for {key} in {path}: expected true or false, got {value!r}"
            )
        if dest in ("vuln_type", "severity") and isinstance(value, list):
            value = ",".join(str(v) for v in value)
        config[dest] = value

    logger.debug(f"Loaded config from {path}: {sorted(config)}")
    return config
