"""YAML module configuration loader.

The configuration file is shared between bus modules; each module reads
its own top-level section::

    homeassistant:
      url: http://homeassistant.local:8123
      token: <long-lived access token>
      entity_types: [light, media_player]
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Default config paths (in order of precedence)
CONFIG_PATHS = [
    Path("/app/config/config.yaml"),  # Docker container
    Path("config.yaml"),  # Local development
    Path("config/config.yaml"),
]

# Short keys accepted in the YAML section
KEY_ALIASES = {
    "url": "ha_base_url",
    "token": "ha_token",
    "timeout": "ha_timeout",
}


def find_config_file() -> Path | None:
    """Find the configuration file.

    ``HA_BRIDGE_CONFIG`` wins over the default paths.

    Returns:
        Path to config file or None if not found
    """
    env_path = os.getenv("HA_BRIDGE_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path
        logger.warning(f"HA_BRIDGE_CONFIG points to a missing file: {env_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def load_module_config(module_name: str, config_path: Path | None = None) -> dict[str, Any]:
    """Load the YAML section of one module.

    Args:
        module_name: Top-level section to read
        config_path: Explicit config file (searches default paths if omitted)

    Returns:
        Section values with short keys expanded, or an empty dict

    Raises:
        yaml.YAMLError: If the config file is invalid
    """
    if config_path is None:
        config_path = find_config_file()

    if config_path is None:
        logger.debug("No config file found, using environment and defaults")
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    section = data.get(module_name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{module_name}' in {config_path} must be a mapping")

    logger.info(f"Loaded '{module_name}' config from: {config_path}")
    return {KEY_ALIASES.get(key, key): value for key, value in section.items()}
