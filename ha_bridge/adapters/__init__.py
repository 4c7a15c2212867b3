"""Hub adapter selection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ha_bridge.core.interfaces import HomeAutomationHub

if TYPE_CHECKING:
    from ha_bridge.models import Config

logger = logging.getLogger(__name__)

HUB_ADAPTERS = ("homeassistant", "mock")


def create_hub(config: Config) -> HomeAutomationHub:
    """Instantiate the hub adapter named by ``config.hub_adapter``.

    Args:
        config: Application configuration

    Returns:
        Hub client ready for use

    Raises:
        ValueError: If the adapter name is unknown
    """
    adapter = config.hub_adapter.lower()
    if adapter == "homeassistant":
        from ha_bridge.services.ha_client import HomeAssistantClient

        hub: HomeAutomationHub = HomeAssistantClient(config)
    elif adapter == "mock":
        from ha_bridge.adapters.mock import MockHub

        hub = MockHub(config.mock_options)
    else:
        raise ValueError(f"Unknown hub adapter '{config.hub_adapter}'. Available: {HUB_ADAPTERS}")

    logger.info(f"Using hub adapter: {hub.name}")
    return hub
