"""Mock hub adapter for testing and development.

Usage:
    >>> from ha_bridge.adapters.mock import MockHub
    >>> hub = MockHub({"latency_ms": 100})
"""

from ha_bridge.adapters.mock.adapter import MockHub
from ha_bridge.adapters.mock.fixtures import DEFAULT_SERVICES, DEFAULT_STATES

__all__ = [
    "MockHub",
    "DEFAULT_SERVICES",
    "DEFAULT_STATES",
]
