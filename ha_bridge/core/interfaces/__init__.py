"""Protocol definitions for hub clients."""

from ha_bridge.core.interfaces.hub import HomeAutomationHub

__all__ = ["HomeAutomationHub"]
