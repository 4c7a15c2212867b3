"""Core abstractions for the bridge.

Modules:
    errors: Error taxonomy shared by every component
    interfaces: Protocol the hub clients implement
    models: Hub-side and bus-side data models
"""

from ha_bridge.core.interfaces import HomeAutomationHub
from ha_bridge.core.models import (
    EntityState,
    Message,
    MessageType,
    ModuleDetails,
    ServiceDescriptor,
)

__all__ = [
    "HomeAutomationHub",
    "EntityState",
    "Message",
    "MessageType",
    "ModuleDetails",
    "ServiceDescriptor",
]
