"""Data models shared by the bridge.

Hub-side models (entities, services, tagged state values) and bus-side
models (messages, module details).
"""

from ha_bridge.core.models.entity import EntityState, ServiceDescriptor, entity_domain
from ha_bridge.core.models.message import Message, MessageType
from ha_bridge.core.models.module import ModuleDetails
from ha_bridge.core.models.state import (
    BooleanState,
    DecimalState,
    IntegerState,
    StateValue,
    TextState,
    parse_state,
    state_to_text,
)

__all__ = [
    "EntityState",
    "ServiceDescriptor",
    "entity_domain",
    "Message",
    "MessageType",
    "ModuleDetails",
    "BooleanState",
    "DecimalState",
    "IntegerState",
    "StateValue",
    "TextState",
    "parse_state",
    "state_to_text",
]
