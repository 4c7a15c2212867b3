"""Command handlers, one per bus topic.

| Topic                   | Body                             | Reply                 |
|-------------------------|----------------------------------|-----------------------|
| <module>.get_state      | <entity_id>                      | current state         |
| <module>.set_state      | <entity_id> <new_value>          | state echoed by hub   |
| <module>.post_service   | <domain> <service> <entity_id>   | service name          |

Bodies are split on single spaces and must have exactly the listed number
of fields. The get_state body is taken whole as the entity id.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ha_bridge.config.topics import BridgeTopics
from ha_bridge.core.errors import (
    HubError,
    MalformedRequestError,
    NoStateError,
    RemoteOperationError,
)
from ha_bridge.core.interfaces import HomeAutomationHub
from ha_bridge.core.models.entity import EntityState
from ha_bridge.core.models.message import Message
from ha_bridge.core.models.state import state_to_text
from ha_bridge.services.reply import format_reply

logger = logging.getLogger(__name__)

HandlerFunc = Callable[[HomeAutomationHub, Message, list[str]], Awaitable[tuple[str, Message]]]


@dataclass(frozen=True)
class CommandHandler:
    """Binds a topic to its body shape and the coroutine that executes it.

    Attributes:
        topic: Topic the handler serves
        field_count: Number of space-delimited fields; None takes the
            whole body as a single field
        execute: Coroutine run with the hub, the message and its fields
    """

    topic: str
    field_count: int | None
    execute: HandlerFunc

    def parse(self, message: Message) -> list[str]:
        """Split and validate the message body.

        Raises:
            MalformedRequestError: If the body has the wrong shape
        """
        text = message.text
        if self.field_count is None:
            fields = [text.strip()]
            expected = 1
        else:
            fields = text.split(" ")
            expected = self.field_count

        if len(fields) != expected or not all(fields):
            raise MalformedRequestError(self.topic, text, expected)
        return fields


async def _fetch(hub: HomeAutomationHub, entity_id: str) -> EntityState:
    try:
        return await hub.get_state(entity_id)
    except HubError as e:
        raise RemoteOperationError(
            f"An error occurred while fetching the entity ({entity_id}): {e}",
            entity_id,
            cause=e,
        ) from e


def _state_text(state: EntityState) -> str:
    value = state.value
    if value is None:
        raise NoStateError(state.entity_id)
    return state_to_text(value)


async def get_state(
    hub: HomeAutomationHub,
    message: Message,
    fields: list[str],
) -> tuple[str, Message]:
    """Reply with the current state of an entity."""
    (entity_id,) = fields
    state = await _fetch(hub, entity_id)
    return format_reply(message, _state_text(state))


async def set_state(
    hub: HomeAutomationHub,
    message: Message,
    fields: list[str],
) -> tuple[str, Message]:
    """Write a new state, keeping the entity's current attributes.

    The entity is read first so the write carries its attributes; if the
    read fails nothing is written.
    """
    entity_id, new_value = fields
    current = await _fetch(hub, entity_id)

    try:
        updated = await hub.set_state(entity_id, new_value, dict(current.attributes))
    except HubError as e:
        raise RemoteOperationError(
            f"An error occurred while setting the state of {entity_id}: {e}",
            entity_id,
            cause=e,
        ) from e

    logger.info(f"State of {entity_id} set to {new_value!r}")
    return format_reply(message, _state_text(updated))


async def post_service(
    hub: HomeAutomationHub,
    message: Message,
    fields: list[str],
) -> tuple[str, Message]:
    """Call a service on an entity and echo the service name.

    The (domain, service) pair is not checked against the capability
    catalog; the hub decides whether the call is valid.
    """
    domain, service, entity_id = fields

    try:
        await hub.call_service(domain, service, {"entity_id": entity_id})
    except HubError as e:
        raise RemoteOperationError(
            f"An error occurred while calling {domain}.{service} on {entity_id}: {e}",
            entity_id,
            cause=e,
        ) from e

    return format_reply(message, service)


def build_handlers(topics: BridgeTopics) -> list[CommandHandler]:
    """Create the handler set for a bridge's topics."""
    return [
        CommandHandler(topic=topics.get_state, field_count=None, execute=get_state),
        CommandHandler(topic=topics.set_state, field_count=2, execute=set_state),
        CommandHandler(topic=topics.post_service, field_count=3, execute=post_service),
    ]
