"""Reply formatting.

Replies are plain-text messages routed back through the originating
message's response topic stack.
"""

from __future__ import annotations

from ha_bridge.core.errors import BridgeError
from ha_bridge.core.models.message import Message, MessageType


def format_reply(message: Message, text: str) -> tuple[str, Message]:
    """Wrap a result into a reply to ``message``.

    Raises:
        ReplyError: If the message carries no response topic
    """
    return message.reply(text, MessageType.TEXT)


def format_failure(message: Message, error: BridgeError) -> tuple[str, Message]:
    """Wrap a failure into a reply to ``message``.

    The text is the one-line diagnostic; ``params["error"]`` holds the
    condition kind and ``params["entity_id"]`` the entity involved, if any.

    Raises:
        ReplyError: If the message carries no response topic
    """
    topic, reply = message.reply(str(error), MessageType.TEXT)
    reply.params["error"] = error.kind
    if error.entity_id:
        reply.params["entity_id"] = error.entity_id
    return topic, reply
