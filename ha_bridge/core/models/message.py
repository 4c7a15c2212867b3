"""Bus message envelope.

A Message travels as JSON on the bus. ``response_topics`` is a stack of
return addresses: the front entry is where a reply must be published. A
module replying to a message pops that entry, so multi-hop requests can
unwind back to the original sender.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from ha_bridge.core.errors import ReplyError


class MessageType(str, Enum):
    """Kind of payload carried in ``Message.text``."""

    TEXT = "text"
    AUDIO = "audio"
    PHOTO = "photo"
    MODULE_INFO = "module_info"
    UNKNOWN = "unknown"


class Message(BaseModel):
    """Message exchanged between modules on the bus.

    Attributes:
        text: Payload (plain text for TEXT messages)
        message_type: Payload kind
        request_topic: Topic the message was published on
        response_topics: Return address stack, next hop first
        sender: Identifier of the publishing module or user
        starting_module: Module that started the exchange
        params: Free-form string parameters

    Examples:
        >>> msg = Message(text="light.kitchen", response_topics=["console"])
        >>> topic, reply = msg.reply("on", MessageType.TEXT)
        >>> topic, reply.text
        ('console', 'on')
    """

    text: str = Field(default="", description="Message payload")
    message_type: MessageType = Field(default=MessageType.TEXT)
    request_topic: str = Field(default="", description="Topic the message was sent to")
    response_topics: list[str] = Field(
        default_factory=list,
        description="Return address stack (next hop first)",
    )
    sender: str = Field(default="")
    starting_module: str = Field(default="")
    params: dict[str, str] = Field(default_factory=dict)

    def reply(self, text: str, message_type: MessageType) -> tuple[str, Message]:
        """Build a reply correlated to this message.

        Args:
            text: Reply payload
            message_type: Reply payload kind

        Returns:
            Tuple of (topic to publish on, reply message)

        Raises:
            ReplyError: If the message carries no response topic
        """
        if not self.response_topics:
            raise ReplyError(f"Message on '{self.request_topic}' has no response topic")

        topic, *remaining = self.response_topics
        reply = self.model_copy(
            update={
                "text": text,
                "message_type": message_type,
                "request_topic": topic,
                "response_topics": remaining,
                "params": dict(self.params),
            }
        )
        return topic, reply

    def encode(self) -> bytes:
        """Serialize for the wire."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def decode(cls, payload: bytes | str) -> Message:
        """Deserialize from the wire.

        Raises:
            pydantic.ValidationError: If the payload is not a valid message
        """
        return cls.model_validate_json(payload)
