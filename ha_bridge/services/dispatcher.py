"""Command dispatcher.

Routes inbound bus messages to the handler registered for their topic and
turns the outcome into a reply. Each message goes through::

    received -> validated -> executed -> replied
         \\           \\            \\
          +-----------+------------+--> failed

Messages are processed one at a time, so replies leave in the order the
requests arrived and two requests never race on the same entity.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from ha_bridge.core.errors import (
    BridgeError,
    BusError,
    ReplyError,
    UnexpectedError,
    UnknownTopicError,
)
from ha_bridge.core.models.message import Message
from ha_bridge.services.handlers import CommandHandler
from ha_bridge.services.reply import format_failure

if TYPE_CHECKING:
    from ha_bridge.core.interfaces import HomeAutomationHub

logger = logging.getLogger(__name__)


class MessageBus(Protocol):
    """Transport the dispatch loop reads from and replies through."""

    async def receive(self) -> tuple[str, Message]: ...

    async def send(self, topic: str, message: Message) -> None: ...


@dataclass
class DispatchMetrics:
    """Metrics for a single topic."""

    topic: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    unreplied: int = 0
    total_latency_ms: float = 0.0
    max_latency_ms: float = 0.0
    error_counts: dict[str, int] = field(default_factory=dict)

    @property
    def avg_latency_ms(self) -> float:
        if self.total == 0:
            return 0.0
        return self.total_latency_ms / self.total

    def record(
        self,
        latency_ms: float,
        error: BridgeError | None = None,
        unreplied: bool = False,
    ) -> None:
        """Record one handled message.

        Args:
            latency_ms: Handling time
            error: Failure, if the request failed
            unreplied: The request was carried out but had no response topic
        """
        self.total += 1
        if unreplied:
            self.unreplied += 1
        self.total_latency_ms += latency_ms
        self.max_latency_ms = max(self.max_latency_ms, latency_ms)
        if error is None:
            self.succeeded += 1
        else:
            self.failed += 1
            self.error_counts[error.kind] = self.error_counts.get(error.kind, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary for JSON serialization."""
        return {
            "topic": self.topic,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "unreplied": self.unreplied,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "max_latency_ms": round(self.max_latency_ms, 2),
            "error_counts": dict(self.error_counts),
        }


class CommandDispatcher:
    """Topic -> handler registry and dispatch loop."""

    def __init__(self, hub: HomeAutomationHub) -> None:
        """Initialize an empty dispatcher.

        Args:
            hub: Hub the handlers operate on
        """
        self.hub = hub
        self._handlers: dict[str, CommandHandler] = {}
        self._metrics: dict[str, DispatchMetrics] = {}

    def register(self, handler: CommandHandler) -> None:
        """Register a handler for its topic, replacing any previous one."""
        if handler.topic in self._handlers:
            logger.warning(f"Handler for '{handler.topic}' already registered, replacing")

        self._handlers[handler.topic] = handler
        self._metrics[handler.topic] = DispatchMetrics(topic=handler.topic)
        logger.info(f"Registered handler: {handler.topic}")

    def unregister(self, topic: str) -> bool:
        """Unregister the handler of a topic.

        Returns:
            True if a handler was removed, False if none was registered
        """
        if topic in self._handlers:
            del self._handlers[topic]
            logger.info(f"Unregistered handler: {topic}")
            return True
        return False

    def get_handler(self, topic: str) -> CommandHandler | None:
        return self._handlers.get(topic)

    def topics(self) -> list[str]:
        """Topics with a registered handler."""
        return list(self._handlers.keys())

    async def dispatch(self, topic: str, message: Message) -> tuple[str, Message]:
        """Run one message through its handler.

        Args:
            topic: Topic the message arrived on
            message: Inbound message

        Returns:
            Tuple of (reply topic, reply message)

        Raises:
            UnknownTopicError: If no handler serves the topic
            MalformedRequestError: If the body has the wrong shape
            RemoteOperationError: If the hub call fails
            ReplyError: If the message cannot be replied to
        """
        handler = self._handlers.get(topic)
        if handler is None:
            raise UnknownTopicError(topic)

        fields = handler.parse(message)
        return await handler.execute(self.hub, message, fields)

    async def handle(self, topic: str, message: Message) -> tuple[str, Message] | None:
        """Dispatch a message and convert any failure into a failure reply.

        Returns:
            Reply to send, or None when there is nobody to reply to
        """
        start_time = time.time()
        error: BridgeError | None = None
        unreplied = False
        try:
            logger.info(f"Dispatching '{topic}': {message.text!r}")
            return await self.dispatch(topic, message)

        except ReplyError as e:
            # Only raised once the handler has done its work
            unreplied = True
            logger.warning(f"Handled '{topic}' but the result was not sent back: {e}")
            return None

        except BridgeError as e:
            error = e
            logger.error(f"Failed to handle '{topic}' [{e.kind}]: {e}")
            return self._failure_reply(message, e)

        except Exception as e:
            error = UnexpectedError(f"Unexpected error handling {topic}: {e}")
            logger.error(f"Unexpected error handling '{topic}': {e}", exc_info=True)
            return self._failure_reply(message, error)

        finally:
            latency_ms = (time.time() - start_time) * 1000
            metrics = self._metrics.setdefault(topic, DispatchMetrics(topic=topic))
            metrics.record(latency_ms, error, unreplied)

    def _failure_reply(self, message: Message, error: BridgeError) -> tuple[str, Message] | None:
        try:
            return format_failure(message, error)
        except ReplyError:
            logger.warning(f"No response topic, failure not reported to sender: {error}")
            return None

    async def run(self, bus: MessageBus) -> None:
        """Receive, handle and reply until cancelled.

        A failed send is logged and the loop moves on; the hub side effect
        of the request has already happened and is not undone.
        """
        logger.info(f"Dispatcher listening on: {', '.join(self.topics())}")
        while True:
            topic, message = await bus.receive()
            outbound = await self.handle(topic, message)
            if outbound is None:
                continue

            reply_topic, reply = outbound
            try:
                await bus.send(reply_topic, reply)
            except BusError as e:
                logger.error(f"An error occurred while sending the reply to '{reply_topic}': {e}")

    def get_metrics(self) -> list[dict[str, Any]]:
        return [metrics.to_dict() for metrics in self._metrics.values()]

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"<CommandDispatcher({len(self)} handlers: {', '.join(self.topics())})>"
