"""MQTT transport for bus messages.

paho runs its network loop in a background thread. Inbound messages are
decoded there and handed to the asyncio loop through a queue, so all
handling happens on the event loop, one message at a time.

Payload: a JSON-encoded ``Message`` (see ``ha_bridge.core.models.message``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import paho.mqtt.client as mqtt
from pydantic import ValidationError

from ha_bridge.core.errors import BusError
from ha_bridge.core.models.message import Message

logger = logging.getLogger(__name__)


class MqttBus:
    """MQTT client wrapper exposing listen/receive/send."""

    def __init__(
        self,
        broker_url: str = "localhost",
        port: int = 1883,
        client_id: str = "",
        qos: int = 1,
    ):
        """
        Initialize MQTT bus.

        Args:
            broker_url: MQTT broker hostname/IP
            port: MQTT broker port (default 1883)
            client_id: MQTT client identifier
            qos: Quality of Service for subscriptions and publishes
        """
        self.broker_url = broker_url
        self.port = port
        self.client_id = client_id
        self.qos = qos
        self.client: mqtt.Client | None = None
        self._connected = False
        self._topics: list[str] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[tuple[str, Message]] | None = None

    @property
    def connected(self) -> bool:
        return self._connected

    def _bind_loop(self) -> None:
        """Attach the inbound queue to the running event loop."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

    async def connect(self) -> None:
        """Connect to the MQTT broker and start the network loop.

        Raises:
            BusError: If the broker cannot be reached
        """
        if self.client is not None and self._connected:
            return

        self._bind_loop()
        self.client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        logger.info(f"Connecting to MQTT broker at {self.broker_url}:{self.port}")
        try:
            await asyncio.to_thread(self.client.connect, self.broker_url, self.port, 60)
        except OSError as e:
            logger.error(f"Failed to connect to MQTT broker: {e}")
            self.client = None
            raise BusError(f"Cannot connect to MQTT broker {self.broker_url}:{self.port}") from e

        self.client.loop_start()

    def disconnect(self) -> None:
        """Disconnect from MQTT broker."""
        if self.client is not None:
            self.client.loop_stop()
            self.client.disconnect()
            self.client = None
            self._connected = False
            logger.info("Disconnected from MQTT broker")

    def listen(self, topics: list[str]) -> None:
        """Subscribe to topics; subscriptions are restored on reconnect."""
        for topic in topics:
            if topic not in self._topics:
                self._topics.append(topic)
            if self.client is not None:
                self.client.subscribe(topic, qos=self.qos)
                logger.info(f"Subscribed to {topic}")

    async def receive(self) -> tuple[str, Message]:
        """Wait for the next inbound message.

        Returns:
            Tuple of (topic, message)
        """
        if self._queue is None:
            raise BusError("MQTT bus is not connected")
        return await self._queue.get()

    async def send(self, topic: str, message: Message, retain: bool = False) -> None:
        """Publish a message.

        Raises:
            BusError: If not connected, the topic is invalid or the publish is rejected
        """
        if self.client is None:
            raise BusError(f"Cannot publish to {topic}: not connected to MQTT broker")

        try:
            result = self.client.publish(topic, message.encode(), qos=self.qos, retain=retain)
        except ValueError as e:
            # paho rejects empty topics and topics with wildcards
            raise BusError(f"Cannot publish to {topic!r}: {e}") from e
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"Failed to publish to {topic}: {mqtt.error_string(result.rc)}")

        logger.debug(f"Published to {topic}: {message.text!r}")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when connected to MQTT broker."""
        if reason_code.is_failure:
            self._connected = False
            logger.error(f"Failed to connect to MQTT broker: {reason_code}")
            return

        self._connected = True
        logger.info("Successfully connected to MQTT broker")
        for topic in self._topics:
            client.subscribe(topic, qos=self.qos)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when disconnected from MQTT broker."""
        self._connected = False
        logger.warning(f"Disconnected from MQTT broker: {reason_code}")

    def _on_message(self, client, userdata, msg: Any) -> None:
        """Decode an inbound message and hand it to the event loop."""
        try:
            message = Message.decode(msg.payload)
        except ValidationError as e:
            logger.warning(f"Dropping undecodable message on {msg.topic}: {e}")
            return

        if not message.request_topic:
            message.request_topic = msg.topic

        if self._loop is None or self._queue is None:
            logger.warning(f"Dropping message on {msg.topic}: event loop not bound")
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, (msg.topic, message))
