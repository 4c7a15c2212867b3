"""Bridge entry point.

Startup order:
    1. Build the capability catalog from the hub (fatal on failure)
    2. Connect to the bus and publish the module details
    3. Subscribe to the handled topics and run the dispatch loop
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import yaml
from pythonjsonlogger import jsonlogger

from ha_bridge.adapters import create_hub
from ha_bridge.config.topics import BridgeTopics
from ha_bridge.core.errors import BridgeError
from ha_bridge.core.interfaces import HomeAutomationHub
from ha_bridge.core.models.module import ModuleDetails
from ha_bridge.models import Config
from ha_bridge.services.capabilities import CapabilityIndexBuilder
from ha_bridge.services.dispatcher import CommandDispatcher
from ha_bridge.services.handlers import build_handlers
from ha_bridge.services.mqtt_client import MqttBus

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    formatter = jsonlogger.JsonFormatter(  # type: ignore[attr-defined]
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Reduce noise from transport libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("paho").setLevel(logging.WARNING)


async def start(
    config: Config,
    hub: HomeAutomationHub,
    bus: MqttBus,
) -> CommandDispatcher:
    """Build capabilities, register the module and subscribe.

    Returns:
        Dispatcher ready to run on ``bus``

    Raises:
        CatalogInconsistencyError: If the catalog does not match the entities
        HubError: If the hub cannot be queried
        BusError: If the bus is unreachable
    """
    topics = BridgeTopics(module_name=config.module_name, registration=config.registration_topic)

    builder = CapabilityIndexBuilder(topics.post_service, config.entity_types)
    capabilities = await builder.discover(hub)
    logger.debug(f"Capabilities: {dict(capabilities)}")

    await bus.connect()
    details = ModuleDetails.from_capabilities(
        config.module_name, config.module_version, capabilities
    )
    await bus.send(topics.registration, details.to_message(), retain=True)
    logger.info(f"Registered module '{config.module_name}' with {len(capabilities)} capabilities")

    dispatcher = CommandDispatcher(hub)
    for handler in build_handlers(topics):
        dispatcher.register(handler)
    bus.listen(topics.subscriptions())
    return dispatcher


async def run(
    config: Config,
    hub: HomeAutomationHub | None = None,
    bus: MqttBus | None = None,
) -> None:
    """Run the bridge until SIGINT/SIGTERM or cancellation."""
    hub = hub or create_hub(config)
    bus = bus or MqttBus(config.mqtt_broker_url, config.mqtt_broker_port, config.client_id)

    logger.info(f"Bridge '{config.module_name}' starting up")
    logger.info(f"Hub adapter: {hub.name}")
    logger.info(f"MQTT broker: {config.mqtt_broker_url}:{config.mqtt_broker_port}")

    dispatcher: CommandDispatcher | None = None
    try:
        dispatcher = await start(config, hub, bus)
        task = asyncio.create_task(dispatcher.run(bus))

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, task.cancel)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread
                pass

        try:
            await task
        except asyncio.CancelledError:
            logger.info("Dispatch loop cancelled")
    finally:
        logger.info("Bridge shutting down")
        if dispatcher is not None:
            logger.info("Dispatch metrics", extra={"metrics": dispatcher.get_metrics()})
        bus.disconnect()
        await hub.close()


def main() -> None:
    """Console entry point."""
    setup_logging()

    try:
        config = Config()
        logging.getLogger().setLevel(config.log_level.upper())
        asyncio.run(run(config))
    except BridgeError as e:
        logger.critical(f"Bridge stopped [{e.kind}]: {e}")
        sys.exit(1)
    except (ValueError, yaml.YAMLError) as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)
