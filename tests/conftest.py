"""Pytest configuration and shared fixtures for bridge tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from ha_bridge.adapters.mock import MockHub
from ha_bridge.config.topics import BridgeTopics
from ha_bridge.core.models import EntityState, Message, ServiceDescriptor
from ha_bridge.models import Config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep host configuration out of the tests."""
    for var in (
        "HA_TOKEN",
        "HA_BASE_URL",
        "HA_TIMEOUT",
        "HUB_ADAPTER",
        "MODULE_NAME",
        "LOG_LEVEL",
        "ENTITY_TYPES",
        "MQTT_BROKER_URL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HA_BRIDGE_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("SECRETS_PATH", str(tmp_path / "secrets"))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("ha_bridge.security.secrets_manager._secrets_manager", None)


@pytest.fixture
def mock_config() -> Config:
    """Fixture providing mock configuration.

    Returns:
        Config instance with test values
    """
    return Config(
        ha_token="test_token_123",
        ha_base_url="http://test-ha:8123",
        ha_timeout=10.0,
        mqtt_broker_url="test-broker",
        log_level="DEBUG",
    )


@pytest.fixture
def topics() -> BridgeTopics:
    return BridgeTopics()


@pytest.fixture
def sample_services() -> list[ServiceDescriptor]:
    """Service catalog with lights and media players."""
    return [
        ServiceDescriptor(domain="light", service="turn_on", description="Turn on"),
        ServiceDescriptor(domain="light", service="turn_off", description="Turn off"),
        ServiceDescriptor(domain="media_player", service="media_play", description="Play"),
        ServiceDescriptor(domain="switch", service="turn_on", description="Turn on switch"),
    ]


@pytest.fixture
def sample_states() -> list[EntityState]:
    """Entity list mixing advertised and non-advertised domains."""
    return [
        EntityState(entity_id="light.kitchen", state="on", attributes={"brightness": 200}),
        EntityState(entity_id="light.bedroom", state="off"),
        EntityState(entity_id="media_player.tv", state="idle"),
        EntityState(entity_id="sensor.temperature", state="22.5"),
        EntityState(entity_id="switch.outlet_1", state="off"),
    ]


@pytest.fixture
def mock_hub() -> MockHub:
    """In-memory hub with the default fixtures."""
    return MockHub()


@pytest.fixture
def mock_hub_client():
    """Mock hub client recording every remote call."""
    client = MagicMock()
    client.name = "mock_client"
    client.get_state = AsyncMock(
        return_value=EntityState(
            entity_id="light.kitchen",
            state="on",
            attributes={"friendly_name": "Kitchen", "brightness": 200},
        )
    )
    client.set_state = AsyncMock()
    client.call_service = AsyncMock(return_value=[])
    client.close = AsyncMock()
    return client


@pytest.fixture
def make_message():
    """Factory for inbound messages with a response topic."""

    def _make(text: str, response_topic: str = "console.reply", **kwargs) -> Message:
        return Message(text=text, response_topics=[response_topic], sender="console", **kwargs)

    return _make
