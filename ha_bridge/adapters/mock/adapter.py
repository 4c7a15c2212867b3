"""Mock hub adapter implementation.

Provides a fully-functional in-memory hub for development and tests
without a running Home Assistant instance.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from ha_bridge.core.errors import HubError
from ha_bridge.core.models import EntityState, ServiceDescriptor

from .state_store import StateStore

logger = logging.getLogger(__name__)


class MockHub:
    """Mock home automation hub.

    Configuration:
        latency_ms: Simulated network latency in milliseconds (default: 0)
        failure_rate: Probability of a remote call failing (0.0-1.0, default: 0.0)
        services: Optional custom service catalog
        states: Optional custom initial states

    Example:
        >>> hub = MockHub({"latency_ms": 100})
        >>> state = await hub.get_state("light.kitchen")
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        """Initialize mock hub.

        Args:
            config: Configuration dictionary
        """
        config = config or {}
        self.latency_ms = config.get("latency_ms", 0)
        self.failure_rate = config.get("failure_rate", 0.0)
        self.state_store = StateStore(
            services=config.get("services"),
            states=config.get("states"),
        )
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

        logger.info(
            f"MockHub initialized: latency={self.latency_ms}ms, "
            f"failure_rate={self.failure_rate}"
        )

    @property
    def name(self) -> str:
        return "mock"

    async def get_services(self) -> list[ServiceDescriptor]:
        await self._before_call("get_services")
        return list(self.state_store.services)

    async def get_states(self) -> list[EntityState]:
        await self._before_call("get_states")
        return list(self.state_store.states.values())

    async def get_state(self, entity_id: str) -> EntityState:
        await self._before_call("get_state", entity_id)
        return self.state_store.get_state(entity_id)

    async def call_service(
        self,
        domain: str,
        service: str,
        service_data: dict[str, Any] | None = None,
    ) -> list[EntityState]:
        await self._before_call("call_service", domain, service, service_data)
        changed = self.state_store.apply_service(domain, service, service_data or {})
        logger.info(f"MockHub executed {domain}.{service}: {len(changed)} state(s) changed")
        return changed

    async def set_state(
        self,
        entity_id: str,
        state: str,
        attributes: dict[str, Any] | None = None,
    ) -> EntityState:
        await self._before_call("set_state", entity_id, state, attributes)
        return self.state_store.set_state(entity_id, state, attributes)

    async def close(self) -> None:
        logger.info("MockHub closed")

    async def _before_call(self, operation: str, *args: Any) -> None:
        """Record the call, simulate latency and failures."""
        self.calls.append((operation, args))
        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000)
        if self.failure_rate > 0 and random.random() < self.failure_rate:
            logger.warning(f"Simulated failure for {operation}{args}")
            raise HubError(f"Simulated failure: {operation}")

    def reset_states(self) -> None:
        """Reset all states to defaults."""
        self.state_store.reset()
        self.calls.clear()
        logger.info("MockHub states reset to defaults")
