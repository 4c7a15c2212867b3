"""Home automation hub protocol definition.

Defines the remote operations the bridge needs from a hub. The Home
Assistant REST client and the in-memory mock hub both conform to it
structurally.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable

from ha_bridge.core.models.entity import EntityState, ServiceDescriptor


@runtime_checkable
class HomeAutomationHub(Protocol):
    """Protocol for hub clients.

    Implementations raise ``HubError`` (or ``EntityNotFoundError``) from
    ``ha_bridge.core.errors`` when a remote call fails. Retries and
    timeouts, if any, are the implementation's business.

    Lifecycle:
        1. Create instance with configuration
        2. Call get_services()/get_states() once to build the catalog
        3. Serve get_state(), set_state(), call_service() per request
        4. Call close() when done
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Hub identifier (e.g., 'homeassistant', 'mock')."""
        ...

    @abstractmethod
    async def get_services(self) -> list[ServiceDescriptor]:
        """List every service of every domain."""
        ...

    @abstractmethod
    async def get_states(self) -> list[EntityState]:
        """List the current state of every entity."""
        ...

    @abstractmethod
    async def get_state(self, entity_id: str) -> EntityState:
        """Get the state and attributes of one entity.

        Raises:
            EntityNotFoundError: If the entity does not exist
        """
        ...

    @abstractmethod
    async def call_service(
        self,
        domain: str,
        service: str,
        service_data: dict[str, Any] | None = None,
    ) -> list[EntityState]:
        """Call a service.

        Args:
            domain: Service domain (e.g., 'light')
            service: Service name (e.g., 'turn_on')
            service_data: Arbitrary JSON service data

        Returns:
            States the hub reports as changed by the call
        """
        ...

    @abstractmethod
    async def set_state(
        self,
        entity_id: str,
        state: str,
        attributes: dict[str, Any] | None = None,
    ) -> EntityState:
        """Write a new state for an entity.

        Returns:
            The state as persisted by the hub
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        ...
