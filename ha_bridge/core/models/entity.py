"""Hub entity and service models.

EntityState mirrors one entry of Home Assistant's ``/api/states``;
ServiceDescriptor is one service of one domain from ``/api/services``.
Both are sourced from the hub on demand and never cached by the bridge.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ha_bridge.core.models.state import StateValue, parse_state


def entity_domain(entity_id: str) -> str:
    """Return the domain prefix of an entity id ("light.kitchen" -> "light")."""
    return entity_id.split(".", 1)[0]


class ServiceDescriptor(BaseModel):
    """A service the hub offers for a domain.

    Examples:
        >>> ServiceDescriptor(
        ...     domain="light",
        ...     service="turn_on",
        ...     description="Turn on one or more lights",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., description="Domain the service belongs to")
    service: str = Field(..., description="Service name (turn_on, media_play, ...)")
    description: str = Field(default="", description="Human description")

    @classmethod
    def from_api(cls, payload: list[dict[str, Any]]) -> list[ServiceDescriptor]:
        """Flatten an ``/api/services`` payload.

        Services without a description fall back to their display name, then
        to the service key.

        Args:
            payload: List of ``{"domain": ..., "services": {name: {...}}}``

        Returns:
            One ServiceDescriptor per (domain, service) pair
        """
        descriptors: list[ServiceDescriptor] = []
        for entry in payload:
            domain = entry.get("domain", "")
            for service, details in (entry.get("services") or {}).items():
                details = details or {}
                description = details.get("description") or details.get("name") or service
                descriptors.append(
                    cls(domain=domain, service=service, description=description)
                )
        return descriptors


class EntityState(BaseModel):
    """Current state of a hub entity.

    ``state`` keeps the raw JSON value; ``value`` is its tagged form.

    Examples:
        >>> EntityState(
        ...     entity_id="light.living_room",
        ...     state="on",
        ...     attributes={"brightness": 255, "friendly_name": "Living Room"}
        ... )
    """

    model_config = ConfigDict(extra="ignore")

    entity_id: str = Field(..., description="Unique entity identifier")

    state: bool | int | float | str | None = Field(
        default=None,
        description="Raw state value as reported by the hub",
    )

    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Entity-specific attributes",
    )

    last_changed: datetime | None = Field(default=None)
    last_updated: datetime | None = Field(default=None)

    @property
    def domain(self) -> str:
        """Entity domain derived from the id prefix."""
        return entity_domain(self.entity_id)

    @property
    def value(self) -> StateValue | None:
        """Tagged state value, or None if the hub reported no state."""
        return parse_state(self.state)
