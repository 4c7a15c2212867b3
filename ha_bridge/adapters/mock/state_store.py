"""In-memory state storage for the mock hub.

Keeps the service catalog and entity states, and applies service calls
to simulate device behavior.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any

from ha_bridge.core.errors import EntityNotFoundError, HubError
from ha_bridge.core.models import EntityState, ServiceDescriptor

from .fixtures import DEFAULT_SERVICES, DEFAULT_STATES

logger = logging.getLogger(__name__)

# Resulting state per service; services not listed leave the state unchanged
SERVICE_TRANSITIONS: dict[str, str] = {
    "turn_on": "on",
    "turn_off": "off",
    "media_play": "playing",
    "media_pause": "paused",
    "media_stop": "idle",
    "alarm_arm_home": "armed_home",
    "alarm_arm_away": "armed_away",
    "alarm_arm_night": "armed_night",
    "alarm_disarm": "disarmed",
}


class StateStore:
    """In-memory storage for mock services and entity states.

    Attributes:
        services: Cataloged services
        states: Dict mapping entity_id to EntityState
    """

    def __init__(
        self,
        services: list[ServiceDescriptor] | None = None,
        states: dict[str, EntityState] | None = None,
    ) -> None:
        """Initialize state store.

        Args:
            services: Service catalog (default: DEFAULT_SERVICES)
            states: Initial state dict (default: DEFAULT_STATES)
        """
        self.services: list[ServiceDescriptor] = list(
            DEFAULT_SERVICES if services is None else services
        )
        self.states: dict[str, EntityState] = copy.deepcopy(
            DEFAULT_STATES if states is None else states
        )

    def get_state(self, entity_id: str) -> EntityState:
        """Get current state of an entity.

        Raises:
            EntityNotFoundError: If the entity is unknown
        """
        state = self.states.get(entity_id)
        if state is None:
            raise EntityNotFoundError(entity_id)
        return state

    def set_state(
        self,
        entity_id: str,
        state: Any,
        attributes: dict[str, Any] | None = None,
    ) -> EntityState:
        """Set entity state, creating the entity if needed.

        Attributes are replaced, as Home Assistant does on a state write.

        Args:
            entity_id: Entity identifier
            state: New state value
            attributes: New attributes

        Returns:
            The stored EntityState
        """
        now = datetime.now(timezone.utc)
        current = self.states.get(entity_id)
        changed = current is None or current.state != state

        self.states[entity_id] = EntityState(
            entity_id=entity_id,
            state=state,
            attributes=dict(attributes or {}),
            last_changed=now if changed else current.last_changed,
            last_updated=now,
        )
        return self.states[entity_id]

    def has_service(self, domain: str, service: str) -> bool:
        return any(s.domain == domain and s.service == service for s in self.services)

    def apply_service(
        self,
        domain: str,
        service: str,
        service_data: dict[str, Any],
    ) -> list[EntityState]:
        """Apply a service call and return the changed states.

        Raises:
            HubError: If the service is not cataloged for the domain
            EntityNotFoundError: If the target entity is unknown
        """
        if not self.has_service(domain, service):
            raise HubError(f"Service not found: {domain}.{service}")

        entity_ids = service_data.get("entity_id") or []
        if isinstance(entity_ids, str):
            entity_ids = [entity_ids]

        changed: list[EntityState] = []
        for entity_id in entity_ids:
            current = self.get_state(entity_id)
            new_state = self._next_state(current, service)
            if new_state != current.state:
                changed.append(self.set_state(entity_id, new_state, current.attributes))
        return changed

    def _next_state(self, current: EntityState, service: str) -> Any:
        if service == "toggle":
            return "off" if current.state == "on" else "on"
        return SERVICE_TRANSITIONS.get(service, current.state)

    def reset(self) -> None:
        """Reset services and states to defaults."""
        self.services = list(DEFAULT_SERVICES)
        self.states = copy.deepcopy(DEFAULT_STATES)
