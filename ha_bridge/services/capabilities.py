"""Capability catalog discovery.

Cross-references the hub's service catalog with its entity list to
advertise one command per (entity, service) pair::

    "Turn on light.kitchen" -> "homeassistant.post_service light turn_on light.kitchen"

The catalog is built once at startup and never refreshed: entities or
services added on the hub later are not advertised until the bridge
restarts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from ha_bridge.core.errors import CatalogInconsistencyError
from ha_bridge.core.models.entity import EntityState, ServiceDescriptor, entity_domain

if TYPE_CHECKING:
    from ha_bridge.core.interfaces import HomeAutomationHub

logger = logging.getLogger(__name__)

# Entity domains advertised by default
DEFAULT_ENTITY_TYPES = (
    "alarm_control_panel",
    "light",
    "media_player",
    "remote",
)


def group_services(services: Iterable[ServiceDescriptor]) -> dict[str, list[tuple[str, str]]]:
    """Group a service catalog by domain.

    Returns:
        Domain -> [(service name, description)], in catalog order
    """
    by_domain: dict[str, list[tuple[str, str]]] = {}
    for descriptor in services:
        by_domain.setdefault(descriptor.domain, []).append(
            (descriptor.service, descriptor.description)
        )
    return by_domain


class CapabilityIndexBuilder:
    """Builds the description -> command catalog for one bridge.

    Not re-entrant: ``discover`` refuses to run while another discovery on
    the same builder is in progress.
    """

    def __init__(
        self,
        post_service_topic: str,
        entity_types: Iterable[str] = DEFAULT_ENTITY_TYPES,
    ) -> None:
        """Initialize the builder.

        Args:
            post_service_topic: Topic prefix of every advertised command
            entity_types: Entity domains to advertise
        """
        self.post_service_topic = post_service_topic
        self.entity_types = frozenset(entity_types)
        self._discovering = False

    def build(
        self,
        services: Iterable[ServiceDescriptor],
        entities: Iterable[EntityState],
    ) -> Mapping[str, str]:
        """Build the capability catalog.

        Descriptions are keys, so two entries sharing a description collide
        and the later one wins.

        Args:
            services: Service catalog of the hub
            entities: Current entity list of the hub

        Returns:
            Read-only mapping of description -> command

        Raises:
            CatalogInconsistencyError: If an advertised entity's domain has
                no cataloged services
        """
        services_by_domain = group_services(services)
        capabilities: dict[str, str] = {}

        for entity in entities:
            entity_id = entity.entity_id
            domain = entity_domain(entity_id)

            if domain not in self.entity_types:
                logger.debug(f"Skipping {entity_id}: domain '{domain}' not advertised")
                continue

            domain_services = services_by_domain.get(domain)
            if not domain_services:
                raise CatalogInconsistencyError(domain, entity_id)

            for service, description in domain_services:
                key = f"{description} {entity_id}"
                command = f"{self.post_service_topic} {domain} {service} {entity_id}"
                if key in capabilities:
                    logger.debug(
                        f"Capability '{key}' overwritten: {capabilities[key]} -> {command}"
                    )
                capabilities[key] = command

        logger.info(f"Built capability catalog: {len(capabilities)} entries")
        return MappingProxyType(capabilities)

    async def discover(self, hub: HomeAutomationHub) -> Mapping[str, str]:
        """Fetch services and entities from the hub and build the catalog.

        Raises:
            HubError: If the hub cannot be queried
            CatalogInconsistencyError: See ``build``
            RuntimeError: If a discovery is already running on this builder
        """
        if self._discovering:
            raise RuntimeError("Capability discovery is already in progress")

        self._discovering = True
        try:
            services = await hub.get_services()
            entities = await hub.get_states()
            logger.info(
                f"Discovering capabilities from {len(services)} services "
                f"and {len(entities)} entities"
            )
            return self.build(services, entities)
        finally:
            self._discovering = False
