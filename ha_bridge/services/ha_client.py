"""Home Assistant REST API client.

Implements the HomeAutomationHub protocol on top of Home Assistant's
REST API using a shared httpx.AsyncClient.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from ha_bridge.core.errors import EntityNotFoundError, HubError
from ha_bridge.core.models.entity import EntityState, ServiceDescriptor

if TYPE_CHECKING:
    from ha_bridge.models import Config

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Async client for the Home Assistant REST API."""

    def __init__(
        self,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Home Assistant client.

        Args:
            config: Application configuration
            transport: Optional httpx transport (used by tests)

        Raises:
            ValueError: If no Home Assistant token is configured
        """
        if not config.ha_token:
            raise ValueError("Home Assistant token required (HA_TOKEN or /run/secrets/ha_token)")

        self.base_url = config.ha_base_url.rstrip("/")
        self.token = config.ha_token
        self.timeout = config.ha_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.info(f"HomeAssistantClient initialized for {self.base_url}")

    @property
    def name(self) -> str:
        return "homeassistant"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._get_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            HubError: On transport errors, timeouts and non-2xx responses
        """
        client = await self._get_client()
        try:
            response = await client.request(method, path, json=json)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling Home Assistant {method} {path} (>{self.timeout}s)")
            raise HubError(f"Timeout calling {method} {path}") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Home Assistant API error: {e.response.status_code} - {e.response.text}"
            )
            raise HubError(
                f"{method} {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling Home Assistant: {type(e).__name__}: {e}")
            raise HubError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise HubError(f"{method} {path} returned invalid JSON") from e

    async def get_services(self) -> list[ServiceDescriptor]:
        """Fetch the service catalog (``GET /api/services``)."""
        payload = await self._request("GET", "/api/services")
        services = ServiceDescriptor.from_api(payload)
        logger.debug(f"Fetched {len(services)} services")
        return services

    async def get_states(self) -> list[EntityState]:
        """Fetch all entity states (``GET /api/states``)."""
        payload = await self._request("GET", "/api/states")
        return [_to_state(item) for item in payload]

    async def get_state(self, entity_id: str) -> EntityState:
        """Fetch one entity (``GET /api/states/<entity_id>``).

        Raises:
            EntityNotFoundError: If Home Assistant answers 404
            HubError: On any other failure
        """
        try:
            payload = await self._request("GET", f"/api/states/{entity_id}")
        except HubError as e:
            if _is_not_found(e):
                raise EntityNotFoundError(entity_id) from e
            raise
        return _to_state(payload)

    async def call_service(
        self,
        domain: str,
        service: str,
        service_data: dict[str, Any] | None = None,
    ) -> list[EntityState]:
        """Call a service (``POST /api/services/<domain>/<service>``).

        Returns:
            States Home Assistant reports as changed by the call
        """
        logger.info(f"Calling service {domain}.{service} with {service_data}")
        payload = await self._request(
            "POST",
            f"/api/services/{domain}/{service}",
            json=service_data or {},
        )
        # Newer Home Assistant versions may wrap the list in an object
        if isinstance(payload, dict):
            payload = payload.get("changed_states", [])
        return [_to_state(item) for item in payload]

    async def set_state(
        self,
        entity_id: str,
        state: str,
        attributes: dict[str, Any] | None = None,
    ) -> EntityState:
        """Write an entity state (``POST /api/states/<entity_id>``)."""
        logger.info(f"Setting state of {entity_id} to {state!r}")
        payload = await self._request(
            "POST",
            f"/api/states/{entity_id}",
            json={"state": state, "attributes": attributes or {}},
        )
        return _to_state(payload)


def _is_not_found(error: HubError) -> bool:
    cause = error.__cause__
    return (
        isinstance(cause, httpx.HTTPStatusError)
        and cause.response.status_code == httpx.codes.NOT_FOUND
    )


def _to_state(payload: Any) -> EntityState:
    try:
        return EntityState.model_validate(payload)
    except ValidationError as e:
        raise HubError(f"Unexpected state payload from Home Assistant: {e}") from e
