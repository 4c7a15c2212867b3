"""Error taxonomy for the bridge.

Every condition the bridge can report derives from BridgeError and carries
a machine-readable ``kind`` plus the entity id involved, when there is one.
Dispatch-time conditions (unknown topic, malformed request, remote error)
are recovered at the dispatch boundary and answered with a failure reply.
CatalogInconsistencyError is raised at startup and is fatal.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for bridge errors."""

    kind = "bridge_error"

    def __init__(self, message: str, entity_id: str | None = None) -> None:
        """Initialize bridge error.

        Args:
            message: One-line diagnostic
            entity_id: Entity involved (optional)
        """
        self.entity_id = entity_id
        super().__init__(message)


class UnknownTopicError(BridgeError):
    """Raised when no handler is registered for a topic."""

    kind = "unknown_topic"

    def __init__(self, topic: str) -> None:
        self.topic = topic
        super().__init__(f"Unknown topic: {topic}")


class MalformedRequestError(BridgeError):
    """Raised when a message body does not have the expected field count."""

    kind = "malformed_request"

    def __init__(self, topic: str, text: str, expected_fields: int) -> None:
        """Initialize malformed request error.

        Args:
            topic: Topic the message arrived on
            text: Original message text, kept for diagnostics
            expected_fields: Number of space-delimited fields the topic requires
        """
        self.topic = topic
        self.text = text
        self.expected_fields = expected_fields
        super().__init__(
            f"Wrong format on {topic} (expected {expected_fields} field(s)): {text!r}"
        )


class RemoteOperationError(BridgeError):
    """Raised when a hub call made on behalf of a request fails."""

    kind = "remote_error"

    def __init__(
        self,
        message: str,
        entity_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.cause = cause
        super().__init__(message, entity_id)


class NoStateError(RemoteOperationError):
    """Raised when the hub answers without a state value."""

    kind = "no_state"

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Entity has no current state: {entity_id}", entity_id)


class CatalogInconsistencyError(BridgeError):
    """Raised when a supported entity's domain has no cataloged services."""

    kind = "catalog_inconsistency"

    def __init__(self, domain: str, entity_id: str) -> None:
        self.domain = domain
        super().__init__(
            f"No services cataloged for domain '{domain}' (entity {entity_id})",
            entity_id,
        )


class HubError(BridgeError):
    """Raised by hub clients when a remote call fails."""

    kind = "hub_error"


class EntityNotFoundError(HubError):
    """Raised when an entity does not exist on the hub."""

    kind = "entity_not_found"

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Entity not found: {entity_id}", entity_id)


class ReplyError(BridgeError):
    """Raised when a message cannot be replied to."""

    kind = "reply_error"


class BusError(BridgeError):
    """Raised when the message bus cannot connect or publish."""

    kind = "bus_error"


class UnexpectedError(BridgeError):
    """Wraps an exception no handler anticipated."""

    kind = "internal_error"
