"""Bus topic configuration.

All topics are derived from the module name so that several bridges can
share one broker (``homeassistant.get_state``, ``upstairs.get_state``...).
"""

from dataclasses import dataclass

DEFAULT_REGISTRATION_TOPIC = "event.new_module"


@dataclass(frozen=True)
class BridgeTopics:
    """Topics the bridge subscribes and publishes to."""

    module_name: str = "homeassistant"
    registration: str = DEFAULT_REGISTRATION_TOPIC

    @property
    def get_state(self) -> str:
        """Fetch the state of one entity."""
        return f"{self.module_name}.get_state"

    @property
    def set_state(self) -> str:
        """Write the state of one entity."""
        return f"{self.module_name}.set_state"

    @property
    def post_service(self) -> str:
        """Call a service on one entity."""
        return f"{self.module_name}.post_service"

    def subscriptions(self) -> list[str]:
        return [self.get_state, self.set_state, self.post_service]
