"""Default fixtures for the mock hub.

A small, realistic house: a few lights, a media player, a remote, an
alarm panel, plus entities of unsupported domains (sensor, switch) so the
capability allow-list has something to filter out.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ha_bridge.core.models import EntityState, ServiceDescriptor


def _now() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# DEFAULT SERVICES
# =============================================================================

DEFAULT_SERVICES: list[ServiceDescriptor] = [
    # Lights
    ServiceDescriptor(domain="light", service="turn_on", description="Turn on"),
    ServiceDescriptor(domain="light", service="turn_off", description="Turn off"),
    ServiceDescriptor(domain="light", service="toggle", description="Toggle"),
    # Media players
    ServiceDescriptor(domain="media_player", service="media_play", description="Play"),
    ServiceDescriptor(domain="media_player", service="media_pause", description="Pause"),
    ServiceDescriptor(domain="media_player", service="media_stop", description="Stop"),
    # Remotes
    ServiceDescriptor(domain="remote", service="turn_on", description="Turn on remote"),
    ServiceDescriptor(domain="remote", service="turn_off", description="Turn off remote"),
    # Alarm panels
    ServiceDescriptor(
        domain="alarm_control_panel", service="alarm_arm_home", description="Arm home"
    ),
    ServiceDescriptor(
        domain="alarm_control_panel", service="alarm_arm_away", description="Arm away"
    ),
    ServiceDescriptor(
        domain="alarm_control_panel", service="alarm_disarm", description="Disarm"
    ),
    # Switches (not in the default capability allow-list)
    ServiceDescriptor(domain="switch", service="turn_on", description="Turn on switch"),
    ServiceDescriptor(domain="switch", service="turn_off", description="Turn off switch"),
]


# =============================================================================
# DEFAULT STATES
# =============================================================================

_created = _now()

DEFAULT_STATES: dict[str, EntityState] = {
    state.entity_id: state
    for state in [
        EntityState(
            entity_id="light.living_room",
            state="off",
            attributes={"friendly_name": "Living Room Light", "brightness": 0},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="light.kitchen",
            state="on",
            attributes={"friendly_name": "Kitchen Light", "brightness": 200},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="media_player.tv",
            state="idle",
            attributes={"friendly_name": "Living Room TV", "volume_level": 0.4},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="remote.tv_remote",
            state="on",
            attributes={"friendly_name": "TV Remote"},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="alarm_control_panel.home",
            state="disarmed",
            attributes={"friendly_name": "Home Alarm", "code_arm_required": False},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="sensor.outdoor_temperature",
            state="12.5",
            attributes={"friendly_name": "Outdoor Temperature", "unit_of_measurement": "°C"},
            last_changed=_created,
            last_updated=_created,
        ),
        EntityState(
            entity_id="switch.outlet_1",
            state="off",
            attributes={"friendly_name": "Smart Outlet 1"},
            last_changed=_created,
            last_updated=_created,
        ),
    ]
}
