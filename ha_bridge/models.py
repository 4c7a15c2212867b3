"""Application configuration.

Values are resolved, highest priority first, from constructor arguments,
environment variables, the module's section of the YAML config file and
finally the defaults below. The Home Assistant token additionally falls
back to Docker Secrets (``/run/secrets/ha_token``).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from ha_bridge import __version__
from ha_bridge.config.loader import load_module_config
from ha_bridge.config.topics import DEFAULT_REGISTRATION_TOPIC
from ha_bridge.security.secrets_manager import get_secrets_manager
from ha_bridge.services.capabilities import DEFAULT_ENTITY_TYPES

DEFAULT_MODULE_NAME = "homeassistant"


class YamlModuleSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading the module's section of the YAML config.

    The section is the module name the higher-priority sources resolve to:
    constructor arguments, then ``MODULE_NAME``, then the default.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        *name_sources: PydanticBaseSettingsSource,
    ) -> None:
        super().__init__(settings_cls)
        self.name_sources = name_sources

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Values are produced all at once in __call__
        return None, field_name, False

    def _module_name(self) -> str:
        for source in self.name_sources:
            module_name = source().get("module_name")
            if module_name:
                return module_name
        return DEFAULT_MODULE_NAME

    def __call__(self) -> dict[str, Any]:
        values = load_module_config(self._module_name())
        return {
            key: value
            for key, value in values.items()
            if key in self.settings_cls.model_fields
        }


class Config(BaseSettings):
    """Bridge configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    module_name: str = Field(
        default=DEFAULT_MODULE_NAME,
        description="Bus name of the module, prefix of every handled topic",
    )
    module_version: str = Field(default=__version__)

    # Hub
    hub_adapter: str = Field(
        default="homeassistant",
        description="Hub adapter to use (homeassistant, mock)",
    )
    ha_base_url: str = Field(default="http://homeassistant.local:8123")
    ha_token: str | None = Field(default=None, description="Long-lived access token")
    ha_timeout: float = Field(default=10.0, gt=0, description="Hub request timeout (s)")
    mock_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Options for the mock hub (latency_ms, failure_rate)",
    )

    # Bus
    mqtt_broker_url: str = Field(default="localhost")
    mqtt_broker_port: int = Field(default=1883)
    mqtt_client_id: str | None = Field(default=None)
    registration_topic: str = Field(default=DEFAULT_REGISTRATION_TOPIC)

    # Capabilities
    entity_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ENTITY_TYPES),
        description="Entity domains advertised in the capability catalog",
    )

    log_level: str = Field(default="INFO")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlModuleSettingsSource(settings_cls, init_settings, env_settings),
        )

    @model_validator(mode="after")
    def _resolve_token(self) -> Config:
        """Fall back to Docker Secrets for the Home Assistant token."""
        if not self.ha_token and self.hub_adapter == "homeassistant":
            self.ha_token = get_secrets_manager().get_secret("ha_token", required=False)
        return self

    @property
    def client_id(self) -> str:
        return self.mqtt_client_id or f"{self.module_name}-bridge"
