"""Module registration details.

Published once at startup so that other modules (notably the command
resolver) learn the bridge's name, version and capability catalog.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field

from ha_bridge.core.models.message import Message, MessageType


class ModuleDetails(BaseModel):
    """Identity and capability catalog of this module.

    Attributes:
        module_name: Bus name of the module (topic prefix)
        version: Module version
        capabilities: Human description -> canonical command string
    """

    module_name: str = Field(..., description="Bus name of the module")
    version: str = Field(..., description="Module version")
    capabilities: dict[str, str] = Field(
        default_factory=dict,
        description="Human description -> canonical command string",
    )

    @classmethod
    def from_capabilities(
        cls,
        module_name: str,
        version: str,
        capabilities: Mapping[str, str],
    ) -> ModuleDetails:
        return cls(
            module_name=module_name,
            version=version,
            capabilities=dict(capabilities),
        )

    def to_message(self) -> Message:
        """Wrap the details into a MODULE_INFO bus message."""
        return Message(
            text=self.model_dump_json(),
            message_type=MessageType.MODULE_INFO,
            sender=self.module_name,
            starting_module=self.module_name,
        )
