"""
Relay configuration.

Environment Variables:
    CONFIGURED_EVENT_SOURCE: Source attached to every published event (required)
    PUBLISH_TO_EVENT_BUS_NAME: Target EventBridge bus (required)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ..core.errors import ConfigError

EVENT_SOURCE_ENV = "CONFIGURED_EVENT_SOURCE"
TARGET_BUS_ENV = "PUBLISH_TO_EVENT_BUS_NAME"


@dataclass(frozen=True)
class RelayConfig:
    """
    Fields:
        event_source: EventBridge Source of published events
        target_bus_name: EventBridge bus to publish to
    """
    event_source: str
    target_bus_name: str

    def __post_init__(self) -> None:
        if not self.event_source:
            raise ConfigError(f"{EVENT_SOURCE_ENV} is not set")
        if not self.target_bus_name:
            raise ConfigError(f"{TARGET_BUS_ENV} is not set")

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """
        Read and validate configuration once, at startup.

        Raises:
            ConfigError: If either variable is missing or empty
        """
        env = os.environ if environ is None else environ
        return RelayConfig(
            event_source=env.get(EVENT_SOURCE_ENV, ""),
            target_bus_name=env.get(TARGET_BUS_ENV, ""),
        )
