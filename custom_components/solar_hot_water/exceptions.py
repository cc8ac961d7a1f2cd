"""Exceptions raised by the Solar Hot Water integration."""
from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class SolarHotWaterError(HomeAssistantError):
    """Base error for Solar Hot Water."""


class ConfigurationError(SolarHotWaterError):
    """A required setting is missing, malformed or inconsistent."""


class UnreachableInputError(SolarHotWaterError):
    """A configured input entity cannot be subscribed to."""

    def __init__(self, path: str, description: str = "input") -> None:
        """Initialize with the offending entity id."""
        super().__init__(f"cannot connect to {description} stream on '{path}'")
        self.path = path
        self.description = description
