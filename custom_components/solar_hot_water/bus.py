"""Home Assistant state machine as input transport and output sink."""
from __future__ import annotations

import logging
from typing import Any, Callable

from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.helpers.event import async_track_state_change_event

from .const import ATTR_SOURCE, DOMAIN

_LOGGER = logging.getLogger(__name__)


class HomeAssistantBus:
    """Read, track and write entity states by entity id."""

    def __init__(self, hass: HomeAssistant, output_attributes: dict[str, Any] | None = None) -> None:
        """Initialize the bus."""
        self.hass = hass
        self._output_attributes = {ATTR_SOURCE: DOMAIN, **(output_attributes or {})}

    def resolve(self, path: str) -> bool:
        """Return True if the entity exists in the state machine."""
        return self.hass.states.get(path) is not None

    def current_value(self, path: str) -> Any:
        """Return the raw state of an entity, or None if missing."""
        state = self.hass.states.get(path)
        return state.state if state else None

    def subscribe(self, path: str, value_callback: Callable[[Any], None]) -> Callable[[], None]:
        """Track state changes of one entity."""

        @callback
        def _handle_state_change(event: Event) -> None:
            new_state = event.data.get("new_state")
            if new_state is None:
                _LOGGER.debug("Entity %s was removed", path)
                return
            value_callback(new_state.state)

        _LOGGER.debug("Subscribing to %s", path)
        return async_track_state_change_event(self.hass, [path], _handle_state_change)

    def write(self, path: str, value: int) -> None:
        """Set the state of the output entity."""
        _LOGGER.debug("Writing %s = %s", path, value)
        self.hass.states.async_set(path, str(value), self._output_attributes)
