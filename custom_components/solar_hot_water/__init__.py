"""The Solar Hot Water integration."""
from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    EVENT_HOMEASSISTANT_STARTED,
    EVENT_HOMEASSISTANT_STOP,
    Platform,
)
from homeassistant.core import CoreState, Event, HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryError

from .const import DOMAIN
from .coordinator import SolarHotWaterCoordinator
from .exceptions import SolarHotWaterError

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.SENSOR, Platform.BINARY_SENSOR]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Solar Hot Water from a config entry."""
    _LOGGER.debug("Setting up %s (%s)", entry.title, entry.entry_id)
    coordinator = SolarHotWaterCoordinator(hass, entry)

    # On reload HA is already running, so the inputs can be checked right away;
    # on a fresh boot, wait until every integration has created its entities
    if hass.state is CoreState.running:
        try:
            coordinator.async_start()
        except SolarHotWaterError as err:
            # Fatal for this session; a reload after fixing the options starts a new one
            raise ConfigEntryError(str(err)) from err
    else:

        @callback
        def _async_start_session(_event: Event) -> None:
            try:
                coordinator.async_start()
            except SolarHotWaterError as err:
                # Already surfaced as a persistent notification; the output stays off
                _LOGGER.debug("Session for %s not started: %s", entry.title, err)

        entry.async_on_unload(
            hass.bus.async_listen(EVENT_HOMEASSISTANT_STARTED, _async_start_session)
        )
        _LOGGER.info("Control session for %s scheduled for after HA fully started", entry.title)

    @callback
    def _async_stop_session(_event: Event) -> None:
        coordinator.async_stop()

    # Config entries are not unloaded on shutdown, so switch the heater off here
    entry.async_on_unload(
        hass.bus.async_listen(EVENT_HOMEASSISTANT_STOP, _async_stop_session)
    )

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = coordinator

    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        hass.data[DOMAIN].pop(entry.entry_id, None)
        coordinator.async_stop()
        raise

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    if unload_ok := await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        coordinator: SolarHotWaterCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        coordinator.async_stop()

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle an options update."""
    await hass.config_entries.async_reload(entry.entry_id)
