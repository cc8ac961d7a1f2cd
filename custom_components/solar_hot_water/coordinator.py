"""Data coordinator for Solar Hot Water."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .bus import HomeAssistantBus
from .const import (
    ATTR_BATTERY_SOC,
    ATTR_ENABLED,
    ATTR_HEATER_ON,
    ATTR_POWER,
    ATTR_REASON,
    ATTR_SOC_PERMIT,
    DOMAIN,
    NOTIFICATION_ID_ERROR,
)
from .controller import Evaluation, Notification
from .exceptions import SolarHotWaterError
from .session import Session, SessionHandle

_LOGGER = logging.getLogger(__name__)


class SolarHotWaterCoordinator(DataUpdateCoordinator):
    """Coordinator owning the control session of one config entry."""

    def __init__(self, hass: HomeAssistant, entry: ConfigEntry) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self.entry = entry
        merged_config: dict[str, Any] = dict(entry.data)
        if entry.options:
            merged_config.update(entry.options)
        self.config = merged_config

        bus = HomeAssistantBus(hass, {"friendly_name": f"{entry.title} output"})
        self.session = Session(
            bus,
            bus,
            on_status=self._handle_status,
            on_error=self._handle_error,
            on_evaluation=self._handle_evaluation,
        )
        self.handle: SessionHandle | None = None

        self._status: str | None = None
        self._status_reason: str | None = None
        self._last_error: str | None = None
        self._last_evaluation: datetime | None = None

        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=None,  # push-driven by entity state changes
        )

    async def _async_update_data(self) -> dict[str, Any]:
        """Return the current snapshot; evaluations are pushed, not polled."""
        return self._snapshot()

    @callback
    def async_start(self) -> SessionHandle:
        """Start the control session.

        Raises ConfigurationError or UnreachableInputError when the session
        cannot run.
        """
        self.handle = self.session.start(self.config)
        self.async_set_updated_data(self._snapshot())
        return self.handle

    @callback
    def async_stop(self) -> None:
        """Stop the control session, forcing the output off."""
        if self.handle is None:
            return
        self.session.stop(self.handle)
        self.handle = None

    @callback
    def _handle_status(self, notification: Notification) -> None:
        """Record the latest operator status."""
        self._status = notification.message
        self._status_reason = notification.reason

    @callback
    def _handle_error(self, err: SolarHotWaterError) -> None:
        """Surface a fatal session error to the user."""
        self._last_error = str(err)
        self.hass.async_create_task(
            self._send_notification(
                f"{self.entry.title} cannot start",
                f"{err}. Check the integration configuration and reload it.",
                f"{NOTIFICATION_ID_ERROR}_{self.entry.entry_id}",
            )
        )

    @callback
    def _handle_evaluation(self, handle: SessionHandle, result: Evaluation) -> None:
        """Push the new controller state to entities."""
        self._last_evaluation = dt_util.utcnow()
        self.async_set_updated_data(self._snapshot())

    async def _send_notification(self, title: str, message: str, notification_id: str) -> None:
        """Send a persistent notification."""
        try:
            await self.hass.services.async_call(
                "persistent_notification",
                "create",
                {
                    "title": title,
                    "message": message,
                    "notification_id": notification_id,
                },
            )
            _LOGGER.info("Sent notification: %s", title)
        except Exception as err:
            _LOGGER.error("Failed to send notification: %s", err)

    def _snapshot(self) -> dict[str, Any]:
        """Build the data dictionary consumed by entities and diagnostics."""
        handle = self.handle
        state = handle.controller.state if handle else None
        sample = handle.last_sample if handle else None

        return {
            "active": bool(handle and handle.active),
            "output": handle.last_output if handle else None,
            ATTR_HEATER_ON: state.heater_on if state else False,
            ATTR_SOC_PERMIT: state.soc_permit if state else False,
            ATTR_ENABLED: sample.enabled if sample else None,
            ATTR_BATTERY_SOC: sample.state_of_charge if sample else None,
            ATTR_POWER: sample.power if sample else None,
            "status": self._status,
            ATTR_REASON: self._status_reason,
            "last_error": self._last_error,
            "last_evaluation": self._last_evaluation.isoformat() if self._last_evaluation else None,
            "evaluations": handle.evaluations if handle else 0,
            "skipped_samples": handle.skipped_samples if handle else 0,
        }

    @property
    def status(self) -> Optional[str]:
        """Return the latest status message."""
        return self._status

    @property
    def heater_on(self) -> bool:
        """Return whether the heater output is currently energised."""
        return bool(self.handle and self.handle.controller.state.heater_on)
