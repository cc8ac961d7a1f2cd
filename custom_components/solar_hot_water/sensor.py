"""Sensor platform for Solar Hot Water."""
from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EntityCategory
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import ATTR_REASON, DOMAIN, INTEGRATION_VERSION
from .coordinator import SolarHotWaterCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the sensor platform."""
    coordinator: SolarHotWaterCoordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([StatusSensor(coordinator, entry)], False)


class StatusSensor(CoordinatorEntity, SensorEntity):
    """Last status line reported by the controller."""

    def __init__(self, coordinator: SolarHotWaterCoordinator, entry: ConfigEntry) -> None:
        """Initialize the status sensor."""
        super().__init__(coordinator)
        self.entry = entry
        self._attr_has_entity_name = True
        self._attr_name = "Status"
        self._attr_unique_id = f"{entry.entry_id}_status"
        self._attr_icon = "mdi:information-outline"
        self._attr_entity_category = EntityCategory.DIAGNOSTIC
        self._attr_device_info = {
            "identifiers": {(DOMAIN, entry.entry_id)},
            "name": entry.title,
            "manufacturer": "Custom",
            "model": "Solar Hot Water Controller",
            "sw_version": INTEGRATION_VERSION,
        }

    @property
    def native_value(self) -> str | None:
        """Return the latest status message."""
        if not self.coordinator.data:
            return None
        return self.coordinator.data.get("status")

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the state attributes."""
        if not self.coordinator.data:
            return {}
        data = self.coordinator.data
        return {
            ATTR_REASON: data.get(ATTR_REASON),
            "output": data.get("output"),
            "last_evaluation": data.get("last_evaluation"),
            "evaluations": data.get("evaluations"),
            "skipped_samples": data.get("skipped_samples"),
        }
