"""Binary sensor platform for Solar Hot Water."""
from __future__ import annotations

from typing import Any

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import (
    ATTR_BATTERY_SOC,
    ATTR_ENABLED,
    ATTR_HEATER_ON,
    ATTR_POWER,
    ATTR_REASON,
    ATTR_SOC_PERMIT,
    CONF_BATTERY_SOC_START_THRESHOLD,
    CONF_BATTERY_SOC_STOP_THRESHOLD,
    DOMAIN,
    INTEGRATION_VERSION,
)
from .coordinator import SolarHotWaterCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the binary sensor platform."""
    coordinator = hass.data[DOMAIN][entry.entry_id]

    async_add_entities(
        [
            HeaterOutputBinarySensor(coordinator, entry),
            BatterySocPermitBinarySensor(coordinator, entry),
        ],
        False,
    )


class SolarHotWaterBinarySensorBase(CoordinatorEntity, BinarySensorEntity):
    """Base class for Solar Hot Water binary sensors."""

    def __init__(self, coordinator: SolarHotWaterCoordinator, entry: ConfigEntry) -> None:
        """Initialize the binary sensor."""
        super().__init__(coordinator)
        self.entry = entry
        self._attr_has_entity_name = True
        self._attr_device_info = {
            "identifiers": {(DOMAIN, entry.entry_id)},
            "name": entry.title,
            "manufacturer": "Custom",
            "model": "Solar Hot Water Controller",
            "sw_version": INTEGRATION_VERSION,
        }


class HeaterOutputBinarySensor(SolarHotWaterBinarySensorBase):
    """Heater output decision."""

    def __init__(self, coordinator: SolarHotWaterCoordinator, entry: ConfigEntry) -> None:
        """Initialize the heater output binary sensor."""
        super().__init__(coordinator, entry)
        self._attr_name = "Heater output"
        self._attr_unique_id = f"{entry.entry_id}_heater_output"
        self._attr_icon = "mdi:water-boiler"
        self._attr_device_class = BinarySensorDeviceClass.HEAT

    @property
    def is_on(self) -> bool | None:
        """Return true if the heater is energised."""
        if not self.coordinator.data:
            return False  # Safety: heating is off until proven otherwise
        return bool(self.coordinator.data.get(ATTR_HEATER_ON, False))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the state attributes."""
        if not self.coordinator.data:
            return {}
        data = self.coordinator.data
        return {
            ATTR_ENABLED: data.get(ATTR_ENABLED),
            ATTR_SOC_PERMIT: data.get(ATTR_SOC_PERMIT),
            ATTR_BATTERY_SOC: data.get(ATTR_BATTERY_SOC),
            ATTR_POWER: data.get(ATTR_POWER),
            ATTR_REASON: data.get(ATTR_REASON),
        }


class BatterySocPermitBinarySensor(SolarHotWaterBinarySensorBase):
    """Battery SOC hysteresis latch."""

    def __init__(self, coordinator: SolarHotWaterCoordinator, entry: ConfigEntry) -> None:
        """Initialize the SOC permit binary sensor."""
        super().__init__(coordinator, entry)
        self._attr_name = "Battery SOC permit"
        self._attr_unique_id = f"{entry.entry_id}_battery_soc_permit"
        self._attr_icon = "mdi:battery-check"

    @property
    def is_on(self) -> bool | None:
        """Return true while the battery SOC permits heating."""
        if not self.coordinator.data:
            return False
        return bool(self.coordinator.data.get(ATTR_SOC_PERMIT, False))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the configured latch thresholds."""
        config = self.coordinator.config
        return {
            "start_threshold": config.get(CONF_BATTERY_SOC_START_THRESHOLD),
            "stop_threshold": config.get(CONF_BATTERY_SOC_STOP_THRESHOLD),
            ATTR_BATTERY_SOC: (self.coordinator.data or {}).get(ATTR_BATTERY_SOC),
        }
