"""Diagnostics helpers for Solar Hot Water."""
from __future__ import annotations

from copy import deepcopy
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN

_EXPORT_KEYS = [
    "active",
    "output",
    "heater_on",
    "soc_permit",
    "enabled",
    "battery_soc",
    "power",
    "status",
    "reason",
    "last_error",
    "last_evaluation",
    "evaluations",
    "skipped_samples",
]


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a given config entry."""
    coordinator = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if coordinator is None:
        return {"error": "coordinator_unavailable"}

    data = coordinator.data or {}
    diagnostics = {_key: deepcopy(data.get(_key)) for _key in _EXPORT_KEYS if _key in data}

    return {
        "config_entry": {
            "entry_id": entry.entry_id,
            "data": dict(entry.data),
            "options": dict(entry.options),
        },
        "effective_config": dict(getattr(coordinator, "config", {})),
        "diagnostics": diagnostics,
    }
