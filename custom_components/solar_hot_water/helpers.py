"""Helper functions and utilities for Solar Hot Water."""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from homeassistant.const import STATE_OFF, STATE_ON, STATE_UNAVAILABLE, STATE_UNKNOWN

from .const import SOC_FORMAT_FRACTION, SOC_FORMAT_PERCENT, SOC_PERCENT_PRECISION

_LOGGER = logging.getLogger(__name__)

_TRUE_STATES = {STATE_ON, "true", "yes", "enabled"}
_FALSE_STATES = {STATE_OFF, "false", "no", "disabled"}


class DataValidator:
    """Validate and coerce raw entity states."""

    @staticmethod
    def is_valid_state(state: Any) -> bool:
        """Check if a state value is valid."""
        return state not in (None, STATE_UNAVAILABLE, STATE_UNKNOWN, "")

    @staticmethod
    def to_float(value: Any) -> Optional[float]:
        """Best-effort conversion of a raw state to a finite float."""
        if isinstance(value, bool):
            return float(value)
        if not DataValidator.is_valid_state(value):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or math.isinf(number):
            return None
        return number

    @staticmethod
    def to_enabled(value: Any) -> Optional[bool]:
        """Interpret an enable state (on/off, true/false or numeric)."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in _TRUE_STATES:
                return True
            if normalized in _FALSE_STATES:
                return False
        number = DataValidator.to_float(value)
        if number is None:
            return None
        return number != 0

    @staticmethod
    def to_soc_percent(value: Any, soc_format: str = SOC_FORMAT_FRACTION) -> Optional[float]:
        """Convert a battery SOC reading to a percentage."""
        number = DataValidator.to_float(value)
        if number is None:
            return None
        if soc_format == SOC_FORMAT_PERCENT:
            return number
        # Rounding keeps e.g. 0.95 comparable with a threshold of exactly 95
        return round(number * 100, SOC_PERCENT_PRECISION)

    @staticmethod
    def validate_soc_range(soc: float, name: str = "battery_soc") -> bool:
        """Warn about SOC readings outside 0-100%."""
        if not 0 <= soc <= 100:
            _LOGGER.warning("%s value %.2f%% outside expected range 0-100%%", name, soc)
            return False
        return True


def format_reason(action: str, primary_reason: Optional[str] = None) -> str:
    """Format a status line with an optional parenthesised reason."""
    if primary_reason:
        return f"{action} ({primary_reason})"
    return action
