"""Config flow for Solar Hot Water integration."""
from __future__ import annotations
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import valid_entity_id
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .const import (
    DOMAIN,
    CONF_ENABLE_ENTITY,
    CONF_OUTPUT_ENTITY,
    CONF_BATTERY_SOC_ENTITY,
    CONF_BATTERY_SOC_START_THRESHOLD,
    CONF_BATTERY_SOC_STOP_THRESHOLD,
    CONF_BATTERY_SOC_FORMAT,
    CONF_POWER_ENTITY,
    CONF_POWER_THRESHOLD,
    DEFAULT_ENABLE_ENTITY,
    DEFAULT_OUTPUT_ENTITY,
    DEFAULT_BATTERY_SOC_ENTITY,
    DEFAULT_POWER_ENTITY,
    DEFAULT_BATTERY_SOC_START_THRESHOLD,
    DEFAULT_BATTERY_SOC_STOP_THRESHOLD,
    DEFAULT_BATTERY_SOC_FORMAT,
    DEFAULT_POWER_THRESHOLD,
    SOC_FORMAT_FRACTION,
    SOC_FORMAT_PERCENT,
)

ENABLE_DOMAINS = ["input_boolean", "switch", "binary_sensor", "sensor", "input_number"]


def _threshold_schema(defaults: dict[str, Any]) -> dict[Any, Any]:
    """Return the threshold part of the form, shared by both flows."""
    return {
        vol.Required(
            CONF_BATTERY_SOC_START_THRESHOLD,
            default=defaults.get(
                CONF_BATTERY_SOC_START_THRESHOLD, DEFAULT_BATTERY_SOC_START_THRESHOLD
            ),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(min=0, max=100, unit_of_measurement="%")
        ),
        vol.Required(
            CONF_BATTERY_SOC_STOP_THRESHOLD,
            default=defaults.get(
                CONF_BATTERY_SOC_STOP_THRESHOLD, DEFAULT_BATTERY_SOC_STOP_THRESHOLD
            ),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(min=0, max=100, unit_of_measurement="%")
        ),
        vol.Required(
            CONF_POWER_THRESHOLD,
            default=defaults.get(CONF_POWER_THRESHOLD, DEFAULT_POWER_THRESHOLD),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=0, max=20000, step=10, unit_of_measurement="W"
            )
        ),
        vol.Required(
            CONF_BATTERY_SOC_FORMAT,
            default=defaults.get(CONF_BATTERY_SOC_FORMAT, DEFAULT_BATTERY_SOC_FORMAT),
        ): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=[
                    {"label": "Fraction (0-1)", "value": SOC_FORMAT_FRACTION},
                    {"label": "Percent (0-100)", "value": SOC_FORMAT_PERCENT},
                ],
                mode=selector.SelectSelectorMode.DROPDOWN,
            )
        ),
    }


def _validate_thresholds(user_input: dict[str, Any], errors: dict[str, str]) -> None:
    """Flag a stop threshold above the start threshold."""
    start = user_input.get(CONF_BATTERY_SOC_START_THRESHOLD, DEFAULT_BATTERY_SOC_START_THRESHOLD)
    stop = user_input.get(CONF_BATTERY_SOC_STOP_THRESHOLD, DEFAULT_BATTERY_SOC_STOP_THRESHOLD)
    if float(stop) > float(start):
        errors[CONF_BATTERY_SOC_STOP_THRESHOLD] = "stop_above_start"


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Solar Hot Water."""

    VERSION = 1

    def __init__(self):
        """Initialize the config flow."""
        self.data = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the single setup step - entities and thresholds."""
        errors: dict[str, str] = {}

        if user_input is not None:
            output_entity = str(user_input.get(CONF_OUTPUT_ENTITY, "")).strip()
            if not valid_entity_id(output_entity):
                errors[CONF_OUTPUT_ENTITY] = "invalid_entity_id"
            elif output_entity in (
                user_input.get(CONF_ENABLE_ENTITY),
                user_input.get(CONF_BATTERY_SOC_ENTITY),
                user_input.get(CONF_POWER_ENTITY),
            ):
                errors[CONF_OUTPUT_ENTITY] = "output_is_input"
            _validate_thresholds(user_input, errors)

            if not errors:
                self.data.update(user_input)
                self.data[CONF_OUTPUT_ENTITY] = output_entity
                await self.async_set_unique_id(output_entity)
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title="Solar Hot Water",
                    data=self.data,
                )

        defaults = {**self.data, **(user_input or {})}
        schema = vol.Schema(
            {
                vol.Required(
                    CONF_ENABLE_ENTITY,
                    default=defaults.get(CONF_ENABLE_ENTITY, DEFAULT_ENABLE_ENTITY),
                ): selector.EntitySelector(
                    selector.EntitySelectorConfig(domain=ENABLE_DOMAINS)
                ),
                vol.Required(
                    CONF_OUTPUT_ENTITY,
                    default=defaults.get(CONF_OUTPUT_ENTITY, DEFAULT_OUTPUT_ENTITY),
                ): selector.TextSelector(),
                vol.Required(
                    CONF_BATTERY_SOC_ENTITY,
                    default=defaults.get(CONF_BATTERY_SOC_ENTITY, DEFAULT_BATTERY_SOC_ENTITY),
                ): selector.EntitySelector(
                    selector.EntitySelectorConfig(domain="sensor")
                ),
                vol.Required(
                    CONF_POWER_ENTITY,
                    default=defaults.get(CONF_POWER_ENTITY, DEFAULT_POWER_ENTITY),
                ): selector.EntitySelector(
                    selector.EntitySelectorConfig(domain="sensor")
                ),
                **_threshold_schema(defaults),
            }
        )

        return self.async_show_form(
            step_id="user",
            data_schema=schema,
            errors=errors,
            description_placeholders={
                "enable_entity": "Entity which switches the service on (1) or off (0)",
                "output_entity": "Entity id written with 1 (heating on) or 0 (heating off)",
                "battery_soc_entity": "Sensor reporting battery state of charge",
                "power_entity": "Sensor reporting power source output",
            },
        )

    @staticmethod
    def async_get_options_flow(config_entry):
        """Return the options flow."""
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Solar Hot Water."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        """Initialize options flow."""
        self._entry = config_entry

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle threshold options."""
        existing_config = {**self._entry.data, **self._entry.options}
        errors: dict[str, str] = {}

        if user_input is not None:
            _validate_thresholds(user_input, errors)
            if not errors:
                updated_options = {**self._entry.options, **user_input}
                return self.async_create_entry(title="", data=updated_options)

        defaults = {**existing_config, **(user_input or {})}
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(_threshold_schema(defaults)),
            errors=errors,
            description_placeholders={
                "battery_soc_start_threshold": "Battery SOC must reach this value before heating can start",
                "battery_soc_stop_threshold": "Heating stops once battery SOC falls to this value",
                "power_threshold": "Power source output must exceed this value for heating to run",
            },
        )
