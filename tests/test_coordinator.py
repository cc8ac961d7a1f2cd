"""Integration-oriented tests for the Solar Hot Water coordinator."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from homeassistant.const import EVENT_HOMEASSISTANT_STARTED, EVENT_HOMEASSISTANT_STOP
from homeassistant.core import CoreState
from homeassistant.exceptions import ConfigEntryError

from custom_components.solar_hot_water import async_setup_entry, async_unload_entry
from custom_components.solar_hot_water import bus as bus_module
from custom_components.solar_hot_water.const import (
    CONF_BATTERY_SOC_ENTITY,
    CONF_BATTERY_SOC_START_THRESHOLD,
    CONF_BATTERY_SOC_STOP_THRESHOLD,
    CONF_ENABLE_ENTITY,
    CONF_OUTPUT_ENTITY,
    CONF_POWER_ENTITY,
    CONF_POWER_THRESHOLD,
    DOMAIN,
)
from custom_components.solar_hot_water.coordinator import SolarHotWaterCoordinator
from custom_components.solar_hot_water.exceptions import UnreachableInputError


class FakeState:
    def __init__(self, state: str, attributes: dict | None = None):
        self.state = state
        self.attributes = attributes or {}


class FakeStates:
    def __init__(self):
        self._states: dict[str, FakeState] = {}
        self.writes: list[tuple[str, str]] = []

    def set(self, entity_id: str, value: str) -> None:
        self._states[entity_id] = FakeState(str(value))

    def get(self, entity_id: str) -> FakeState | None:
        return self._states.get(entity_id)

    def async_set(self, entity_id, new_state, attributes=None):
        self.writes.append((entity_id, new_state))
        self._states[entity_id] = FakeState(new_state, attributes)


class FakeServices:
    def __init__(self):
        self.calls: list[tuple[str, str, dict]] = []

    async def async_call(self, domain, service, data, blocking=False, context=None):
        self.calls.append((domain, service, data))


class FakeEventBus:
    def __init__(self):
        self.listeners: dict[str, list] = {}

    def async_listen(self, event_type, listener):
        self.listeners.setdefault(event_type, []).append(listener)

        def _remove():
            self.listeners[event_type].remove(listener)

        return _remove

    def fire(self, event_type):
        event = SimpleNamespace(event_type=event_type, data={})
        for listener in list(self.listeners.get(event_type, [])):
            listener(event)


class FakeConfigEntries:
    def __init__(self):
        self.forward_error: Exception | None = None
        self.forwarded: list[str] = []

    async def async_forward_entry_setups(self, entry, platforms):
        if self.forward_error is not None:
            raise self.forward_error
        self.forwarded.extend(platforms)

    async def async_unload_platforms(self, entry, platforms):
        return True


class FakeHass:
    def __init__(self):
        self.states = FakeStates()
        self.services = FakeServices()
        self.bus = FakeEventBus()
        self.config_entries = FakeConfigEntries()
        self.state = CoreState.running
        self.data: dict = {}

    def async_create_task(self, coro):
        return asyncio.get_running_loop().create_task(coro)


class FakeTracker:
    """Stand-in for async_track_state_change_event."""

    def __init__(self):
        self.listeners: dict[str, list] = {}

    def __call__(self, hass, entity_ids, action):
        for entity_id in entity_ids:
            self.listeners.setdefault(entity_id, []).append(action)

        def _unsubscribe():
            for entity_id in entity_ids:
                self.listeners[entity_id].remove(action)

        return _unsubscribe

    def fire(self, hass, entity_id, value):
        hass.states.set(entity_id, value)
        event = SimpleNamespace(data={"entity_id": entity_id, "new_state": hass.states.get(entity_id)})
        for action in list(self.listeners.get(entity_id, [])):
            action(event)


@pytest.fixture
def fake_hass():
    return FakeHass()


@pytest.fixture
def tracker(monkeypatch):
    tracker = FakeTracker()
    monkeypatch.setattr(bus_module, "async_track_state_change_event", tracker)
    return tracker


def _base_config():
    return {
        CONF_ENABLE_ENTITY: "input_boolean.hot_water",
        CONF_OUTPUT_ENTITY: "sensor.hot_water_output",
        CONF_BATTERY_SOC_ENTITY: "sensor.battery_soc",
        CONF_BATTERY_SOC_START_THRESHOLD: 99,
        CONF_BATTERY_SOC_STOP_THRESHOLD: 95,
        CONF_POWER_ENTITY: "sensor.solar_power",
        CONF_POWER_THRESHOLD: 400,
    }


def _create_coordinator(fake_hass, config=None, options=None):
    entry = MockConfigEntry(
        domain=DOMAIN, title="Hot Water", data=config or _base_config(), options=options or {}
    )
    return SolarHotWaterCoordinator(fake_hass, entry)


def _outputs(fake_hass):
    return [value for entity_id, value in fake_hass.states.writes if entity_id == "sensor.hot_water_output"]


def _set_inputs(fake_hass, enabled="on", soc="0.99", power="500"):
    fake_hass.states.set("input_boolean.hot_water", enabled)
    fake_hass.states.set("sensor.battery_soc", soc)
    fake_hass.states.set("sensor.solar_power", power)


def test_coordinator_merges_entry_options(fake_hass):
    coordinator = _create_coordinator(
        fake_hass, options={CONF_POWER_THRESHOLD: 800, CONF_BATTERY_SOC_STOP_THRESHOLD: 90}
    )
    assert coordinator.config[CONF_POWER_THRESHOLD] == 800
    assert coordinator.config[CONF_BATTERY_SOC_STOP_THRESHOLD] == 90
    assert coordinator.config[CONF_ENABLE_ENTITY] == "input_boolean.hot_water"


@pytest.mark.asyncio
async def test_start_writes_off_then_evaluates(fake_hass, tracker):
    _set_inputs(fake_hass)
    coordinator = _create_coordinator(fake_hass)

    coordinator.async_start()

    assert _outputs(fake_hass) == ["0", "1"]
    assert coordinator.heater_on is True
    assert coordinator.data["heater_on"] is True
    assert coordinator.data["soc_permit"] is True
    assert coordinator.data["battery_soc"] == 99.0
    assert coordinator.data["status"] == "control output is enabled and ON"
    assert set(tracker.listeners) == {
        "input_boolean.hot_water",
        "sensor.battery_soc",
        "sensor.solar_power",
    }
    written = fake_hass.states.get("sensor.hot_water_output")
    assert written.attributes["source"] == DOMAIN


@pytest.mark.asyncio
async def test_state_change_pushes_new_data(fake_hass, tracker):
    _set_inputs(fake_hass)
    coordinator = _create_coordinator(fake_hass)
    coordinator.async_start()

    tracker.fire(fake_hass, "sensor.solar_power", "350")

    assert _outputs(fake_hass)[-1] == "0"
    assert coordinator.data["heater_on"] is False
    assert coordinator.data["reason"] == "power level too low"
    assert coordinator.data["evaluations"] == 2
    assert coordinator.data["last_evaluation"] is not None


@pytest.mark.asyncio
async def test_removed_entity_is_ignored(fake_hass, tracker):
    _set_inputs(fake_hass)
    coordinator = _create_coordinator(fake_hass)
    coordinator.async_start()

    event = SimpleNamespace(data={"entity_id": "sensor.solar_power", "new_state": None})
    for action in tracker.listeners["sensor.solar_power"]:
        action(event)

    assert coordinator.data["evaluations"] == 1


@pytest.mark.asyncio
async def test_stop_unsubscribes_and_writes_off(fake_hass, tracker):
    _set_inputs(fake_hass)
    coordinator = _create_coordinator(fake_hass)
    coordinator.async_start()

    coordinator.async_stop()

    assert _outputs(fake_hass) == ["0", "1", "0"]
    assert all(not actions for actions in tracker.listeners.values())
    assert coordinator.handle is None
    coordinator.async_stop()
    assert _outputs(fake_hass) == ["0", "1", "0"]


@pytest.mark.asyncio
async def test_unreachable_input_sends_notification(fake_hass, tracker):
    fake_hass.states.set("input_boolean.hot_water", "on")
    fake_hass.states.set("sensor.battery_soc", "0.5")
    coordinator = _create_coordinator(fake_hass)

    with pytest.raises(UnreachableInputError):
        coordinator.async_start()
    await asyncio.sleep(0)

    assert tracker.listeners == {}
    assert _outputs(fake_hass) == ["0"]
    domain, service, data = fake_hass.services.calls[0]
    assert (domain, service) == ("persistent_notification", "create")
    assert "sensor.solar_power" in data["message"]
    assert coordinator.handle is None



def _create_entry(config=None):
    return MockConfigEntry(domain=DOMAIN, title="Hot Water", data=config or _base_config())


@pytest.mark.asyncio
async def test_setup_entry_fails_without_retry(fake_hass, tracker):
    entry = _create_entry({**_base_config(), CONF_BATTERY_SOC_STOP_THRESHOLD: 100})

    with pytest.raises(ConfigEntryError):
        await async_setup_entry(fake_hass, entry)
    await asyncio.sleep(0)

    assert DOMAIN not in fake_hass.data
    assert fake_hass.states.writes == []
    assert fake_hass.services.calls


@pytest.mark.asyncio
async def test_setup_entry_starts_session_when_running(fake_hass, tracker):
    _set_inputs(fake_hass)
    entry = _create_entry()

    assert await async_setup_entry(fake_hass, entry) is True

    assert fake_hass.data[DOMAIN][entry.entry_id].heater_on is True
    assert _outputs(fake_hass) == ["0", "1"]
    assert fake_hass.config_entries.forwarded == ["sensor", "binary_sensor"]


@pytest.mark.asyncio
async def test_shutdown_switches_heater_off(fake_hass, tracker):
    _set_inputs(fake_hass)
    entry = _create_entry()
    await async_setup_entry(fake_hass, entry)
    assert _outputs(fake_hass)[-1] == "1"

    fake_hass.bus.fire(EVENT_HOMEASSISTANT_STOP)

    assert _outputs(fake_hass) == ["0", "1", "0"]
    assert all(not actions for actions in tracker.listeners.values())

    # A later unload does not write again
    assert await async_unload_entry(fake_hass, entry) is True
    assert _outputs(fake_hass) == ["0", "1", "0"]


@pytest.mark.asyncio
async def test_setup_during_boot_waits_for_started(fake_hass, tracker):
    fake_hass.state = CoreState.starting
    entry = _create_entry()

    assert await async_setup_entry(fake_hass, entry) is True
    coordinator = fake_hass.data[DOMAIN][entry.entry_id]
    assert coordinator.handle is None
    assert fake_hass.states.writes == []

    # Input entities appear once their integrations have loaded
    _set_inputs(fake_hass)
    fake_hass.state = CoreState.running
    fake_hass.bus.fire(EVENT_HOMEASSISTANT_STARTED)

    assert coordinator.handle is not None
    assert _outputs(fake_hass) == ["0", "1"]

    tracker.fire(fake_hass, "sensor.solar_power", "100")
    assert _outputs(fake_hass)[-1] == "0"


@pytest.mark.asyncio
async def test_missing_input_after_boot_is_reported(fake_hass, tracker):
    fake_hass.state = CoreState.starting
    entry = _create_entry()
    await async_setup_entry(fake_hass, entry)

    fake_hass.states.set("input_boolean.hot_water", "on")
    fake_hass.bus.fire(EVENT_HOMEASSISTANT_STARTED)
    await asyncio.sleep(0)

    coordinator = fake_hass.data[DOMAIN][entry.entry_id]
    assert coordinator.handle is None
    assert _outputs(fake_hass) == ["0"]
    assert tracker.listeners == {}
    assert "sensor.battery_soc" in fake_hass.services.calls[0][2]["message"]


@pytest.mark.asyncio
async def test_platform_failure_stops_session(fake_hass, tracker):
    _set_inputs(fake_hass)
    fake_hass.config_entries.forward_error = RuntimeError("platform failed")
    entry = _create_entry()

    with pytest.raises(RuntimeError):
        await async_setup_entry(fake_hass, entry)

    assert _outputs(fake_hass) == ["0", "1", "0"]
    assert all(not actions for actions in tracker.listeners.values())
    assert entry.entry_id not in fake_hass.data[DOMAIN]
