"""Control session lifecycle: validate, subscribe, evaluate, fail safe."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from .const import (
    CONF_BATTERY_SOC_ENTITY,
    CONF_BATTERY_SOC_FORMAT,
    CONF_BATTERY_SOC_START_THRESHOLD,
    CONF_BATTERY_SOC_STOP_THRESHOLD,
    CONF_ENABLE_ENTITY,
    CONF_OUTPUT_ENTITY,
    CONF_POWER_ENTITY,
    CONF_POWER_THRESHOLD,
    DEFAULT_BATTERY_SOC_FORMAT,
    INPUT_BATTERY_SOC,
    INPUT_ENABLED,
    INPUT_NAMES,
    INPUT_POWER,
    OUTPUT_OFF,
    SOC_FORMAT_FRACTION,
    SOC_FORMAT_PERCENT,
)
from .controller import (
    ControllerConfig,
    Evaluation,
    HysteresisController,
    InputSample,
    Notification,
)
from .exceptions import ConfigurationError, SolarHotWaterError, UnreachableInputError
from .helpers import DataValidator
from .synchronizer import InputSynchronizer

_LOGGER = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]

_INPUT_DESCRIPTIONS = {
    INPUT_ENABLED: "plugin control",
    INPUT_BATTERY_SOC: "battery SOC",
    INPUT_POWER: "power",
}


class InputTransport(Protocol):
    """Data bus delivering path-addressed readings."""

    def resolve(self, path: str) -> bool:
        """Return True if the path has ever carried data."""

    def current_value(self, path: str) -> Any:
        """Return the latest raw value on a path, or None."""

    def subscribe(self, path: str, callback: Callable[[Any], None]) -> Unsubscribe:
        """Deliver every new raw value on a path to the callback."""


class OutputSink(Protocol):
    """Receiver of the computed output value."""

    def write(self, path: str, value: int) -> None:
        """Publish the output value on a path."""


@dataclass(frozen=True)
class SessionConfig:
    """Validated configuration for one control session."""

    enable_path: str
    output_path: str
    battery_soc_path: str
    power_path: str
    controller: ControllerConfig
    battery_soc_format: str = DEFAULT_BATTERY_SOC_FORMAT

    @property
    def input_paths(self) -> Dict[str, str]:
        """Return input name to path mapping in delivery order."""
        return {
            INPUT_ENABLED: self.enable_path,
            INPUT_BATTERY_SOC: self.battery_soc_path,
            INPUT_POWER: self.power_path,
        }

    @classmethod
    def from_mapping(cls, config: Optional[Mapping[str, Any]]) -> "SessionConfig":
        """Build a session configuration, raising ConfigurationError if invalid."""
        if not config:
            raise ConfigurationError("bad or missing configuration")

        paths = {}
        for key in (
            CONF_ENABLE_ENTITY,
            CONF_OUTPUT_ENTITY,
            CONF_BATTERY_SOC_ENTITY,
            CONF_POWER_ENTITY,
        ):
            value = config.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"missing required setting '{key}'")
            paths[key] = value.strip()

        inputs = [paths[CONF_ENABLE_ENTITY], paths[CONF_BATTERY_SOC_ENTITY], paths[CONF_POWER_ENTITY]]
        if paths[CONF_OUTPUT_ENTITY] in inputs:
            raise ConfigurationError(
                f"output entity '{paths[CONF_OUTPUT_ENTITY]}' must differ from the input entities"
            )

        thresholds = {}
        for key in (
            CONF_BATTERY_SOC_START_THRESHOLD,
            CONF_BATTERY_SOC_STOP_THRESHOLD,
            CONF_POWER_THRESHOLD,
        ):
            value = config.get(key)
            number = DataValidator.to_float(value) if not isinstance(value, bool) else None
            if number is None:
                raise ConfigurationError(f"setting '{key}' must be a number, got {value!r}")
            thresholds[key] = number

        soc_format = config.get(CONF_BATTERY_SOC_FORMAT, DEFAULT_BATTERY_SOC_FORMAT)
        if soc_format not in (SOC_FORMAT_FRACTION, SOC_FORMAT_PERCENT):
            raise ConfigurationError(f"unknown battery SOC format {soc_format!r}")

        return cls(
            enable_path=paths[CONF_ENABLE_ENTITY],
            output_path=paths[CONF_OUTPUT_ENTITY],
            battery_soc_path=paths[CONF_BATTERY_SOC_ENTITY],
            power_path=paths[CONF_POWER_ENTITY],
            controller=ControllerConfig(
                battery_soc_start_threshold=thresholds[CONF_BATTERY_SOC_START_THRESHOLD],
                battery_soc_stop_threshold=thresholds[CONF_BATTERY_SOC_STOP_THRESHOLD],
                power_threshold=thresholds[CONF_POWER_THRESHOLD],
            ),
            battery_soc_format=soc_format,
        )


@dataclass
class SessionHandle:
    """Live resources of a started session."""

    config: SessionConfig
    controller: HysteresisController
    synchronizer: Optional[InputSynchronizer] = None
    unsubscribes: List[Unsubscribe] = field(default_factory=list)
    active: bool = True
    last_output: Optional[int] = None
    last_sample: Optional[InputSample] = None
    last_notification: Optional[Notification] = None
    evaluations: int = 0
    skipped_samples: int = 0


class Session:
    """Run the hysteresis controller against a transport and an output sink."""

    def __init__(
        self,
        transport: InputTransport,
        sink: OutputSink,
        *,
        on_status: Optional[Callable[[Notification], None]] = None,
        on_error: Optional[Callable[[SolarHotWaterError], None]] = None,
        on_evaluation: Optional[Callable[[SessionHandle, Evaluation], None]] = None,
    ) -> None:
        """Initialize the session with its collaborators."""
        self._transport = transport
        self._sink = sink
        self._on_status = on_status
        self._on_error = on_error
        self._on_evaluation = on_evaluation

    def start(self, config: Optional[Mapping[str, Any]]) -> SessionHandle:
        """Validate configuration, switch the output off and subscribe to inputs.

        Raises ConfigurationError or UnreachableInputError; both are reported
        once through the error callback and leave no subscription behind.
        """
        try:
            session_config = SessionConfig.from_mapping(config)
        except ConfigurationError as err:
            self._report_error(err)
            raise

        handle = SessionHandle(
            config=session_config,
            controller=HysteresisController(session_config.controller),
        )

        # Heating stays off until the inputs prove otherwise
        self._write(handle, OUTPUT_OFF)

        for name, path in session_config.input_paths.items():
            if not self._transport.resolve(path):
                err = UnreachableInputError(path, _INPUT_DESCRIPTIONS[name])
                handle.active = False
                self._report_error(err)
                raise err

        handle.synchronizer = InputSynchronizer(
            INPUT_NAMES,
            lambda values: self._evaluate(handle, values),
        )

        for name, path in session_config.input_paths.items():
            handle.unsubscribes.append(
                self._transport.subscribe(
                    path,
                    lambda raw, name=name: self._handle_input(handle, name, raw),
                )
            )

        _LOGGER.info(
            "Session started (enable=%s, soc=%s, power=%s, output=%s)",
            session_config.enable_path,
            session_config.battery_soc_path,
            session_config.power_path,
            session_config.output_path,
        )

        initial: Dict[str, Any] = {}
        for name, path in session_config.input_paths.items():
            value = self._coerce(handle, name, self._transport.current_value(path))
            if value is not None:
                initial[name] = value
        if initial:
            handle.synchronizer.update_many(initial)

        return handle

    def stop(self, handle: SessionHandle) -> None:
        """Cancel subscriptions and leave the heater switched off."""
        if not handle.active:
            return
        handle.active = False
        while handle.unsubscribes:
            unsubscribe = handle.unsubscribes.pop()
            unsubscribe()
        if handle.synchronizer is not None:
            handle.synchronizer.reset()
        handle.controller.reset()
        self._write(handle, OUTPUT_OFF)
        _LOGGER.info("Session stopped, output %s forced off", handle.config.output_path)

    def _handle_input(self, handle: SessionHandle, name: str, raw: Any) -> None:
        """Coerce a raw value and feed it to the synchronizer."""
        if not handle.active or handle.synchronizer is None:
            return
        value = self._coerce(handle, name, raw)
        if value is None:
            return
        handle.synchronizer.update(name, value)

    def _coerce(self, handle: SessionHandle, name: str, raw: Any) -> Any:
        """Convert a raw value for an input, or return None to skip it."""
        if name == INPUT_ENABLED:
            value = DataValidator.to_enabled(raw)
        elif name == INPUT_BATTERY_SOC:
            value = DataValidator.to_soc_percent(raw, handle.config.battery_soc_format)
            if value is not None:
                DataValidator.validate_soc_range(value)
        else:
            value = DataValidator.to_float(raw)

        if value is None:
            handle.skipped_samples += 1
            if DataValidator.is_valid_state(raw):
                _LOGGER.warning("Ignoring non-numeric %s value %r", name, raw)
            else:
                _LOGGER.debug("Ignoring unavailable %s value %r", name, raw)
        return value

    def _evaluate(self, handle: SessionHandle, values: Tuple[Any, ...]) -> None:
        """Run one controller evaluation for a synchronized tuple."""
        enabled, state_of_charge, power = values
        sample = InputSample(enabled=enabled, state_of_charge=state_of_charge, power=power)
        result = handle.controller.process(sample)

        handle.evaluations += 1
        handle.last_sample = sample
        if result.notification is not None:
            handle.last_notification = result.notification
            _LOGGER.info("%s", result.notification.message)
            if self._on_status is not None:
                self._on_status(result.notification)

        self._write(handle, result.output)

        if self._on_evaluation is not None:
            self._on_evaluation(handle, result)

    def _write(self, handle: SessionHandle, value: int) -> None:
        self._sink.write(handle.config.output_path, value)
        handle.last_output = value

    def _report_error(self, err: SolarHotWaterError) -> None:
        _LOGGER.error("%s", err)
        if self._on_error is not None:
            self._on_error(err)
