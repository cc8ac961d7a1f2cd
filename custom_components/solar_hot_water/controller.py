"""Hysteresis controller deciding whether the hot water heater is energised."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Optional

from .const import (
    DEFAULT_BATTERY_SOC_START_THRESHOLD,
    DEFAULT_BATTERY_SOC_STOP_THRESHOLD,
    DEFAULT_POWER_THRESHOLD,
    OUTPUT_OFF,
    OUTPUT_ON,
    REASON_POWER_TOO_LOW,
    REASON_SOC_TOO_LOW,
)
from .exceptions import ConfigurationError
from .helpers import format_reason

_LOGGER = logging.getLogger(__name__)


class StatusKind(Enum):
    """Operator-facing status of the control output."""
    STANDING_BY = "standing_by"
    ENABLED_ON = "enabled_on"
    ENABLED_OFF = "enabled_off"


@dataclass(frozen=True)
class ControllerConfig:
    """Thresholds driving the two latches."""

    battery_soc_start_threshold: float = DEFAULT_BATTERY_SOC_START_THRESHOLD
    battery_soc_stop_threshold: float = DEFAULT_BATTERY_SOC_STOP_THRESHOLD
    power_threshold: float = DEFAULT_POWER_THRESHOLD

    def __post_init__(self) -> None:
        if self.battery_soc_stop_threshold > self.battery_soc_start_threshold:
            raise ConfigurationError(
                f"Battery SOC stop threshold {self.battery_soc_stop_threshold} "
                f"must not exceed start threshold {self.battery_soc_start_threshold}"
            )


@dataclass(frozen=True)
class InputSample:
    """One synchronized reading of the three inputs."""

    enabled: bool
    state_of_charge: float  # %
    power: float  # W


@dataclass(frozen=True)
class ControllerState:
    """Latch state for one control session.

    The ``last_*`` fields hold the triple observed by the previous evaluation
    and are ``None`` until the first evaluation has run.
    """

    soc_permit: bool = False
    heater_on: bool = False
    last_enabled: Optional[bool] = None
    last_soc_permit: Optional[bool] = None
    last_heater_on: Optional[bool] = None

    @property
    def initialized(self) -> bool:
        """Return True once an evaluation has been committed."""
        return self.last_enabled is not None

    @property
    def output(self) -> int:
        """Return the output value matching the heater state."""
        return OUTPUT_ON if self.heater_on else OUTPUT_OFF


@dataclass(frozen=True)
class Notification:
    """Advisory status message produced on a state transition."""

    kind: StatusKind
    reason: Optional[str] = None

    @property
    def message(self) -> str:
        """Return the human-readable status line."""
        if self.kind is StatusKind.STANDING_BY:
            return format_reason("control output is standing by", "disabled")
        if self.kind is StatusKind.ENABLED_ON:
            return "control output is enabled and ON"
        return format_reason("control output is enabled and OFF", self.reason)

    def __str__(self) -> str:
        return self.message


class Evaluation(NamedTuple):
    """Result of one controller evaluation."""

    state: ControllerState
    output: int
    notification: Optional[Notification]


def evaluate(
    sample: InputSample,
    state: ControllerState,
    config: ControllerConfig,
) -> Evaluation:
    """Map one sample and the prior state to a new state and output.

    The prior state is never mutated; the caller keeps the returned state for
    the next evaluation.
    """
    soc_permit = state.soc_permit
    heater_on = state.heater_on

    if not sample.enabled:
        heater_on = False
    else:
        if not soc_permit:
            if sample.state_of_charge >= config.battery_soc_start_threshold:
                soc_permit = True
        elif sample.state_of_charge <= config.battery_soc_stop_threshold:
            soc_permit = False
            heater_on = False

        if soc_permit:
            heater_on = sample.power > config.power_threshold

    notification = _detect_transition(state, sample.enabled, soc_permit, heater_on)

    new_state = replace(
        state,
        soc_permit=soc_permit,
        heater_on=heater_on,
        last_enabled=sample.enabled,
        last_soc_permit=soc_permit,
        last_heater_on=heater_on,
    )
    return Evaluation(new_state, new_state.output, notification)


def _detect_transition(
    previous: ControllerState,
    enabled: bool,
    soc_permit: bool,
    heater_on: bool,
) -> Optional[Notification]:
    """Return a notification if the observable triple changed."""
    if (
        previous.last_enabled == enabled
        and previous.last_soc_permit == soc_permit
        and previous.last_heater_on == heater_on
    ):
        return None

    if not enabled:
        if previous.last_enabled is not False:
            return Notification(StatusKind.STANDING_BY)
        return None
    if heater_on:
        return Notification(StatusKind.ENABLED_ON)
    return Notification(
        StatusKind.ENABLED_OFF,
        REASON_POWER_TOO_LOW if soc_permit else REASON_SOC_TOO_LOW,
    )


class HysteresisController:
    """Own the controller state for the lifetime of one session."""

    def __init__(self, config: ControllerConfig) -> None:
        """Initialize with default (off) state."""
        self.config = config
        self._state = ControllerState()

    @property
    def state(self) -> ControllerState:
        """Return the current controller state."""
        return self._state

    def process(self, sample: InputSample) -> Evaluation:
        """Evaluate a sample and commit the resulting state."""
        result = evaluate(sample, self._state, self.config)
        _LOGGER.debug(
            "Evaluated enabled=%s soc=%.2f%% power=%.1fW -> permit=%s heater=%s",
            sample.enabled,
            sample.state_of_charge,
            sample.power,
            result.state.soc_permit,
            result.state.heater_on,
        )
        self._state = result.state
        return result

    def reset(self) -> None:
        """Return to the fail-safe default state."""
        self._state = ControllerState()
