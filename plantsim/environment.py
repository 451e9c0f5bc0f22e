"""
Environment samples and time-varying environment schedules.

An EnvironmentSample is a snapshot of the current control values, read
once per update and passed explicitly into the growth math.

For headless runs, each field can follow a sinusoidal signal:

    signal(t) = offset + amplitude * sin(frequency * t + phase)

Normalized fields are clipped to [0, 1]; temperature is clipped to the
control range in degrees Celsius.
"""

from dataclasses import dataclass
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array

TEMPERATURE_RANGE = (-40.0, 70.0)


def _clip(value: float, low: float, high: float) -> float:
    return min(high, max(low, float(value)))


class EnvironmentSample(NamedTuple):
    """
    Current environmental conditions.

    Attributes:
        light: Light intensity [0, 1]
        temperature: Air/water temperature (°C)
        humidity: Humidity / water availability [0, 1]
        spectrum: Light colour [0, 1], 0 = red-shifted, 1 = blue-shifted
    """

    light: float
    temperature: float
    humidity: float
    spectrum: float

    @classmethod
    def neutral(cls) -> "EnvironmentSample":
        """Moderate light at 22 °C with balanced spectrum."""
        return cls(light=0.7, temperature=22.0, humidity=0.6, spectrum=0.5)

    def clamped(self) -> "EnvironmentSample":
        """Copy with every field clipped to its valid range."""
        return EnvironmentSample(
            light=_clip(self.light, 0.0, 1.0),
            temperature=_clip(self.temperature, *TEMPERATURE_RANGE),
            humidity=_clip(self.humidity, 0.0, 1.0),
            spectrum=_clip(self.spectrum, 0.0, 1.0),
        )


@dataclass(frozen=True)
class SignalParams:
    """
    Parameters for a sinusoidal environment signal.

    signal(t) = offset + amplitude * sin(frequency * t + phase)
    """

    offset: float
    amplitude: float = 0.0
    frequency: float = 0.0  # radians per step
    phase: float = 0.0

    def __post_init__(self) -> None:
        if self.amplitude < 0:
            raise ValueError("Amplitude must be nonnegative")


def compute_signal(
    params: SignalParams, t: float, low: float = 0.0, high: float = 1.0
) -> Array:
    """
    Compute a single signal value at time t, clipped to [low, high].

    Args:
        params: Signal parameters (offset, amplitude, frequency, phase)
        t: Time (in steps)
        low: Lower clip bound
        high: Upper clip bound
    """
    raw = params.offset + params.amplitude * jnp.sin(params.frequency * t + params.phase)
    return jnp.clip(raw, low, high)


@dataclass(frozen=True)
class EnvironmentSchedule:
    """Time-varying environment, one signal per EnvironmentSample field."""

    light: SignalParams
    temperature: SignalParams
    humidity: SignalParams
    spectrum: SignalParams

    @classmethod
    def constant(cls, sample: EnvironmentSample) -> "EnvironmentSchedule":
        """A schedule that always yields the given sample."""
        return cls(
            light=SignalParams(offset=sample.light),
            temperature=SignalParams(offset=sample.temperature),
            humidity=SignalParams(offset=sample.humidity),
            spectrum=SignalParams(offset=sample.spectrum),
        )

    @classmethod
    def greenhouse(cls) -> "EnvironmentSchedule":
        """Bright, warm and humid with a gentle day/night light cycle."""
        return cls(
            light=SignalParams(offset=0.8, amplitude=0.15, frequency=0.05),
            temperature=SignalParams(offset=22.0, amplitude=2.0, frequency=0.05, phase=1.0),
            humidity=SignalParams(offset=0.7, amplitude=0.1, frequency=0.03),
            spectrum=SignalParams(offset=0.6),
        )

    @classmethod
    def cold_snap(cls) -> "EnvironmentSchedule":
        """Adequate light but temperatures far below every optimum."""
        return cls(
            light=SignalParams(offset=0.7, amplitude=0.1, frequency=0.05),
            temperature=SignalParams(offset=2.0, amplitude=3.0, frequency=0.02),
            humidity=SignalParams(offset=0.5),
            spectrum=SignalParams(offset=0.5),
        )

    @classmethod
    def dim_window(cls) -> "EnvironmentSchedule":
        """Low, red-shifted light on a windowsill."""
        return cls(
            light=SignalParams(offset=0.25, amplitude=0.15, frequency=0.05),
            temperature=SignalParams(offset=20.0, amplitude=1.0, frequency=0.05),
            humidity=SignalParams(offset=0.4),
            spectrum=SignalParams(offset=0.2),
        )


def compute_sample(schedule: EnvironmentSchedule, t: float) -> EnvironmentSample:
    """
    Compute the environment sample at time t.

    Args:
        schedule: Per-field signal parameters
        t: Time (in steps)

    Returns:
        EnvironmentSample with every field in its valid range
    """
    return EnvironmentSample(
        light=float(compute_signal(schedule.light, t)),
        temperature=float(compute_signal(schedule.temperature, t, *TEMPERATURE_RANGE)),
        humidity=float(compute_signal(schedule.humidity, t)),
        spectrum=float(compute_signal(schedule.spectrum, t)),
    )
