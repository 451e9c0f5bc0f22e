"""
Raw UI control values and their normalization.

The visualizer's sliders report percentages (0-100) for light, spectrum
and humidity, and degrees Celsius for temperature. The growth core only
ever sees the normalized EnvironmentSample produced by to_sample(), which
divides the percentage fields by 100. No other scale is accepted.
"""

from pydantic import BaseModel, Field, field_validator

from plantsim.config import Archetype
from plantsim.environment import TEMPERATURE_RANGE, EnvironmentSample


class ControlInputs(BaseModel):
    """Raw control panel values. Out-of-range numbers are clamped."""

    light: float = Field(default=70.0, description="Light intensity, percent [0, 100]")
    spectrum: float = Field(
        default=50.0, description="Light colour, percent [0, 100] (0 = red, 100 = blue)"
    )
    temperature: float = Field(default=22.0, description="Temperature (°C)")
    humidity: float = Field(default=60.0, description="Humidity, percent [0, 100]")
    plant_type: str = Field(default="branching", description="Archetype name or alias")

    @field_validator("light", "spectrum", "humidity")
    @classmethod
    def clamp_percent(cls, value: float) -> float:
        return min(100.0, max(0.0, value))

    @field_validator("temperature")
    @classmethod
    def clamp_temperature(cls, value: float) -> float:
        low, high = TEMPERATURE_RANGE
        return min(high, max(low, value))

    def to_sample(self) -> EnvironmentSample:
        """Normalize to the 0-1 scale used by the growth model."""
        return EnvironmentSample(
            light=self.light / 100.0,
            temperature=self.temperature,
            humidity=self.humidity / 100.0,
            spectrum=self.spectrum / 100.0,
        )

    def archetype(self) -> Archetype:
        """Selected archetype; raises InvalidArchetypeError if unknown."""
        return Archetype.parse(self.plant_type)
