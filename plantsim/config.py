"""
Configuration and type definitions for the growth visualizer.

This module defines the plant archetypes, their fixed parameter records,
and the engine constants shared by every archetype.

Archetypes:
    BRANCHING: Trees, flowers and herbs (node-based branching)
    SUCCULENT: Compact branching with rare laterals and short stems
    ALGAE: Fixed set of blades that only lengthen

All environmental inputs are normalized to [0, 1] except temperature,
which stays in degrees Celsius.
"""

from dataclasses import dataclass
from enum import Enum


class InvalidArchetypeError(ValueError):
    """Raised when a plant type does not name a known archetype."""


class Archetype(str, Enum):
    """Enumerated plant category controlling growth parameters."""

    BRANCHING = "branching"
    SUCCULENT = "succulent"
    ALGAE = "algae"

    @classmethod
    def parse(cls, value: "str | Archetype") -> "Archetype":
        """
        Resolve a UI label or enum value to an Archetype.

        Accepts member values case-insensitively plus the presentation
        aliases in ARCHETYPE_ALIASES. Anything else raises
        InvalidArchetypeError rather than falling back to a default.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidArchetypeError(f"Invalid archetype: {value!r}")
        key = value.strip().lower()
        key = ARCHETYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise InvalidArchetypeError(f"Invalid archetype: {value!r}") from None

    @property
    def is_branching(self) -> bool:
        return self is not Archetype.ALGAE


# "tree", "flower" and "herb" are presentation names for the same model
ARCHETYPE_ALIASES: dict[str, str] = {
    "tree": Archetype.BRANCHING.value,
    "flower": Archetype.BRANCHING.value,
    "herb": Archetype.BRANCHING.value,
}


@dataclass(frozen=True)
class ArchetypeParams:
    """
    Fixed parameter set carried by one archetype.

    Growth-rate weights blend each input between "ignored" (weight 0)
    and "fully limiting" (weight 1):

        rate = light * (1 - wh + wh * humidity) * (1 - ws + ws * spectrum)
    """

    name: str
    optimal_temperature: float  # T_opt for the health bell curve (°C)
    max_depth: int  # Tips at this depth never extend
    branch_multiplier: float  # Scales the base lateral-branch probability
    base_thickness: tuple[float, float]  # Root / blade thickness range
    base_leaf_size: float  # Leaf length at depth 0 before jitter
    growth_speed: float  # Tip growth multiplier
    stem_length_scale: float  # Scales fallback lengths for zero-length parents
    biomass_rate: float  # Biomass gained per unit dt at full growth
    seed_biomass: float  # Starting biomass (nonzero to avoid empty renders)
    humidity_weight: float
    spectrum_weight: float
    stem_hue: float  # Base hue for segments (degrees)

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("max_depth must be nonnegative")
        if not 0.0 <= self.branch_multiplier <= 1.0:
            raise ValueError("branch_multiplier must be in [0, 1]")
        for weight in (self.humidity_weight, self.spectrum_weight):
            if not 0.0 <= weight <= 1.0:
                raise ValueError("growth-rate weights must be in [0, 1]")
        if self.seed_biomass <= 0:
            raise ValueError("seed_biomass must be positive")


ARCHETYPE_PARAMS: dict[Archetype, ArchetypeParams] = {
    Archetype.BRANCHING: ArchetypeParams(
        name="branching",
        optimal_temperature=22.0,
        max_depth=1000,  # Deeper than max_nodes allows; the node cap bounds growth
        branch_multiplier=1.0,
        base_thickness=(8.0, 14.0),
        base_leaf_size=14.0,
        growth_speed=1.0,
        stem_length_scale=1.0,
        biomass_rate=0.0008,
        seed_biomass=0.05,
        humidity_weight=0.5,
        spectrum_weight=0.3,
        stem_hue=100.0,
    ),
    # Succulents grow slowly, branch rarely and keep short stems
    Archetype.SUCCULENT: ArchetypeParams(
        name="succulent",
        optimal_temperature=22.0,
        max_depth=120,
        branch_multiplier=0.03,
        base_thickness=(8.0, 14.0),
        base_leaf_size=8.0,
        growth_speed=0.35,
        stem_length_scale=0.6,
        biomass_rate=0.0008,
        seed_biomass=0.05,
        humidity_weight=0.15,  # Drought tolerant
        spectrum_weight=0.3,
        stem_hue=120.0,
    ),
    # Algae never branch; max_depth and leaf size are unused
    Archetype.ALGAE: ArchetypeParams(
        name="algae",
        optimal_temperature=18.0,
        max_depth=0,
        branch_multiplier=0.0,
        base_thickness=(4.0, 10.0),
        base_leaf_size=0.0,
        growth_speed=1.0,
        stem_length_scale=1.0,
        biomass_rate=0.0006,
        seed_biomass=0.1,
        humidity_weight=0.0,  # Submerged, humidity is irrelevant
        spectrum_weight=0.375,
        stem_hue=180.0,
    ),
}


def get_archetype_params(archetype: "Archetype | str") -> ArchetypeParams:
    """Look up the parameter record for an archetype (or its UI name)."""
    return ARCHETYPE_PARAMS[Archetype.parse(archetype)]


@dataclass(frozen=True)
class GrowthConfig:
    """
    Engine constants shared by all archetypes.

    Rates are tuned per frame-loop tick, i.e. dt = elapsed_ms / frame_ms.
    """

    # Health integrator: health' = clip(h * inertia + fitness * (1 - inertia))
    health_inertia: float = 0.98
    health_floor: float = 0.05
    health_ceiling: float = 1.0
    temperature_width: float = 8.0  # Bell-curve width around T_opt (°C)

    # Tip growth: grown += tip_speed * health * rate * archetype_speed * scale * dt
    tip_speed: float = 0.6
    growth_scale: float = 0.05
    growth_threshold: float = 1.0  # Progress at which a tip extends

    # Lateral branching: p = base * multiplier * (1 - depth * decay)
    base_branch_prob: float = 0.18
    branch_depth_decay: float = 0.12
    lateral_max_depth: int = 6  # Only tips shallower than this spawn laterals

    # Extension geometry
    angle_jitter: float = 0.7  # Primary child angle noise (radians)
    angle_depth_damping: float = 0.15  # Deeper tips wander less
    lateral_angle_jitter: float = 1.6
    length_factor: tuple[float, float] = (0.6, 1.05)
    lateral_length_factor: tuple[float, float] = (0.6, 0.95)
    fallback_length: tuple[float, float] = (8.0, 20.0)
    root_length: tuple[float, float] = (14.0, 24.0)
    thickness_taper: float = 0.75
    lateral_thickness: float = 0.8
    min_thickness: float = 1.0

    # Size cap: once exceeded, keep only the earliest retained_nodes nodes
    max_nodes: int = 1000
    retained_nodes: int = 200

    # Algae
    blade_count: int = 18
    blade_spread: float = 400.0  # Horizontal span of blade bases
    blade_length: tuple[float, float] = (60.0, 200.0)
    blade_growth: tuple[float, float] = (0.01, 0.03)
    max_blade_length: float = 600.0

    # Drivers
    frame_ms: float = 16.0  # One unit of dt in frame-loop mode
    fast_speed: float = 6.0

    def __post_init__(self) -> None:
        if self.retained_nodes < 1:
            raise ValueError("retained_nodes must keep at least the root")
        if self.retained_nodes >= self.max_nodes:
            raise ValueError("retained_nodes must be smaller than max_nodes")
        if not 0.0 < self.health_inertia < 1.0:
            raise ValueError("health_inertia must be in (0, 1)")
        if not 0.0 < self.health_floor <= self.health_ceiling:
            raise ValueError("health bounds must satisfy 0 < floor <= ceiling")
        if self.growth_threshold <= 0:
            raise ValueError("growth_threshold must be positive")
