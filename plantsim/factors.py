"""
Growth factor calculator.

Maps an environment sample and an archetype to two scalars:

    growth_rate: How fast the organism can grow right now, in [0, 1]
    health: Smoothed temperature fitness, in [health_floor, 1]

Health is an exponentially-smoothed integrator rather than an
instantaneous function, so a single bad reading barely moves it while
sustained poor temperature drags it down over many ticks.

Environment inputs are clamped before use. The only error raised here is
InvalidArchetypeError for an unknown archetype name.
"""

from typing import NamedTuple

import jax.numpy as jnp
from jax import Array

from plantsim.config import Archetype, ArchetypeParams, GrowthConfig, get_archetype_params
from plantsim.environment import EnvironmentSample

# Type alias for values that can be either JAX arrays or Python floats
Scalar = Array | float


class GrowthFactor(NamedTuple):
    """Result of one growth-factor evaluation."""

    growth_rate: float
    health: float


def temperature_fitness(temp: Scalar, t_opt: float, width: float = 8.0) -> Array:
    """
    Gaussian temperature fitness.

    f(T) = exp(-((T - T_opt) / width)²)

    Properties:
    - f(T_opt) = 1
    - Symmetric around T_opt
    - f → 0 as |T - T_opt| grows (f(T_opt ± 40) ≈ 1.4e-11)
    """
    return jnp.exp(-(((temp - t_opt) / width) ** 2))


def smooth_health(
    previous: Scalar,
    fitness: Scalar,
    inertia: float = 0.98,
    floor: float = 0.05,
    ceiling: float = 1.0,
) -> Array:
    """
    Exponentially-smoothed health update.

    h' = clip(h * inertia + fitness * (1 - inertia), floor, ceiling)

    Held at a fixed fitness, h converges to clip(fitness, floor, ceiling).
    """
    updated = previous * inertia + fitness * (1.0 - inertia)
    return jnp.clip(updated, floor, ceiling)


def growth_rate(
    light: Scalar,
    humidity: Scalar,
    spectrum: Scalar,
    params: ArchetypeParams,
) -> Array:
    """
    Environment-limited growth rate.

    rate = L * (1 - wh + wh * H) * (1 - ws + ws * S)

    - Zero at L = 0
    - Non-decreasing in light and humidity
    - Blue-shifted light (S → 1) grows faster than red
    - Bounded above by 1 for saturated inputs
    """
    light = jnp.clip(light, 0.0, 1.0)
    humidity = jnp.clip(humidity, 0.0, 1.0)
    spectrum = jnp.clip(spectrum, 0.0, 1.0)
    wh = params.humidity_weight
    ws = params.spectrum_weight
    return light * (1.0 - wh + wh * humidity) * (1.0 - ws + ws * spectrum)


def compute_growth_factor(
    sample: EnvironmentSample,
    archetype: "Archetype | str",
    previous_health: float,
    config: GrowthConfig | None = None,
) -> GrowthFactor:
    """
    Evaluate growth rate and smoothed health for one update.

    Args:
        sample: Current environment (clamped here as well)
        archetype: Plant archetype
        previous_health: Health before this update
        config: Engine constants (defaults to GrowthConfig())

    Returns:
        GrowthFactor with Python float fields
    """
    if config is None:
        config = GrowthConfig()
    params = get_archetype_params(archetype)
    sample = sample.clamped()

    fitness = temperature_fitness(
        sample.temperature, params.optimal_temperature, config.temperature_width
    )
    health = smooth_health(
        previous_health,
        fitness,
        inertia=config.health_inertia,
        floor=config.health_floor,
        ceiling=config.health_ceiling,
    )
    rate = growth_rate(sample.light, sample.humidity, sample.spectrum, params)
    return GrowthFactor(growth_rate=float(rate), health=float(health))
