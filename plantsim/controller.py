"""
Growth controller - the single owner of the live organism.

Replaces UI-bound global state with an explicit object. The controller
reads the current ControlInputs into an EnvironmentSample on every
update and passes it into the growth math; nothing in the core reads
controls implicitly.

Two driving modes share the same step:
    advance_frame(elapsed_ms): continuous growth, dt = elapsed / 16 * speed
    simulate(steps): "simulate on click", unit dt per step

The controller is not thread-safe; callers must not advance it from two
threads at once.
"""

import logging
from typing import NamedTuple

import numpy as np

from plantsim import dynamics
from plantsim.config import Archetype, GrowthConfig
from plantsim.controls import ControlInputs
from plantsim.environment import EnvironmentSample
from plantsim.export import DrawPrimitive, export, health_percent
from plantsim.factors import GrowthFactor, compute_growth_factor
from plantsim.organism import BranchingOrganism, Organism, create_organism

logger = logging.getLogger(__name__)


class GrowthStatus(NamedTuple):
    """Scalars shown next to the rendering."""

    biomass: float
    health_percent: int
    archetype: str
    node_count: int


class GrowthController:
    """Drives one organism from control inputs."""

    def __init__(
        self,
        controls: ControlInputs | None = None,
        config: GrowthConfig | None = None,
        seed: int | None = None,
    ) -> None:
        self.controls = controls if controls is not None else ControlInputs()
        self.config = config if config is not None else GrowthConfig()
        self.rng = np.random.default_rng(seed)
        self.speed = 1.0
        self.time = 0.0
        self.organism: Organism = self._build(self.controls.archetype())

    def _build(self, archetype: Archetype) -> Organism:
        leaf_seed = int(self.rng.integers(0, 2**31 - 1))
        return create_organism(archetype, self.rng, self.config, leaf_seed=leaf_seed)

    @property
    def archetype(self) -> Archetype:
        return self.organism.archetype

    def reset(self, archetype: "Archetype | str | None" = None) -> Organism:
        """
        Discard the organism and grow a new one.

        The replacement is fully built before it is swapped in, so an
        invalid archetype leaves the current organism untouched.

        Raises:
            InvalidArchetypeError: if archetype is not recognised
        """
        if archetype is None:
            target = self.controls.archetype()
        else:
            target = Archetype.parse(archetype)
        organism = self._build(target)
        if archetype is not None:
            self.controls = self.controls.model_copy(update={"plant_type": target.value})
        self.organism = organism
        self.time = 0.0
        logger.info("Reset organism to %s", target.value)
        return organism

    def set_controls(self, controls: ControlInputs) -> None:
        """Apply new control values; a different plant type resets."""
        target = controls.archetype()
        self.controls = controls
        if target is not self.organism.archetype:
            self.reset()

    def sample(self) -> EnvironmentSample:
        return self.controls.to_sample()

    def advance(self, dt: float) -> GrowthFactor:
        """Compute the growth factor from current controls and step once."""
        sample = self.sample()
        factor = compute_growth_factor(
            sample, self.organism.archetype, self.organism.health, self.config
        )
        dynamics.step(self.organism, factor, sample, dt, self.rng, self.config)
        self.time += max(0.0, dt)
        return factor

    def advance_frame(self, elapsed_ms: float) -> GrowthFactor:
        """Frame-loop mode: dt is elapsed time in 16 ms units times speed."""
        dt = max(0.0, elapsed_ms) / self.config.frame_ms * self.speed
        return self.advance(dt)

    def simulate(self, steps: int = 1) -> GrowthFactor | None:
        """Click mode: `steps` updates with unit dt."""
        factor = None
        for _ in range(steps):
            factor = self.advance(1.0)
        return factor

    def toggle_fast(self) -> float:
        """Switch between normal and fast growth; returns the new speed."""
        self.speed = self.config.fast_speed if self.speed == 1.0 else 1.0
        return self.speed

    def primitives(self) -> list[DrawPrimitive]:
        return export(self.organism, spectrum=self.sample().spectrum, time=self.time)

    def status(self) -> GrowthStatus:
        organism = self.organism
        if isinstance(organism, BranchingOrganism):
            node_count = organism.node_count
        else:
            node_count = 0
        return GrowthStatus(
            biomass=organism.biomass,
            health_percent=health_percent(organism.health),
            archetype=organism.name,
            node_count=node_count,
        )
