"""
Headless growth rollouts.

Runs an organism through a time-varying environment schedule without a
UI, recording the scalar history of the run. Useful for tests, the demo
script, and comparing archetypes under the same conditions.
"""

from dataclasses import dataclass

import numpy as np

from plantsim import dynamics
from plantsim.config import Archetype, GrowthConfig
from plantsim.environment import EnvironmentSample, EnvironmentSchedule, compute_sample
from plantsim.factors import compute_growth_factor
from plantsim.organism import BranchingOrganism, Organism, create_organism


def _node_count(organism: Organism) -> int:
    if isinstance(organism, BranchingOrganism):
        return organism.node_count
    return 0


@dataclass
class GrowthTrajectory:
    """
    Record of one rollout.

    Histories include the initial state, so each has num_steps + 1
    entries; samples has one entry per step.
    """

    organism: Organism
    samples: list[EnvironmentSample]
    biomass_history: list[float]
    health_history: list[float]
    node_count_history: list[int]

    def get_scalar_summary(self) -> dict[str, float]:
        """
        Compute scalar diagnostics of the rollout.

        - FinalBiomass / FinalHealth / FinalNodes: end-of-run values
        - MinHealth: lowest health reached
        - PeakNodes: largest node count before any pruning
        - MeanLight / MeanTemperature: average conditions
        """
        steps = max(1, len(self.samples))
        return {
            "FinalBiomass": self.biomass_history[-1],
            "FinalHealth": self.health_history[-1],
            "MinHealth": min(self.health_history),
            "FinalNodes": self.node_count_history[-1],
            "PeakNodes": max(self.node_count_history),
            "MeanLight": sum(s.light for s in self.samples) / steps,
            "MeanTemperature": sum(s.temperature for s in self.samples) / steps,
        }

    def print_summary(self) -> None:
        """Print a formatted summary table to stdout."""
        summary = self.get_scalar_summary()
        print("\n" + "=" * 40)
        print(f"GROWTH SUMMARY ({self.organism.name})")
        print("=" * 40)
        for key, value in summary.items():
            if key in ("FinalNodes", "PeakNodes"):
                print(f"{key:20s}: {int(value):>10d}")
            else:
                print(f"{key:20s}: {value:>10.3f}")
        print("=" * 40)


def run_growth(
    archetype: "Archetype | str",
    schedule: EnvironmentSchedule | None = None,
    num_steps: int = 200,
    dt: float = 1.0,
    seed: int = 0,
    config: GrowthConfig | None = None,
) -> GrowthTrajectory:
    """
    Grow a fresh organism for num_steps steps.

    Args:
        archetype: Plant archetype (enum or name)
        schedule: Environment over time (defaults to a neutral constant)
        num_steps: Number of steps
        dt: Time step per step
        seed: Seed for organism construction and growth draws
        config: Engine constants

    Returns:
        GrowthTrajectory with the final organism and scalar histories
    """
    if config is None:
        config = GrowthConfig()
    if schedule is None:
        schedule = EnvironmentSchedule.constant(EnvironmentSample.neutral())

    rng = np.random.default_rng(seed)
    organism = create_organism(archetype, rng, config, leaf_seed=seed)

    samples: list[EnvironmentSample] = []
    biomass_history = [organism.biomass]
    health_history = [organism.health]
    node_count_history = [_node_count(organism)]

    for t in range(num_steps):
        sample = compute_sample(schedule, t * dt)
        samples.append(sample)

        factor = compute_growth_factor(sample, organism.archetype, organism.health, config)
        dynamics.step(organism, factor, sample, dt, rng, config)

        biomass_history.append(organism.biomass)
        health_history.append(organism.health)
        node_count_history.append(_node_count(organism))

    return GrowthTrajectory(
        organism=organism,
        samples=samples,
        biomass_history=biomass_history,
        health_history=health_history,
        node_count_history=node_count_history,
    )


def compare_archetypes(
    schedule: EnvironmentSchedule | None = None,
    num_steps: int = 200,
    dt: float = 1.0,
    seed: int = 0,
    config: GrowthConfig | None = None,
) -> dict[str, dict[str, float]]:
    """Run every archetype on the same schedule; map name to summary."""
    results = {}
    for archetype in Archetype:
        trajectory = run_growth(archetype, schedule, num_steps, dt, seed, config)
        results[archetype.value] = trajectory.get_scalar_summary()
    return results
