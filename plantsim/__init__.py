"""
Plantsim Growth Module

A toy procedural-growth visualizer: environmental controls (light,
temperature, humidity, spectrum) drive a stylized growth model for a
plant archetype, and the resulting structure is exported as drawable
primitives.

Modules:
    config: Archetypes, their parameter records and engine constants
    environment: Environment samples and sinusoidal schedules
    controls: Raw UI control values and their normalization
    factors: Growth rate and smoothed health
    organism: Branch-node and blade organism models
    dynamics: Growth engine step, extension and pruning rules
    export: Organism to Segment/LeafMark draw primitives
    controller: Single-owner driver for frame-loop or click growth
    rollout: Headless runs over environment schedules
    render: Reference matplotlib renderer
"""

from plantsim.config import (
    ARCHETYPE_PARAMS,
    Archetype,
    ArchetypeParams,
    GrowthConfig,
    InvalidArchetypeError,
    get_archetype_params,
)
from plantsim.controller import GrowthController, GrowthStatus
from plantsim.controls import ControlInputs
from plantsim.dynamics import step
from plantsim.environment import (
    EnvironmentSample,
    EnvironmentSchedule,
    SignalParams,
    compute_sample,
)
from plantsim.export import DrawPrimitive, LeafMark, Segment, export
from plantsim.factors import GrowthFactor, compute_growth_factor
from plantsim.organism import (
    AlgaeOrganism,
    Blade,
    BranchingOrganism,
    BranchNode,
    Organism,
    RandomSource,
    create_organism,
)
from plantsim.rollout import GrowthTrajectory, compare_archetypes, run_growth

__all__ = [
    # Config
    "ARCHETYPE_PARAMS",
    "Archetype",
    "ArchetypeParams",
    "GrowthConfig",
    "InvalidArchetypeError",
    "get_archetype_params",
    # Environment
    "ControlInputs",
    "EnvironmentSample",
    "EnvironmentSchedule",
    "SignalParams",
    "compute_sample",
    # Growth model
    "GrowthFactor",
    "compute_growth_factor",
    "AlgaeOrganism",
    "Blade",
    "BranchingOrganism",
    "BranchNode",
    "Organism",
    "RandomSource",
    "create_organism",
    "step",
    # Export
    "DrawPrimitive",
    "LeafMark",
    "Segment",
    "export",
    # Drivers
    "GrowthController",
    "GrowthStatus",
    "GrowthTrajectory",
    "compare_archetypes",
    "run_growth",
]
