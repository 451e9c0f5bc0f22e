"""
Growth engine - advances an organism by one time step.

Branching organisms (branching, succulent):

1. Health takes the smoothed value from the growth factor
2. Biomass accumulates from the growth rate
3. Every current tip accumulates growth progress
   (tips at the archetype's max depth are terminal and never grow)
4. A tip whose progress crosses the threshold resets and extends:
   one primary child, plus a probabilistic lateral branch
5. The node count is capped by truncating to an early prefix

Algae organisms only lengthen their blades and accumulate biomass.

Direction biases for new children:
- Blue light (spectrum → 1) pulls growth toward vertical and narrows spread
- Red light (spectrum → 0) widens lateral spread
- Dim light adds a small sideways lean

All random draws come from the injected RandomSource.
"""

import logging
import math

from plantsim.config import ArchetypeParams, GrowthConfig, get_archetype_params
from plantsim.environment import EnvironmentSample
from plantsim.factors import GrowthFactor
from plantsim.organism import AlgaeOrganism, BranchingOrganism, BranchNode, Organism, RandomSource

logger = logging.getLogger(__name__)


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def tip_growth_speed(
    health: float, growth_rate: float, params: ArchetypeParams, config: GrowthConfig
) -> float:
    """Growth progress gained by a tip per unit dt."""
    return config.tip_speed * health * growth_rate * params.growth_speed * config.growth_scale


def branch_probability(depth: int, params: ArchetypeParams, config: GrowthConfig) -> float:
    """
    Probability that an extension also spawns a lateral branch.

    p = base * multiplier * (1 - depth * decay), floored at 0.
    Decreases with depth and is scaled down for compact archetypes.
    """
    p = config.base_branch_prob * params.branch_multiplier * (1.0 - depth * config.branch_depth_decay)
    return max(0.0, p)


def _child_angle(
    parent: BranchNode, sample: EnvironmentSample, rng: RandomSource, config: GrowthConfig
) -> float:
    jitter = float(rng.uniform(-config.angle_jitter, config.angle_jitter))
    spread = lerp(1.35, 0.65, sample.spectrum)
    light_bias = (0.5 - sample.light) * 0.3
    damping = max(0.1, 1.0 - parent.depth * config.angle_depth_damping)
    upward_pull = lerp(0.0, 0.35, sample.spectrum) * (math.pi / 2 - parent.angle)
    return parent.angle + (jitter * spread + light_bias) * damping + upward_pull


def _child_node(
    organism: BranchingOrganism,
    parent: BranchNode,
    angle: float,
    length: float,
    thickness: float,
) -> BranchNode:
    node = BranchNode(
        id=organism.next_id,
        parent_id=parent.id,
        x=parent.x + math.cos(angle) * length,
        y=parent.y + math.sin(angle) * length,
        angle=angle,
        length=length,
        thickness=thickness,
        depth=parent.depth + 1,
    )
    return organism.add_node(node)


def extend_tip(
    organism: BranchingOrganism,
    tip: BranchNode,
    sample: EnvironmentSample,
    rng: RandomSource,
    config: GrowthConfig,
) -> list[BranchNode]:
    """
    Create the primary child of a tip and maybe a lateral branch.

    Returns:
        The new nodes (one or two), primary first
    """
    params = get_archetype_params(organism.archetype)

    angle = _child_angle(tip, sample, rng, config)
    if tip.length > 0:
        length = tip.length * float(rng.uniform(*config.length_factor))
    else:
        length = float(rng.uniform(*config.fallback_length)) * params.stem_length_scale
    thickness = max(config.min_thickness, tip.thickness * config.thickness_taper)
    created = [_child_node(organism, tip, angle, length, thickness)]

    # Every extension consumes exactly one lateral roll
    roll = float(rng.random())
    if roll < branch_probability(tip.depth, params, config) and tip.depth < config.lateral_max_depth:
        lateral_angle = tip.angle + float(
            rng.uniform(-config.lateral_angle_jitter, config.lateral_angle_jitter)
        )
        lateral_length = length * float(rng.uniform(*config.lateral_length_factor))
        lateral_thickness = thickness * config.lateral_thickness
        created.append(_child_node(organism, tip, lateral_angle, lateral_length, lateral_thickness))

    return created


def prune_nodes(organism: BranchingOrganism, config: GrowthConfig) -> int:
    """
    Enforce the node cap.

    If the organism has more than max_nodes nodes, keep only the earliest
    retained_nodes. Creation order guarantees the kept prefix contains the
    root and every kept node's ancestors.

    Returns:
        Number of nodes dropped
    """
    if organism.node_count <= config.max_nodes:
        return 0
    dropped = organism.truncate(config.retained_nodes)
    logger.debug(
        "Pruned %d nodes from %s organism (%d kept)",
        dropped,
        organism.name,
        organism.node_count,
    )
    return dropped


def step_branching(
    organism: BranchingOrganism,
    factor: GrowthFactor,
    sample: EnvironmentSample,
    dt: float,
    rng: RandomSource,
    config: GrowthConfig,
) -> list[BranchNode]:
    """
    Advance a branching organism by dt.

    Returns:
        Nodes created during this step (empty if pruning removed them)
    """
    params = get_archetype_params(organism.archetype)
    dt = max(0.0, dt)

    organism.health = factor.health
    organism.biomass += params.biomass_rate * dt * factor.growth_rate

    speed = tip_growth_speed(factor.health, factor.growth_rate, params, config)
    created: list[BranchNode] = []

    # Collect tips first so children created this step don't grow yet
    for tip in organism.tips():
        if tip.depth >= params.max_depth:
            continue
        tip.grown += speed * dt
        if tip.grown >= config.growth_threshold:
            tip.grown = 0.0
            created.extend(extend_tip(organism, tip, sample, rng, config))

    if prune_nodes(organism, config):
        created = [node for node in created if organism.find_node(node.id) is node]
    return created


def step_algae(
    organism: AlgaeOrganism,
    factor: GrowthFactor,
    sample: EnvironmentSample,
    dt: float,
    config: GrowthConfig,
) -> None:
    """
    Advance an algae organism by dt.

    length' = clip(length + growth * dt * (0.8 + 1.2 * light), 0, max_length)
    biomass' = biomass + rate * dt * light * (1 + 0.6 * spectrum)
    """
    params = get_archetype_params(organism.archetype)
    dt = max(0.0, dt)

    organism.health = factor.health
    organism.biomass += params.biomass_rate * dt * sample.light * (1.0 + sample.spectrum * 0.6)

    light_boost = 0.8 + sample.light * 1.2
    for blade in organism.blades:
        grown = blade.length + blade.growth * dt * light_boost
        blade.length = min(config.max_blade_length, max(0.0, grown))


def step(
    organism: Organism,
    factor: GrowthFactor,
    sample: EnvironmentSample,
    dt: float,
    rng: RandomSource,
    config: GrowthConfig | None = None,
) -> Organism:
    """
    Perform one growth step in place.

    Args:
        organism: Organism to advance (mutated)
        factor: Growth rate and health from compute_growth_factor
        sample: Environment sample used for direction biases and algae growth
        dt: Time step (1 per click, elapsed_ms / 16 per frame)
        rng: Random source for extension geometry
        config: Engine constants (defaults to GrowthConfig())

    Returns:
        The same organism, for chaining
    """
    if config is None:
        config = GrowthConfig()
    sample = sample.clamped()

    if isinstance(organism, BranchingOrganism):
        step_branching(organism, factor, sample, dt, rng, config)
    elif isinstance(organism, AlgaeOrganism):
        step_algae(organism, factor, sample, dt, config)
    else:
        raise TypeError(f"Cannot step {type(organism).__name__}")
    return organism
