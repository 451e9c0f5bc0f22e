"""
Tests for the growth engine.

Exact-topology tests use a scripted random source. Per extension the
engine draws, in order: angle jitter, length factor, lateral roll, and
(only when a lateral is taken) lateral angle and lateral length factor.
"""

import itertools
import math

import numpy as np
import pytest

from plantsim.config import Archetype, GrowthConfig, get_archetype_params
from plantsim.dynamics import (
    branch_probability,
    extend_tip,
    prune_nodes,
    step,
    tip_growth_speed,
)
from plantsim.environment import EnvironmentSample
from plantsim.factors import GrowthFactor, compute_growth_factor
from plantsim.organism import (
    AlgaeOrganism,
    BranchingOrganism,
    BranchNode,
    check_tree_invariants,
    create_organism,
)


class ScriptedRandom:
    """Random source replaying a fixed sequence of unit draws."""

    def __init__(self, draws, repeat: bool = False) -> None:
        self._draws = itertools.cycle(draws) if repeat else iter(draws)

    def random(self) -> float:
        return next(self._draws)

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * next(self._draws)


OPTIMUM = EnvironmentSample(light=1.0, temperature=22.0, humidity=1.0, spectrum=1.0)
FULL_GROWTH = GrowthFactor(growth_rate=1.0, health=1.0)


def make_chain(length: int, archetype: Archetype = Archetype.BRANCHING) -> BranchingOrganism:
    organism = BranchingOrganism(archetype=archetype, biomass=0.05)
    for i in range(length):
        organism.add_node(
            BranchNode(
                id=i,
                parent_id=i - 1 if i else None,
                x=0.0,
                y=float(i * 10),
                angle=math.pi / 2,
                length=10.0,
                thickness=6.0,
                depth=i,
            )
        )
    return organism


def run_steps(organism, sample, steps, dt=1.0, seed=0, config=None):
    """Drive the engine with the real growth factor calculator."""
    config = config or GrowthConfig()
    rng = np.random.default_rng(seed)
    for _ in range(steps):
        factor = compute_growth_factor(sample, organism.archetype, organism.health, config)
        step(organism, factor, sample, dt, rng, config)
    return organism


class TestBranchProbability:
    """Tests for lateral branching probability."""

    def test_decreases_with_depth(self) -> None:
        params = get_archetype_params(Archetype.BRANCHING)
        config = GrowthConfig()
        probs = [branch_probability(d, params, config) for d in range(12)]
        assert probs[0] == pytest.approx(0.18)
        assert all(a >= b for a, b in zip(probs, probs[1:]))

    def test_never_negative(self) -> None:
        params = get_archetype_params(Archetype.BRANCHING)
        assert branch_probability(20, params, GrowthConfig()) == 0.0

    def test_succulent_scaled_down(self) -> None:
        config = GrowthConfig()
        tree = branch_probability(0, get_archetype_params(Archetype.BRANCHING), config)
        succulent = branch_probability(0, get_archetype_params(Archetype.SUCCULENT), config)
        assert succulent == pytest.approx(tree * 0.03)


class TestTipGrowth:
    """Tests for tip progress and extension timing."""

    def test_speed_formula(self) -> None:
        params = get_archetype_params(Archetype.BRANCHING)
        speed = tip_growth_speed(1.0, 1.0, params, GrowthConfig())
        assert speed == pytest.approx(0.6 * 0.05)

    def test_optimum_scenario_extends_once(self) -> None:
        """One large step at the optimum yields one extension from the root."""
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 50.0, np.random.default_rng(1))
        assert organism.node_count in (2, 3)
        assert all(node.depth <= 1 for node in organism.nodes)
        assert organism.root.grown == 0.0

    def test_below_threshold_accumulates(self) -> None:
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 10.0, np.random.default_rng(1))
        assert organism.node_count == 1
        assert organism.root.grown == pytest.approx(0.3)

    def test_new_children_do_not_grow_same_step(self) -> None:
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 50.0, np.random.default_rng(1))
        for node in organism.nodes[1:]:
            assert node.grown == 0.0

    def test_only_tips_accumulate(self) -> None:
        """Once a node has a child it stops growing; its tip carries on."""
        organism = make_chain(3)
        step(organism, FULL_GROWTH, OPTIMUM, 10.0, ScriptedRandom([0.5]))
        assert [node.grown for node in organism.nodes[:2]] == [0.0, 0.0]
        assert organism.nodes[2].grown == pytest.approx(0.3)

    def test_children_per_node_bounded(self) -> None:
        """A node gets a primary child and at most one lateral, never more."""
        organism = make_chain(1)
        rng = ScriptedRandom([0.5, 0.5, 0.0, 0.5, 0.5], repeat=True)
        for _ in range(10):
            step(organism, FULL_GROWTH, OPTIMUM, 40.0, rng)
        counts = [organism.child_count(node) for node in organism.nodes]
        assert organism.child_count(organism.root) == 2
        assert max(counts) <= 2

    def test_pruned_parent_grows_again(self) -> None:
        organism = make_chain(6)
        organism.truncate(3)
        tip = organism.find_node(2)
        assert organism.is_tip(tip)
        step(organism, FULL_GROWTH, OPTIMUM, 50.0, ScriptedRandom([0.5, 0.5, 0.99]))
        assert organism.child_count(tip) == 1
        assert organism.nodes[-1].parent_id == 2

    def test_no_growth_in_darkness(self) -> None:
        dark = EnvironmentSample(light=0.0, temperature=22.0, humidity=1.0, spectrum=1.0)
        organism = run_steps(create_organism("tree", np.random.default_rng(0)), dark, 200)
        assert organism.node_count == 1
        assert organism.biomass == pytest.approx(0.05)


class TestExtension:
    """Tests for primary and lateral child creation."""

    def test_forced_lateral(self) -> None:
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        root = organism.root
        rng = ScriptedRandom([0.5, 0.5, 0.0, 0.5, 0.5])
        step(organism, FULL_GROWTH, OPTIMUM, 50.0, rng)

        assert organism.node_count == 3
        primary, lateral = organism.nodes[1], organism.nodes[2]
        assert primary.parent_id == root.id
        assert lateral.parent_id == root.id
        assert primary.depth == lateral.depth == 1
        assert primary.thickness == pytest.approx(max(1.0, root.thickness * 0.75))
        assert lateral.thickness == pytest.approx(primary.thickness * 0.8)
        assert primary.length == pytest.approx(root.length * 0.825)
        assert lateral.length == pytest.approx(primary.length * 0.775)

    def test_high_roll_no_lateral(self) -> None:
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 50.0, ScriptedRandom([0.5, 0.5, 0.99]))
        assert organism.node_count == 2

    def test_vertical_parent_stays_vertical(self) -> None:
        """With zero jitter and half light there is no sideways lean."""
        sample = EnvironmentSample(light=0.5, temperature=22.0, humidity=1.0, spectrum=1.0)
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0))
        step(organism, FULL_GROWTH, sample, 50.0, ScriptedRandom([0.5, 0.5, 0.99]))
        child = organism.nodes[1]
        assert child.angle == pytest.approx(math.pi / 2)
        assert child.x == pytest.approx(0.0, abs=1e-9)
        assert child.y == pytest.approx(child.length)

    def test_endpoint_follows_angle(self) -> None:
        organism = make_chain(1)
        tip = organism.root
        sample = EnvironmentSample(light=0.2, temperature=22.0, humidity=0.5, spectrum=0.1)
        (child,) = extend_tip(organism, tip, sample, ScriptedRandom([0.9, 0.3, 0.99]), GrowthConfig())
        assert child.x == pytest.approx(tip.x + math.cos(child.angle) * child.length)
        assert child.y == pytest.approx(tip.y + math.sin(child.angle) * child.length)

    def test_zero_length_parent_uses_fallback(self) -> None:
        organism = make_chain(1, Archetype.SUCCULENT)
        organism.root.length = 0.0
        (child,) = extend_tip(
            organism, organism.root, OPTIMUM, ScriptedRandom([0.5, 0.0, 0.99]), GrowthConfig()
        )
        assert child.length == pytest.approx(8.0 * 0.6)

    def test_succulent_rarely_branches(self) -> None:
        """A roll of 0.01 exceeds the succulent's scaled-down probability."""
        organism = create_organism(Archetype.SUCCULENT, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 200.0, ScriptedRandom([0.5, 0.5, 0.01]))
        assert organism.node_count == 2

    def test_no_lateral_at_lateral_max_depth(self) -> None:
        organism = make_chain(7)
        tip = organism.nodes[-1]
        assert tip.depth == 6
        created = extend_tip(organism, tip, OPTIMUM, ScriptedRandom([0.5, 0.5, 0.0]), GrowthConfig())
        assert len(created) == 1

    def test_thickness_floor(self) -> None:
        organism = make_chain(1)
        organism.root.thickness = 1.0
        (child,) = extend_tip(
            organism, organism.root, OPTIMUM, ScriptedRandom([0.5, 0.5, 0.99]), GrowthConfig()
        )
        assert child.thickness == 1.0


class TestTerminalTips:
    """Tests for archetype depth limits."""

    def test_succulent_terminal_at_max_depth(self) -> None:
        max_depth = get_archetype_params(Archetype.SUCCULENT).max_depth
        organism = make_chain(max_depth + 1, Archetype.SUCCULENT)
        assert organism.nodes[-1].depth == max_depth
        step(organism, FULL_GROWTH, OPTIMUM, 1000.0, np.random.default_rng(0))
        assert organism.node_count == max_depth + 1
        assert organism.nodes[-1].grown == 0.0

    def test_succulent_stops_at_max_depth(self) -> None:
        """Succulents reach their depth limit and then hold their shape."""
        params = get_archetype_params(Archetype.SUCCULENT)
        organism = create_organism(Archetype.SUCCULENT, np.random.default_rng(3))
        run_steps(organism, OPTIMUM, 200, dt=200.0, seed=3)
        assert organism.max_depth() == params.max_depth
        frozen = organism.node_count
        run_steps(organism, OPTIMUM, 20, dt=200.0, seed=4)
        assert organism.node_count == frozen

    def test_branching_depth_not_binding_before_cap(self) -> None:
        """A single chain hits the node cap before the branching depth limit."""
        config = GrowthConfig()
        params = get_archetype_params(Archetype.BRANCHING)
        assert params.max_depth >= config.max_nodes


class TestStructuralInvariants:
    """Tests that stepping always yields a well-formed tree."""

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_invariants_hold(self, seed) -> None:
        sample = EnvironmentSample(light=0.8, temperature=20.0, humidity=0.7, spectrum=0.4)
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(seed))
        rng = np.random.default_rng(seed + 100)
        for _ in range(300):
            factor = compute_growth_factor(sample, organism.archetype, organism.health)
            step(organism, factor, sample, 5.0, rng)
            assert list(check_tree_invariants(organism)) == []

    def test_ids_unique_and_increasing(self) -> None:
        organism = run_steps(create_organism("tree", np.random.default_rng(0)), OPTIMUM, 200, dt=10.0)
        ids = [node.id for node in organism.nodes]
        assert ids == sorted(set(ids))


class TestPruning:
    """Tests for the node cap."""

    def test_prune_keeps_earliest(self) -> None:
        organism = make_chain(60)
        config = GrowthConfig(max_nodes=50, retained_nodes=10)
        assert prune_nodes(organism, config) == 50
        assert [node.id for node in organism.nodes] == list(range(10))
        assert organism.next_id == 60
        assert list(check_tree_invariants(organism)) == []

    def test_prune_noop_under_cap(self) -> None:
        organism = make_chain(50)
        config = GrowthConfig(max_nodes=50, retained_nodes=10)
        assert prune_nodes(organism, config) == 0
        assert organism.node_count == 50

    def test_cap_holds_while_stepping(self) -> None:
        config = GrowthConfig(max_nodes=5, retained_nodes=2)
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(0), config)
        rng = np.random.default_rng(1)
        for _ in range(200):
            step(organism, FULL_GROWTH, OPTIMUM, 40.0, rng, config)
            assert organism.node_count <= config.max_nodes
            assert organism.root.id == 0
            assert organism.root.parent_id is None
            assert list(check_tree_invariants(organism)) == []

    def test_default_config_reaches_cap(self) -> None:
        """With default constants, sustained growth runs into the node cap."""
        config = GrowthConfig()
        organism = create_organism(Archetype.BRANCHING, np.random.default_rng(2))
        rng = np.random.default_rng(3)
        peak = 0
        pruned = False
        for _ in range(3000):
            before = organism.node_count
            step(organism, FULL_GROWTH, OPTIMUM, 40.0, rng, config)
            peak = max(peak, before)
            assert organism.node_count <= config.max_nodes
            if organism.node_count < before:
                pruned = True
                break
        assert pruned
        assert peak > config.retained_nodes
        assert organism.node_count == config.retained_nodes
        assert organism.root.parent_id is None
        assert list(check_tree_invariants(organism)) == []


class TestHealth:
    """Tests for health bounds and inertia through the engine."""

    def test_health_bounds(self) -> None:
        for temp in (-40.0, 5.0, 22.0, 70.0):
            sample = EnvironmentSample(light=0.5, temperature=temp, humidity=0.5, spectrum=0.5)
            organism = run_steps(create_organism("tree", np.random.default_rng(0)), sample, 300)
            assert 0.05 <= organism.health <= 1.0

    def test_health_declines_monotonically_when_hot(self) -> None:
        sample = EnvironmentSample(light=0.5, temperature=62.0, humidity=0.5, spectrum=0.5)
        organism = create_organism("tree", np.random.default_rng(0))
        rng = np.random.default_rng(0)
        previous = organism.health
        for _ in range(200):
            factor = compute_growth_factor(sample, organism.archetype, organism.health)
            step(organism, factor, sample, 1.0, rng)
            assert organism.health <= previous
            previous = organism.health
        assert organism.health < 0.1

    def test_converges_to_half(self) -> None:
        """At T_opt + width * sqrt(ln 2) the fitness is exactly 0.5."""
        temp = 22.0 + 8.0 * math.sqrt(math.log(2.0))
        sample = EnvironmentSample(light=0.5, temperature=temp, humidity=0.5, spectrum=0.5)
        organism = run_steps(create_organism("succulent", np.random.default_rng(0)), sample, 1000)
        assert organism.health == pytest.approx(0.5, abs=1e-3)

    def test_one_hot_step_keeps_inertia(self) -> None:
        sample = EnvironmentSample(light=0.5, temperature=62.0, humidity=0.5, spectrum=0.5)
        organism = run_steps(create_organism("tree", np.random.default_rng(0)), sample, 1)
        assert organism.health == pytest.approx(0.98, abs=1e-5)


class TestAlgae:
    """Tests for blade lengthening."""

    def test_lengths_monotone(self) -> None:
        organism = create_organism(Archetype.ALGAE, np.random.default_rng(0))
        rng = np.random.default_rng(0)
        previous = [blade.length for blade in organism.blades]
        for _ in range(50):
            factor = compute_growth_factor(OPTIMUM, organism.archetype, organism.health)
            step(organism, factor, OPTIMUM, 3.0, rng)
            current = [blade.length for blade in organism.blades]
            assert all(b >= a for a, b in zip(previous, current))
            previous = current

    def test_length_capped(self) -> None:
        organism = create_organism(Archetype.ALGAE, np.random.default_rng(0))
        step(organism, FULL_GROWTH, OPTIMUM, 1e6, np.random.default_rng(0))
        assert all(blade.length == 600.0 for blade in organism.blades)

    def test_scenario_lengths_and_biomass(self) -> None:
        organism = create_organism(Archetype.ALGAE, np.random.default_rng(0))
        assert isinstance(organism, AlgaeOrganism)
        for blade in organism.blades:
            blade.length = 60.0
        sample = EnvironmentSample(light=1.0, temperature=18.0, humidity=0.5, spectrum=0.5)
        rng = np.random.default_rng(0)
        for _ in range(100):
            factor = compute_growth_factor(sample, organism.archetype, organism.health)
            step(organism, factor, sample, 1.0, rng)

        for blade in organism.blades:
            expected = min(600.0, 60.0 + 100 * blade.growth * 2.0)
            assert blade.length == pytest.approx(expected)
        assert organism.biomass == pytest.approx(0.1 + 100 * 0.0006 * 1.3)

    def test_blade_count_fixed(self) -> None:
        organism = run_steps(create_organism("algae", np.random.default_rng(0)), OPTIMUM, 20)
        assert len(organism.blades) == GrowthConfig().blade_count


class TestStepEdgeCases:
    """Tests for degenerate time steps and bad input."""

    @pytest.mark.parametrize("dt", [0.0, -5.0])
    def test_nonpositive_dt_changes_nothing(self, dt) -> None:
        organism = create_organism("tree", np.random.default_rng(0))
        run_steps(organism, OPTIMUM, 30, dt=10.0)
        nodes_before = [(n.id, n.grown) for n in organism.nodes]
        biomass_before = organism.biomass
        step(organism, FULL_GROWTH, OPTIMUM, dt, np.random.default_rng(9))
        assert [(n.id, n.grown) for n in organism.nodes] == nodes_before
        assert organism.biomass == biomass_before

    def test_nonpositive_dt_algae(self) -> None:
        organism = create_organism("algae", np.random.default_rng(0))
        lengths = [blade.length for blade in organism.blades]
        step(organism, FULL_GROWTH, OPTIMUM, -1.0, np.random.default_rng(0))
        assert [blade.length for blade in organism.blades] == lengths

    def test_biomass_never_decreases(self) -> None:
        sample = EnvironmentSample(light=0.6, temperature=30.0, humidity=0.3, spectrum=0.2)
        organism = create_organism("succulent", np.random.default_rng(0))
        rng = np.random.default_rng(0)
        previous = organism.biomass
        for _ in range(100):
            factor = compute_growth_factor(sample, organism.archetype, organism.health)
            step(organism, factor, sample, 2.0, rng)
            assert organism.biomass >= previous
            previous = organism.biomass

    def test_rejects_unknown_organism(self) -> None:
        with pytest.raises(TypeError):
            step(object(), FULL_GROWTH, OPTIMUM, 1.0, np.random.default_rng(0))

    def test_returns_same_object(self) -> None:
        organism = create_organism("tree", np.random.default_rng(0))
        assert step(organism, FULL_GROWTH, OPTIMUM, 1.0, np.random.default_rng(0)) is organism
