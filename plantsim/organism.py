"""
Organism model for the growth visualizer.

Two structural representations share the scalar biomass/health fields:

    BranchingOrganism: Append-only tree of BranchNodes (branching, succulent)
    AlgaeOrganism: Fixed set of Blades that only lengthen

Branch nodes are stored in creation order. Because a parent is always
created before its children, any prefix of the node list is itself a
connected tree rooted at node 0. The identifier and child-count indices
are maintained incrementally so parent lookup and tip tests are O(1).

Coordinates use the math convention: y grows upward and an angle of
π/2 points straight up. Each node's (x, y) is the endpoint of its
segment; the root sits on the anchor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from plantsim.config import Archetype, GrowthConfig, get_archetype_params


class RandomSource(Protocol):
    """
    Injectable source of random draws.

    numpy.random.Generator satisfies this protocol; tests may supply
    scripted sequences to pin down exact topology.
    """

    def random(self) -> float: ...

    def uniform(self, low: float, high: float) -> float: ...


@dataclass
class BranchNode:
    """One grown segment of a branching organism."""

    id: int
    parent_id: Optional[int]
    x: float
    y: float
    angle: float
    length: float
    thickness: float
    depth: int
    grown: float = 0.0  # Growth progress toward the next extension

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class Blade:
    """One algae frond. Only `length` changes after creation."""

    x: float
    length: float
    phase: float
    thickness: float
    hue: float
    growth: float  # Length gained per unit dt at zero light


@dataclass
class Organism:
    """Shared state of every organism."""

    archetype: Archetype
    biomass: float
    health: float = 1.0
    anchor: tuple[float, float] = (0.0, 0.0)
    leaf_seed: int = 0  # Seeds cosmetic leaf jitter in the exporter

    @property
    def name(self) -> str:
        return self.archetype.value


@dataclass
class BranchingOrganism(Organism):
    """Container for branch nodes with incremental lookup indices."""

    nodes: list[BranchNode] = field(default_factory=list)
    next_id: int = 0
    _index: dict[int, BranchNode] = field(default_factory=dict, init=False, repr=False)
    _child_counts: dict[int, int] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._rebuild_indices()

    def _rebuild_indices(self) -> None:
        self._index = {}
        self._child_counts = {}
        for node in self.nodes:
            self._register(node)

    def _register(self, node: BranchNode) -> None:
        self._index[node.id] = node
        self._child_counts.setdefault(node.id, 0)
        if node.parent_id is not None:
            self._child_counts[node.parent_id] = self._child_counts.get(node.parent_id, 0) + 1
        self.next_id = max(self.next_id, node.id + 1)

    def add_node(self, node: BranchNode) -> BranchNode:
        if node.id in self._index:
            raise ValueError(f"Duplicate node id {node.id}")
        if node.parent_id is None:
            if self.nodes:
                raise ValueError("Organism already has a root")
        elif node.parent_id not in self._index:
            raise ValueError(f"Unknown parent id {node.parent_id}")
        self.nodes.append(node)
        self._register(node)
        return node

    def truncate(self, keep: int) -> int:
        """Keep only the first `keep` nodes; return how many were dropped."""
        keep = max(1, keep)
        dropped = len(self.nodes) - keep
        if dropped <= 0:
            return 0
        del self.nodes[keep:]
        next_id = self.next_id
        self._rebuild_indices()
        # Identifiers are never reused, even after pruning
        self.next_id = next_id
        return dropped

    @property
    def root(self) -> BranchNode:
        return self.nodes[0]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def find_node(self, node_id: int) -> Optional[BranchNode]:
        return self._index.get(node_id)

    def parent_of(self, node: BranchNode) -> Optional[BranchNode]:
        if node.parent_id is None:
            return None
        return self._index.get(node.parent_id)

    def child_count(self, node: BranchNode) -> int:
        return self._child_counts.get(node.id, 0)

    def is_tip(self, node: BranchNode) -> bool:
        return self.child_count(node) == 0

    def tips(self) -> list[BranchNode]:
        """Nodes with no children, in creation order."""
        return [node for node in self.nodes if self.is_tip(node)]

    def max_depth(self) -> int:
        return max((node.depth for node in self.nodes), default=0)


@dataclass
class AlgaeOrganism(Organism):
    """Container for a fixed set of blades."""

    blades: list[Blade] = field(default_factory=list)


def _make_root(
    archetype: Archetype, rng: RandomSource, config: GrowthConfig, anchor: tuple[float, float]
) -> BranchNode:
    params = get_archetype_params(archetype)
    return BranchNode(
        id=0,
        parent_id=None,
        x=anchor[0],
        y=anchor[1],
        angle=math.pi / 2,
        length=float(rng.uniform(*config.root_length)),
        thickness=float(rng.uniform(*params.base_thickness)),
        depth=0,
    )


def _make_blades(
    rng: RandomSource, config: GrowthConfig, anchor: tuple[float, float]
) -> list[Blade]:
    params = get_archetype_params(Archetype.ALGAE)
    count = config.blade_count
    spacing = config.blade_spread / count
    left = anchor[0] - config.blade_spread / 2
    low, high = config.blade_growth
    blades = []
    for i in range(count):
        blades.append(
            Blade(
                x=left + i * spacing,
                length=float(rng.uniform(*config.blade_length)),
                phase=float(rng.random()) * 2 * math.pi,
                thickness=float(rng.uniform(*params.base_thickness)),
                hue=float(rng.uniform(160.0, 200.0)),
                growth=low + float(rng.random()) * (high - low),
            )
        )
    return blades


def create_organism(
    archetype: "Archetype | str",
    rng: RandomSource,
    config: GrowthConfig | None = None,
    anchor: tuple[float, float] = (0.0, 0.0),
    leaf_seed: int = 0,
) -> Organism:
    """
    Build a fresh organism for an archetype.

    Branching and succulent organisms start as a single upright root node;
    algae start with config.blade_count blades spread across the anchor.
    Biomass starts at the archetype's small positive seed value.

    Raises:
        InvalidArchetypeError: if the archetype is not recognised
    """
    if config is None:
        config = GrowthConfig()
    archetype = Archetype.parse(archetype)
    params = get_archetype_params(archetype)

    if archetype is Archetype.ALGAE:
        return AlgaeOrganism(
            archetype=archetype,
            biomass=params.seed_biomass,
            anchor=anchor,
            leaf_seed=leaf_seed,
            blades=_make_blades(rng, config, anchor),
        )

    organism = BranchingOrganism(
        archetype=archetype,
        biomass=params.seed_biomass,
        anchor=anchor,
        leaf_seed=leaf_seed,
    )
    organism.add_node(_make_root(archetype, rng, config, anchor))
    return organism


def check_tree_invariants(organism: BranchingOrganism) -> Iterable[str]:
    """
    Yield a description of every violated structural invariant.

    Checks: exactly one root, known parents, depth(child) = depth(parent) + 1,
    and parents created before children (which rules out cycles).
    """
    roots = [node for node in organism.nodes if node.parent_id is None]
    if len(roots) != 1:
        yield f"expected exactly one root, found {len(roots)}"
    seen: set[int] = set()
    for node in organism.nodes:
        if node.parent_id is not None:
            parent = organism.find_node(node.parent_id)
            if parent is None:
                yield f"node {node.id} references missing parent {node.parent_id}"
            else:
                if node.parent_id not in seen:
                    yield f"node {node.id} precedes its parent {node.parent_id}"
                if node.depth != parent.depth + 1:
                    yield f"node {node.id} has depth {node.depth}, parent {parent.depth}"
        seen.add(node.id)
