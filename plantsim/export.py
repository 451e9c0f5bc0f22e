"""
Structure exporter - organism to renderer-agnostic draw primitives.

Output is a flat list of Segment and LeafMark records:

- Branching: one Segment per non-root node (parent → node), ordered by
  depth so parents always precede children, followed by LeafMarks at
  the current tips.
- Algae: one Segment per blade, no leaves.

Export never mutates the organism. Leaf jitter is drawn from a generator
seeded by (organism.leaf_seed, tip id), so repeated exports of an
unchanged organism are identical while leaves still vary between tips.
Stroke bends sway with the driver clock passed in as `time`; connectivity
and leaves do not depend on it.
"""

import math
from typing import NamedTuple, Union

import numpy as np

from plantsim.config import Archetype, get_archetype_params
from plantsim.organism import AlgaeOrganism, BranchingOrganism, BranchNode, Organism

Point = tuple[float, float]
# (hue in degrees, saturation %, lightness %)
Color = tuple[float, float, float]

MIN_SEGMENT_THICKNESS = 1.0
MAX_SEGMENT_THICKNESS = 18.0


class Segment(NamedTuple):
    """A stroke from start to end; bend offsets the curve's control point."""

    start: Point
    end: Point
    thickness: float
    color: Color
    bend: float = 0.0
    node_id: int | None = None
    parent_id: int | None = None


class LeafMark(NamedTuple):
    """A leaf anchored at position, pointing along orientation (radians)."""

    position: Point
    orientation: float
    size: float
    color: Color
    node_id: int | None = None


DrawPrimitive = Union[Segment, LeafMark]


def health_percent(health: float) -> int:
    """Health as a 0-100 integer, rounding halves up."""
    return int(math.floor(health * 100.0 + 0.5))


def leaf_count(tip: BranchNode, archetype: Archetype, rng: np.random.Generator) -> int:
    """Leaves drawn at a tip: 3 for succulents, 1-3 deep in the crown, 2-5 low down."""
    if archetype is Archetype.SUCCULENT:
        return 3
    if tip.depth > 2:
        return int(round(1 + rng.random() * 2))
    return int(round(2 + rng.random() * 3))


def leaf_color(health: float, spectrum: float, archetype: Archetype) -> Color:
    """Greener and brighter with health; bluer light shifts the hue slightly."""
    hue = min(80.0, max(30.0, 50.0 + health * 30.0 + spectrum * 10.0))
    saturation = 70.0 if archetype is Archetype.SUCCULENT else 65.0
    return (hue, saturation, health * 30.0 + 30.0)


def _export_branching(
    organism: BranchingOrganism, spectrum: float, time: float
) -> list[DrawPrimitive]:
    params = get_archetype_params(organism.archetype)
    hue = params.stem_hue
    primitives: list[DrawPrimitive] = []

    # sorted() is stable, so creation order breaks ties within a depth
    for node in sorted(organism.nodes, key=lambda n: n.depth):
        parent = organism.parent_of(node)
        if parent is None:
            continue
        t = min(1.0, node.depth / 8.0)
        primitives.append(
            Segment(
                start=parent.position,
                end=node.position,
                thickness=min(MAX_SEGMENT_THICKNESS, max(MIN_SEGMENT_THICKNESS, node.thickness)),
                color=(hue - 20.0 + 15.0 * t, 40.0 + 5.0 * t, 18.0 + 10.0 * t),
                bend=math.sin(node.depth * 1.7 + node.id * 0.3 + time * 0.01) * 6.0,
                node_id=node.id,
                parent_id=parent.id,
            )
        )

    color = leaf_color(organism.health, spectrum, organism.archetype)
    for tip in organism.tips():
        rng = np.random.default_rng((organism.leaf_seed, tip.id))
        for _ in range(leaf_count(tip, organism.archetype, rng)):
            size = params.base_leaf_size * max(0.1, 1.0 - tip.depth * 0.06)
            primitives.append(
                LeafMark(
                    position=tip.position,
                    orientation=tip.angle + (rng.random() - 0.5) * 1.4,
                    size=size * (0.7 + rng.random() * 0.6),
                    color=color,
                    node_id=tip.id,
                )
            )
    return primitives


def _export_algae(organism: AlgaeOrganism, time: float) -> list[DrawPrimitive]:
    base_y = organism.anchor[1]
    return [
        Segment(
            start=(blade.x, base_y),
            end=(blade.x, base_y + blade.length),
            thickness=blade.thickness,
            color=(blade.hue, 60.0, 40.0),
            bend=math.sin(blade.phase + time * 0.02) * 12.0,
        )
        for blade in organism.blades
    ]


def export(organism: Organism, spectrum: float = 0.5, time: float = 0.0) -> list[DrawPrimitive]:
    """
    Project an organism onto draw primitives.

    Args:
        organism: Organism to export (read only)
        spectrum: Current light colour [0, 1], tints leaves
        time: Driver clock in dt units, sways stroke bends

    Returns:
        Segments (parents before children) followed by leaves
    """
    spectrum = min(1.0, max(0.0, spectrum))
    if isinstance(organism, BranchingOrganism):
        return _export_branching(organism, spectrum, time)
    if isinstance(organism, AlgaeOrganism):
        return _export_algae(organism, time)
    raise TypeError(f"Cannot export {type(organism).__name__}")


def segments(primitives: list[DrawPrimitive]) -> list[Segment]:
    return [p for p in primitives if isinstance(p, Segment)]


def leaves(primitives: list[DrawPrimitive]) -> list[LeafMark]:
    return [p for p in primitives if isinstance(p, LeafMark)]
