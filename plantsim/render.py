"""
Reference matplotlib renderer for exported growth structures.

Consumes only draw primitives and organism scalars:
- Sky or water background depending on archetype
- Ground / sea-floor strip below the anchor
- Segments as curved quadratic Bézier strokes
- Leaves as pointed leaf polygons
- A faint sun overlay scaled by light
"""

from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.patches import Polygon as MplPolygon
from matplotlib.patches import Rectangle

from plantsim.config import Archetype
from plantsim.export import Color, LeafMark, Segment, export, health_percent
from plantsim.organism import Organism


# =============================================================================
# VECTOR UTILITIES
# =============================================================================

def vec(x: float, y: float) -> np.ndarray:
    """Create a 2D vector."""
    return np.array([x, y], dtype=float)


def vec_lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Linear interpolation between two vectors."""
    return a + t * (b - a)


def quad_bezier_pts(a: np.ndarray, cpt: np.ndarray, b: np.ndarray, n: int) -> list[np.ndarray]:
    """Sample n+1 points along a quadratic Bézier curve."""
    pts = []
    for i in range(n + 1):
        t = i / n
        p0 = vec_lerp(a, cpt, t)
        p1 = vec_lerp(cpt, b, t)
        pts.append(vec_lerp(p0, p1, t))
    return pts


def hsl_to_rgb(color: Color) -> tuple[float, float, float]:
    """Convert an (hue°, saturation %, lightness %) triple to RGB in [0, 1]."""
    hue, sat, light = color
    return colorsys.hls_to_rgb((hue % 360.0) / 360.0, light / 100.0, sat / 100.0)


# =============================================================================
# GEOMETRY
# =============================================================================

def segment_curve(segment: Segment, samples: int = 12) -> list[np.ndarray]:
    """Points along a segment, bowed sideways by its bend offset."""
    a = vec(*segment.start)
    b = vec(*segment.end)
    mid = vec_lerp(a, b, 0.5)
    direction = b - a
    norm = math.hypot(direction[0], direction[1])
    if norm < 1e-9 or segment.bend == 0.0:
        return [a, b]
    perp = vec(-direction[1], direction[0]) / norm
    return quad_bezier_pts(a, mid + perp * segment.bend, b, samples)


def leaf_outline(
    leaf: LeafMark, width_ratio: float = 0.45, sharpness: float = 1.4, steps: int = 24
) -> np.ndarray:
    """
    Closed leaf polygon in world coordinates.

    Half-width along the midrib follows sin(π t)^sharpness, the same
    profile used for the stained-glass leaves.
    """
    max_half = leaf.size * width_ratio / 2
    c, s = math.cos(leaf.orientation), math.sin(leaf.orientation)
    right, left = [], []
    for i in range(steps + 1):
        t = i / steps
        along = t * leaf.size
        half = max_half * (math.sin(math.pi * t) ** sharpness)
        for side, out in ((1.0, right), (-1.0, left)):
            lx, ly = along, side * half
            out.append((leaf.position[0] + lx * c - ly * s, leaf.position[1] + lx * s + ly * c))
    return np.array(right + list(reversed(left[1:-1])))


# =============================================================================
# STYLE CONFIGURATION
# =============================================================================

@dataclass
class RenderStyle:
    """Colours for the scene around the organism."""

    sky_top: str = "#0b2230"
    sky_bottom: str = "#071a1d"
    ground_color: str = "#0c2a1a"
    water_top: str = "#073b59"
    water_bottom: str = "#02324a"
    seabed_color: str = "#2b241a"
    sun_color: tuple = (1.0, 0.92, 0.7)
    text_color: str = "#d8e8e0"
    show_status: bool = True


def _draw_background(ax: plt.Axes, archetype: Archetype, style: RenderStyle,
                     bounds: tuple[float, float, float, float], ground_y: float) -> None:
    x0, x1, y0, y1 = bounds
    if archetype is Archetype.ALGAE:
        top, bottom, floor = style.water_top, style.water_bottom, style.seabed_color
    else:
        top, bottom, floor = style.sky_top, style.sky_bottom, style.ground_color

    gradient = np.linspace(1.0, 0.0, 256).reshape(-1, 1)
    cmap = LinearSegmentedColormap.from_list("bg", [bottom, top])
    ax.imshow(gradient, extent=(x0, x1, y0, y1), cmap=cmap, aspect="auto", zorder=0)
    ax.add_patch(Rectangle((x0, y0), x1 - x0, ground_y - y0, facecolor=floor, edgecolor="none", zorder=1))


# =============================================================================
# MAIN RENDER FUNCTION
# =============================================================================

def render_organism(
    organism: Organism,
    style: RenderStyle | None = None,
    spectrum: float = 0.5,
    light: float = 0.7,
    time: float = 0.0,
    canvas_size: tuple = (900, 520),
    figsize: tuple = (9, 5.2),
) -> tuple[plt.Figure, plt.Axes]:
    """
    Render an organism's exported structure.

    Args:
        organism: Organism to draw (read only)
        style: Scene colours
        spectrum: Current light colour, tints leaves
        light: Current light level, scales the sun overlay
        time: Driver clock, sways the strokes
        canvas_size: Virtual canvas size (width, height)
        figsize: Figure size in inches

    Returns:
        (figure, axes) tuple
    """
    if style is None:
        style = RenderStyle()

    width, height = canvas_size
    ground = 0.1 if organism.archetype is Archetype.ALGAE else 0.12
    ax_x, ax_y = organism.anchor
    bounds = (ax_x - width / 2, ax_x + width / 2, ax_y - height * ground, ax_y + height * (1 - ground))

    fig, ax = plt.subplots(figsize=figsize)
    ax.set_xlim(bounds[0], bounds[1])
    ax.set_ylim(bounds[2], bounds[3])
    ax.axis("off")

    _draw_background(ax, organism.archetype, style, bounds, ax_y)
    ax.set_aspect("equal")

    primitives = export(organism, spectrum=spectrum, time=time)
    for primitive in primitives:
        if isinstance(primitive, Segment):
            pts = segment_curve(primitive)
            ax.plot([p[0] for p in pts], [p[1] for p in pts],
                    color=hsl_to_rgb(primitive.color), linewidth=primitive.thickness * 0.5,
                    solid_capstyle="round", zorder=5)
        else:
            patch = MplPolygon(leaf_outline(primitive), facecolor=hsl_to_rgb(primitive.color),
                               edgecolor="none", alpha=0.95, zorder=10)
            ax.add_patch(patch)

    # Sun overlay
    ax.add_patch(Rectangle((bounds[0], bounds[2]), width, height,
                           facecolor=style.sun_color, edgecolor="none",
                           alpha=0.02 + 0.08 * min(1.0, max(0.0, light)), zorder=20))

    if style.show_status:
        ax.text(bounds[0] + 10, bounds[3] - 10,
                f"{organism.name}  biomass {organism.biomass:.3f}  "
                f"health {health_percent(organism.health)}%",
                color=style.text_color, fontsize=9, va="top", zorder=30)

    return fig, ax


def save_organism(
    filepath: str,
    organism: Organism,
    style: RenderStyle | None = None,
    spectrum: float = 0.5,
    light: float = 0.7,
    time: float = 0.0,
    dpi: int = 150,
    canvas_size: tuple = (900, 520),
    figsize: tuple = (9, 5.2),
) -> None:
    """Render and save an organism to file."""
    fig, ax = render_organism(organism, style, spectrum, light, time, canvas_size, figsize)
    fig.savefig(filepath, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
    plt.close(fig)
    print(f"Saved to {filepath}")
