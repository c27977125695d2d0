"""
Raster rendering of studio geometry with matplotlib.

Figures use the logical 500 x 500 canvas with the y axis flipped to
screen convention, so coordinates from the generators plot unchanged.

Animation is frame driven: FuncAnimation calls FractalAnimator.tick once
per frame and redraws the returned tree. The animation's timer is
attached to the animator, so closing the animator stops the timer.
"""

import logging
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.animation import FuncAnimation, PillowWriter
from matplotlib.collections import LineCollection
from matplotlib.patches import Polygon as MplPolygon

from studio.animation import FractalAnimator
from studio.config import FractalParams, StudioConfig, SuperformulaParams
from studio.fractal import FractalTree, segment_rgb, segment_width
from studio.superformula import evaluate_superformula, marker_points

logger = logging.getLogger(__name__)


@dataclass
class ShapeStyle:
    """Visual style of a superformula figure."""

    fill_color: str = "#06b6d4"
    fill_alpha: float = 0.2
    stroke_color: str = "#0891b2"
    stroke_width: float = 1.5
    marker_color: str = "#0e7490"
    marker_size: float = 3.0
    show_markers: bool = True
    background: str = "#ffffff"


def _canvas_axes(
    config: StudioConfig,
    ax: plt.Axes | None,
    figsize: tuple,
    background: str = "#ffffff",
) -> tuple[plt.Figure, plt.Axes]:
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    size = config.canvas_size
    ax.set_xlim(0, size)
    ax.set_ylim(size, 0)  # Flip Y for screen coords
    ax.set_aspect('equal')
    ax.axis('off')
    fig.patch.set_facecolor(background)
    return fig, ax


# =============================================================================
# SUPERFORMULA
# =============================================================================

def render_superformula(
    params: SuperformulaParams | None = None,
    style: ShapeStyle | None = None,
    config: StudioConfig | None = None,
    ax: plt.Axes | None = None,
    figsize: tuple = (6, 6),
) -> tuple[plt.Figure, plt.Axes]:
    """
    Render a superformula shape as a filled outline with vertex markers.

    Args:
        params: Shape parameters (Starfish if None)
        style: Visual style
        config: Canvas placement
        ax: Existing axes to draw into
        figsize: Figure size in inches when a new figure is created

    Returns:
        (figure, axes) tuple
    """
    if params is None:
        params = SuperformulaParams()
    if style is None:
        style = ShapeStyle()
    if config is None:
        config = StudioConfig()

    fig, ax = _canvas_axes(config, ax, figsize, style.background)
    points = np.asarray(evaluate_superformula(params, config))

    ax.add_patch(MplPolygon(
        points, closed=True,
        facecolor=style.fill_color, alpha=style.fill_alpha, edgecolor='none',
    ))
    ax.plot(points[:, 0], points[:, 1],
            color=style.stroke_color, linewidth=style.stroke_width,
            solid_joinstyle='round')

    if style.show_markers:
        marks = np.asarray(marker_points(points, params.clamped().resolution))
        ax.scatter(marks[:, 0], marks[:, 1],
                   s=style.marker_size, color=style.marker_color, zorder=3)

    return fig, ax


def save_superformula(
    filepath: str,
    params: SuperformulaParams | None = None,
    style: ShapeStyle | None = None,
    config: StudioConfig | None = None,
    dpi: int = 150,
):
    """Render and save a superformula shape to file."""
    fig, ax = render_superformula(params, style, config)
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight', pad_inches=0.1)
    plt.close(fig)
    logger.info("Saved to %s", filepath)


# =============================================================================
# FRACTAL
# =============================================================================

def _level_collections(tree: FractalTree) -> list[LineCollection]:
    collections = []
    for depth in range(tree.max_depth + 1):
        starts, ends = tree.level(depth)
        if len(starts) == 0:
            continue
        lines = np.stack([starts, ends], axis=1)
        collections.append(LineCollection(
            lines,
            colors=[segment_rgb(depth, tree.max_depth, tree.config)],
            linewidths=segment_width(depth, tree.max_depth, tree.config),
            capstyle='round',
        ))
    return collections


def draw_fractal(ax: plt.Axes, tree: FractalTree) -> list[LineCollection]:
    """Draw a tree onto axes, one LineCollection per depth level."""
    collections = _level_collections(tree)
    for collection in collections:
        ax.add_collection(collection)
    return collections


def render_fractal(
    tree: FractalTree,
    ax: plt.Axes | None = None,
    figsize: tuple = (6, 6),
    background: str = "#ffffff",
) -> tuple[plt.Figure, plt.Axes]:
    """
    Render a generated fractal tree.

    Args:
        tree: Output of generate_fractal
        ax: Existing axes to draw into
        figsize: Figure size in inches when a new figure is created
        background: Figure face colour

    Returns:
        (figure, axes) tuple
    """
    fig, ax = _canvas_axes(tree.config, ax, figsize, background)
    draw_fractal(ax, tree)
    return fig, ax


def save_fractal(filepath: str, tree: FractalTree, dpi: int = 150):
    """Render and save a fractal tree to file."""
    fig, ax = render_fractal(tree)
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight', pad_inches=0.1)
    plt.close(fig)
    logger.info("Saved to %s", filepath)


def animate_fractal(
    animator: FractalAnimator,
    frames: int | None = None,
    interval_ms: float | None = None,
    ax: plt.Axes | None = None,
    figsize: tuple = (6, 6),
) -> FuncAnimation:
    """
    Drive an animator from a matplotlib animation.

    Every frame calls animator.tick() with the frame interval in seconds
    and replaces the drawn collections with the new tree.

    Args:
        animator: Animator owning parameters and growth state
        frames: Number of frames (None runs until the animator is closed)
        interval_ms: Delay between frames (config.frame_interval if None)
        ax: Existing axes to draw into
        figsize: Figure size in inches

    Returns:
        The FuncAnimation; keep a reference to it while it runs
    """
    config = animator.config
    if interval_ms is None:
        interval_ms = config.frame_interval * 1000.0
    dt = interval_ms / 1000.0

    fig, ax = _canvas_axes(config, ax, figsize)
    drawn: list[LineCollection] = []

    def update(_frame):
        for collection in drawn:
            collection.remove()
        drawn.clear()
        tree = animator.tick(dt)
        drawn.extend(draw_fractal(ax, tree))
        return drawn

    anim = FuncAnimation(
        fig, update, frames=frames, interval=interval_ms,
        blit=False, repeat=False, cache_frame_data=False,
    )
    animator.attach_timer(anim.event_source)
    return anim


def save_growth_animation(
    filepath: str,
    params: FractalParams | None = None,
    num_frames: int = 120,
    wind_enabled: bool = False,
    fps: int = 30,
    config: StudioConfig | None = None,
):
    """Grow a tree from zero and write the animation as a GIF."""
    animator = FractalAnimator(params, wind_enabled=wind_enabled, config=config)
    fig, ax = _canvas_axes(animator.config, None, (6, 6))
    anim = animate_fractal(
        animator, frames=num_frames, interval_ms=1000.0 / fps, ax=ax
    )
    try:
        anim.save(filepath, writer=PillowWriter(fps=fps))
    finally:
        animator.close()
        plt.close(fig)
    logger.info("Saved to %s", filepath)
