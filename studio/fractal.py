"""
Recursive branching fractal tree.

Each segment spawns `branch_count` children rotated by +angle, -angle
(and 0 for ternary trees) from its own effective heading, each shorter by
`length_multiplier`. The trunk is depth 0; a tree of depth d therefore has

    binary:  2^(d+1) - 1 segments
    ternary: (3^(d+1) - 1) / 2 segments

Generation is level-order over numpy arrays: the frontier of one level
(origins, headings, nominal lengths) produces the next level with
np.repeat, so there is no Python recursion and the cost per level is a
handful of vectorised operations.

Per-frame inputs are bundled into an immutable FractalFrame. The output is
a pure function of that snapshot, so the same generator serves the
animation loop and static exports.

Coordinates follow the screen convention (y down). Headings are degrees,
with the trunk at -90 (straight up) and positive angles turning clockwise.
"""

import colorsys
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np

from studio.config import FractalParams, StudioConfig

logger = logging.getLogger(__name__)


class FractalFrame(NamedTuple):
    """Immutable per-frame snapshot of everything the generator reads."""

    params: FractalParams
    growth: float = 1.0  # Growth fraction in [0, 1]
    time: float = 0.0  # Seconds; only used when wind is enabled
    wind_enabled: bool = False


class Segment(NamedTuple):
    """One drawn branch with its depth-derived style."""

    start: tuple[float, float]
    end: tuple[float, float]
    depth: int
    color: str
    width: float


# =============================================================================
# STRUCTURE
# =============================================================================

def segment_count(branch_count: int, depth: int) -> int:
    """Number of segments in a full tree of the given depth."""
    if depth < 0:
        return 0
    k = 3 if branch_count > 2 else 2
    return (k ** (depth + 1) - 1) // (k - 1)


def effective_depth(params: FractalParams, max_segments: int) -> int:
    """
    Largest depth <= params.depth whose tree fits in max_segments.

    The trunk alone is always allowed, so the result is at least 0.
    """
    depth = params.depth
    while depth > 0 and segment_count(params.branch_count, depth) > max_segments:
        depth -= 1
    return depth


# =============================================================================
# GROWTH, WIND AND STYLE
# =============================================================================

def growth_scale(growth: float, max_depth: int) -> float:
    """
    Fraction of nominal length drawn at a given growth fraction.

    All branches scale together: min(1, growth * max_depth / 2). The curve
    saturates once growth reaches 2 / max_depth. A trunk-only tree uses
    max_depth = 1 so it still grows.
    """
    growth = min(max(float(growth), 0.0), 1.0)
    return min(1.0, growth * max(max_depth, 1) / 2.0)


def wind_angle(depth_index: int, time: float, config: StudioConfig) -> float:
    """
    Angular sway (degrees) of a branch at the given depth.

    sin(time * frequency + depth) * depth * amplitude: deeper, thinner
    branches sway more and the trunk (depth 0) never moves.
    """
    return (
        math.sin(time * config.wind_frequency + depth_index)
        * depth_index
        * config.wind_amplitude
    )


def _depth_ratio(depth_index: int, max_depth: int) -> float:
    if max_depth <= 0:
        return 0.0
    return depth_index / max_depth


def segment_color(depth_index: int, max_depth: int, config: StudioConfig | None = None) -> str:
    """
    CSS hsl() colour for a depth level.

    Hue runs from hue_base at the trunk to hue_tip at the deepest level and
    lightness falls toward the tips.
    """
    if config is None:
        config = StudioConfig()
    ratio = _depth_ratio(depth_index, max_depth)
    hue = config.hue_base + ratio * (config.hue_tip - config.hue_base)
    lightness = config.lightness_base + ratio * (config.lightness_tip - config.lightness_base)
    return f"hsl({hue:g}, {config.saturation:g}%, {lightness:g}%)"


def segment_rgb(
    depth_index: int, max_depth: int, config: StudioConfig | None = None
) -> tuple[float, float, float]:
    """Same colour as segment_color, as an RGB triple in [0, 1]."""
    if config is None:
        config = StudioConfig()
    ratio = _depth_ratio(depth_index, max_depth)
    hue = config.hue_base + ratio * (config.hue_tip - config.hue_base)
    lightness = config.lightness_base + ratio * (config.lightness_tip - config.lightness_base)
    return hsl_to_rgb(hue, config.saturation, lightness)


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[float, float, float]:
    """Convert CSS-style HSL (degrees, percent, percent) to RGB in [0, 1]."""
    return colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness / 100.0, saturation / 100.0)


def segment_width(depth_index: int, max_depth: int, config: StudioConfig | None = None) -> float:
    """Stroke width, shrinking linearly with depth down to a floor."""
    if config is None:
        config = StudioConfig()
    return max(config.min_width, (max_depth - depth_index + 1) * config.width_step)


# =============================================================================
# TREE
# =============================================================================

@dataclass
class FractalTree:
    """
    All segments of one generated frame.

    Segments are stored level by level: every segment of depth k precedes
    every segment of depth k + 1.
    """

    starts: np.ndarray  # (N, 2)
    ends: np.ndarray  # (N, 2)
    depths: np.ndarray  # (N,) depth index, 0 = trunk
    max_depth: int  # Depth actually generated
    requested_depth: int  # Depth asked for (before the segment ceiling)
    growth: float = 1.0
    time: float = 0.0
    config: StudioConfig = field(default_factory=StudioConfig)

    def __len__(self) -> int:
        return len(self.depths)

    @property
    def capped(self) -> bool:
        """True when the segment ceiling reduced the requested depth."""
        return self.max_depth < self.requested_depth

    def lengths(self) -> np.ndarray:
        """Drawn length of every segment."""
        delta = self.ends - self.starts
        return np.hypot(delta[:, 0], delta[:, 1])

    def level(self, depth_index: int) -> tuple[np.ndarray, np.ndarray]:
        """Start and end points of all segments at one depth."""
        mask = self.depths == depth_index
        return self.starts[mask], self.ends[mask]

    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over all segment endpoints."""
        pts = np.concatenate([self.starts, self.ends], axis=0)
        lo = pts.min(axis=0)
        hi = pts.max(axis=0)
        return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])

    def segments(self) -> Iterator[Segment]:
        """Iterate over segments with their colour and width."""
        styles = {
            d: (segment_color(d, self.max_depth, self.config),
                segment_width(d, self.max_depth, self.config))
            for d in range(self.max_depth + 1)
        }
        for start, end, depth in zip(self.starts, self.ends, self.depths):
            color, width = styles[int(depth)]
            yield Segment(
                start=(float(start[0]), float(start[1])),
                end=(float(end[0]), float(end[1])),
                depth=int(depth),
                color=color,
                width=width,
            )


def generate_fractal(frame: FractalFrame, config: StudioConfig | None = None) -> FractalTree:
    """
    Generate the full segment tree for one frame.

    Growth is clamped to [0, 1] and a non-finite time is treated as 0.

    For each level, in order:
        1. sway = wind_angle(level, time) if wind is enabled, else 0
        2. effective heading = heading + sway
        3. drawn length = nominal length * growth_scale(growth, depth)
        4. emit segments from each origin along the effective heading
        5. unless this is the last level, spawn children at ±angle (and 0)
           from the effective heading with nominal length * multiplier

    Args:
        frame: Parameters, growth fraction, time and wind flag
        config: Canvas placement and style constants (defaults if None)

    Returns:
        FractalTree with every segment of the frame
    """
    if config is None:
        config = StudioConfig()
    params = frame.params.clamped()

    depth = effective_depth(params, config.max_segments)
    if depth < params.depth:
        # Called every frame; the animator warns once per parameter change
        logger.debug(
            "Depth %d with %d branches exceeds %d segments; capped to depth %d",
            params.depth, params.branch_count, config.max_segments, depth,
        )

    growth = float(frame.growth)
    growth = 0.0 if math.isnan(growth) else min(max(growth, 0.0), 1.0)
    time = float(frame.time)
    if not math.isfinite(time):
        time = 0.0
    # Growth speed follows the requested depth, even when capped
    scale = growth_scale(growth, params.depth)

    offsets = [params.angle, -params.angle]
    if params.branch_count > 2:
        offsets.append(0.0)
    offsets = np.asarray(offsets)
    fan_out = len(offsets)

    x = np.array([config.fractal_origin[0]], dtype=float)
    y = np.array([config.fractal_origin[1]], dtype=float)
    heading = np.array([config.trunk_heading], dtype=float)
    length = np.array([config.trunk_length], dtype=float)

    starts, ends, depths = [], [], []
    for level in range(depth + 1):
        sway = wind_angle(level, time, config) if frame.wind_enabled else 0.0
        effective = heading + sway
        radians = np.radians(effective)
        drawn = length * scale
        end_x = x + drawn * np.cos(radians)
        end_y = y + drawn * np.sin(radians)

        starts.append(np.stack([x, y], axis=1))
        ends.append(np.stack([end_x, end_y], axis=1))
        depths.append(np.full(len(x), level, dtype=np.int32))

        if level == depth:
            break

        # Children fan out from the swayed heading, so sway accumulates
        heading = (effective[:, None] + offsets[None, :]).ravel()
        x = np.repeat(end_x, fan_out)
        y = np.repeat(end_y, fan_out)
        length = np.repeat(length * params.length_multiplier, fan_out)

    return FractalTree(
        starts=np.concatenate(starts, axis=0),
        ends=np.concatenate(ends, axis=0),
        depths=np.concatenate(depths, axis=0),
        max_depth=depth,
        requested_depth=params.depth,
        growth=growth,
        time=time,
        config=config,
    )
