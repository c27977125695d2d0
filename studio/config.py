"""
Configuration and type definitions for the design studio generators.

This module defines the parameter sets driven by the studio controls and the
constants shared by the geometric generators and renderers.

Parameter sets:
    SuperformulaParams: symmetry order m, shape exponents n1..n3,
        scale denominators a, b and the angular sample count.
    FractalParams: branch angle, recursion depth, per-level length
        multiplier and branching factor (binary or ternary).

Out-of-range values are never rejected. Each parameter set exposes
`clamped()`, which maps every field back into its documented domain so
the generators always receive finite, usable numbers.
"""

import math
from dataclasses import dataclass


def _finite_or(value: float, default: float) -> float:
    """Return value as float, or default when value is NaN or infinite."""
    value = float(value)
    if not math.isfinite(value):
        return float(default)
    return value


def _clip(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class SuperformulaParams:
    """
    Parameters of the superformula curve.

    r(φ) = (|cos(mφ/4) / a|^n2 + |sin(mφ/4) / b|^n3)^(-1/n1)

    The defaults describe the "Starfish" preset.
    """

    m: int = 5  # Symmetry order (number of lobes for even n2 = n3)
    n1: float = 0.5  # Tension exponent
    n2: float = 1.7  # Exponent of the cosine term
    n3: float = 1.7  # Exponent of the sine term
    a: float = 1.0  # Cosine scale denominator
    b: float = 1.0  # Sine scale denominator
    resolution: int = 360  # Number of angular steps over [0, 2π]

    # Domains enforced by clamped()
    M_RANGE = (0, 20)
    EXPONENT_RANGE = (0.1, 20.0)
    SCALE_RANGE = (0.01, 10.0)
    RESOLUTION_RANGE = (3, 4096)

    def clamped(self) -> "SuperformulaParams":
        """Return a copy with every field inside its domain.

        Non-finite values fall back to the field default first. Exponents
        of exactly 0 would make the radius undefined, so they are lifted to
        the lower bound instead.
        """
        defaults = SuperformulaParams()
        m = round(_finite_or(self.m, defaults.m))
        resolution = round(_finite_or(self.resolution, defaults.resolution))
        return SuperformulaParams(
            m=int(_clip(m, *self.M_RANGE)),
            n1=_clip(_finite_or(self.n1, defaults.n1), *self.EXPONENT_RANGE),
            n2=_clip(_finite_or(self.n2, defaults.n2), *self.EXPONENT_RANGE),
            n3=_clip(_finite_or(self.n3, defaults.n3), *self.EXPONENT_RANGE),
            a=_clip(_finite_or(self.a, defaults.a), *self.SCALE_RANGE),
            b=_clip(_finite_or(self.b, defaults.b), *self.SCALE_RANGE),
            resolution=int(_clip(resolution, *self.RESOLUTION_RANGE)),
        )

    def is_valid(self) -> bool:
        """Check that every field already lies inside its domain."""
        return self == self.clamped()

    @classmethod
    def preset(cls, name: str) -> "SuperformulaParams":
        """Look up a named preset (case-insensitive)."""
        for preset_name, params in SUPERFORMULA_PRESETS.items():
            if preset_name.lower() == name.lower():
                return params
        raise KeyError(f"Unknown superformula preset: {name}")


@dataclass(frozen=True)
class FractalParams:
    """
    Parameters of the recursive branching tree.

    Each segment spawns `branch_count` children rotated by ±angle (and 0 for
    ternary trees), each `length_multiplier` times as long as its parent.
    """

    angle: float = 25.0  # Branch angle in degrees
    depth: int = 10  # Recursion levels below the trunk
    length_multiplier: float = 0.7  # Child/parent length ratio
    branch_count: int = 2  # 2 = binary, 3 = ternary

    ANGLE_RANGE = (0.0, 90.0)
    DEPTH_RANGE = (0, 15)
    MULTIPLIER_RANGE = (0.01, 0.99)

    @classmethod
    def default(cls) -> "FractalParams":
        """Binary tree, 25° branches, depth 10, multiplier 0.7."""
        return cls()

    def clamped(self) -> "FractalParams":
        """Return a copy with every field inside its domain."""
        defaults = FractalParams()
        depth = round(_finite_or(self.depth, defaults.depth))
        branches = _finite_or(self.branch_count, defaults.branch_count)
        return FractalParams(
            angle=_clip(_finite_or(self.angle, defaults.angle), *self.ANGLE_RANGE),
            depth=int(_clip(depth, *self.DEPTH_RANGE)),
            length_multiplier=_clip(
                _finite_or(self.length_multiplier, defaults.length_multiplier),
                *self.MULTIPLIER_RANGE,
            ),
            branch_count=3 if branches > 2 else 2,
        )

    def is_valid(self) -> bool:
        """Check that every field already lies inside its domain."""
        return self == self.clamped()


SUPERFORMULA_PRESETS: dict[str, SuperformulaParams] = {
    "Starfish": SuperformulaParams(m=5, n1=0.5, n2=1.7, n3=1.7),
    "Shield": SuperformulaParams(m=4, n1=10.0, n2=10.0, n3=10.0),
    "Atomic": SuperformulaParams(m=6, n1=0.3, n2=0.3, n3=0.3, resolution=720),
    "Flower": SuperformulaParams(m=8, n1=5.0, n2=2.0, n3=7.0),
}


@dataclass(frozen=True)
class StudioConfig:
    """
    Constants shared by the generators, the animation loop and the renderers.

    All coordinates live in a square logical canvas with the y axis pointing
    down (screen convention). Angles are in degrees unless noted otherwise.
    """

    # Canvas
    canvas_size: float = 500.0

    # Superformula placement
    superformula_center: tuple[float, float] = (250.0, 250.0)
    superformula_scale: float = 150.0  # Canvas units per unit radius
    max_radius: float = 20.0  # Bounds spikes when n1 → 0

    # Fractal placement (trunk grows up from the bottom centre)
    fractal_origin: tuple[float, float] = (250.0, 500.0)
    trunk_length: float = 125.0  # A quarter of the canvas height
    trunk_heading: float = -90.0  # Straight up in y-down coordinates

    # Growth animation
    growth_step: float = 0.01  # Growth added per animation tick
    frame_interval: float = 1.0 / 60.0  # Seconds per tick (display refresh)

    # Wind: sway(depth, t) = sin(t * wind_frequency + depth) * depth * wind_amplitude
    wind_frequency: float = 2.0  # Radians per second
    wind_amplitude: float = 0.5  # Degrees of sway per depth level

    # Depth colouring: hue and lightness interpolate from trunk to tips
    hue_base: float = 160.0
    hue_tip: float = 200.0
    saturation: float = 70.0  # Percent
    lightness_base: float = 40.0  # Percent
    lightness_tip: float = 30.0  # Percent

    # Stroke widths: (max_depth - depth + 1) * width_step, floored
    width_step: float = 0.8
    min_width: float = 0.5

    # Segment ceiling; deeper requests are capped before generation
    max_segments: int = 3**15

    def __post_init__(self) -> None:
        if self.canvas_size <= 0:
            raise ValueError("canvas_size must be positive")
        if self.max_segments < 1:
            raise ValueError("max_segments must allow at least the trunk")
        if self.growth_step <= 0:
            raise ValueError("growth_step must be positive")
