"""
Superformula curve evaluation.

The superformula is a generalised polar equation

    r(φ) = (|cos(mφ/4) / a|^n2 + |sin(mφ/4) / b|^n3)^(-1/n1)

which covers stars, flowers, rounded polygons and circles. This module
samples it uniformly over [0, 2π] into a closed polyline in canvas
coordinates.

Numerical guards (the evaluator never fails):
- A zero sum of terms yields r = 0 instead of pow(0, -x) = ∞.
- r is clamped to a maximum so n1 → 0 cannot produce unbounded spikes.
- A NaN radius (unreachable for clamped parameters) is replaced by 0.

The radius function is written with the double-`where` pattern so that
gradients with respect to the shape exponents stay finite everywhere.
"""

import equinox as eqx
import jax.numpy as jnp
import jax.random as jr
from jax import Array

from studio.config import StudioConfig, SuperformulaParams


def superformula_radius(
    phi: Array,
    m: float,
    n1: float,
    n2: float,
    n3: float,
    a: float = 1.0,
    b: float = 1.0,
    max_radius: float = 20.0,
) -> Array:
    """
    Compute the superformula radius at angle(s) phi.

    Args:
        phi: Polar angle(s) in radians
        m: Symmetry order
        n1, n2, n3: Shape exponents (must be > 0)
        a, b: Scale denominators (must be > 0)
        max_radius: Upper bound applied to r

    Returns:
        Radius with the same shape as phi, finite and in [0, max_radius]
    """
    angle = m * phi / 4.0
    cos_base = jnp.abs(jnp.cos(angle) / a)
    sin_base = jnp.abs(jnp.sin(angle) / b)
    return _guarded_radius(cos_base, sin_base, n1, n2, n3, max_radius)


def _guarded_radius(
    cos_base: Array,
    sin_base: Array,
    n1: float,
    n2: float,
    n3: float,
    max_radius: float,
) -> Array:
    """(cos_base^n2 + sin_base^n3)^(-1/n1) with the zero, NaN and clamp guards."""
    # pow(0, n) is fine, but its gradient wrt n is 0 * log(0) = NaN
    safe_cos = jnp.where(cos_base > 0, cos_base, 1.0)
    safe_sin = jnp.where(sin_base > 0, sin_base, 1.0)
    t1 = jnp.where(cos_base > 0, safe_cos**n2, 0.0)
    t2 = jnp.where(sin_base > 0, safe_sin**n3, 0.0)

    total = t1 + t2
    safe_total = jnp.where(total > 0, total, 1.0)

    # Clamp in log space: total^(-1/n1) overflows float32 long before
    # the clamp would apply, and inf * 0 poisons the backward pass
    log_r = jnp.minimum(-jnp.log(safe_total) / n1, jnp.log(max_radius))
    r = jnp.where(total > 0, jnp.exp(log_r), 0.0)

    return jnp.where(jnp.isnan(r), 0.0, r)


@eqx.filter_jit
def _sample_curve(
    m: Array,
    n1: Array,
    n2: Array,
    n3: Array,
    a: Array,
    b: Array,
    center: Array,
    scale: Array,
    max_radius: Array,
    resolution: int,
) -> Array:
    # Angles are built from the integer sample index. float32 cos/sin at
    # multiples of π/2 are ~1e-7, not 0, which small exponents amplify into
    # visible gaps; reduced arguments hit those angles exactly.
    n = float(resolution)
    index = jnp.arange(resolution + 1, dtype=jnp.float32)

    # mφ/4 = π·(m·i)/(2n); |cos| and |sin| have period π in it, and
    # [π/2, π) folds onto [0, π/2) with the two swapped
    quarter = jnp.mod(m * index, 2.0 * n)
    upper = quarter >= n
    folded = jnp.where(upper, quarter - n, quarter) * (jnp.pi / (2.0 * n))
    c = jnp.abs(jnp.cos(folded))
    s = jnp.abs(jnp.sin(folded))
    cos_base = jnp.where(upper, s, c) / a
    sin_base = jnp.where(upper, c, s) / b
    r = _guarded_radius(cos_base, sin_base, n1, n2, n3, max_radius)

    phi = jnp.mod(index, n) * (2.0 * jnp.pi / n)
    x = center[0] + r * jnp.cos(phi) * scale
    y = center[1] + r * jnp.sin(phi) * scale
    return jnp.stack([x, y], axis=1)


def evaluate_superformula(
    params: SuperformulaParams,
    config: StudioConfig | None = None,
) -> Array:
    """
    Sample the superformula into a closed polyline.

    Sample i sits at φ = i·2π/resolution for i in [0, resolution]. The
    last sample is evaluated at φ = 2π, so the polyline ends where the
    curve does: on the first point whenever r(2π) = r(0) (every integer
    m when a^n2 = b^n3, every even m), elsewhere for odd m otherwise.

    Args:
        params: Shape parameters (clamped into their domains first)
        config: Canvas placement (uses defaults if None)

    Returns:
        Array of shape (resolution + 1, 2) with canvas coordinates
    """
    if config is None:
        config = StudioConfig()
    p = params.clamped()

    # Scalars go in as arrays so only `resolution` triggers recompilation
    return _sample_curve(
        jnp.asarray(p.m, dtype=jnp.float32),
        jnp.asarray(p.n1, dtype=jnp.float32),
        jnp.asarray(p.n2, dtype=jnp.float32),
        jnp.asarray(p.n3, dtype=jnp.float32),
        jnp.asarray(p.a, dtype=jnp.float32),
        jnp.asarray(p.b, dtype=jnp.float32),
        jnp.asarray(config.superformula_center, dtype=jnp.float32),
        jnp.asarray(config.superformula_scale, dtype=jnp.float32),
        jnp.asarray(config.max_radius, dtype=jnp.float32),
        p.resolution,
    )


def randomize_params(key: Array, resolution: int = 360) -> SuperformulaParams:
    """
    Draw a random superformula shape.

    Each field is sampled independently and rounded to one decimal:
    m in {2, ..., 17}, n1 in [0.1, 10.1], n2 and n3 in [0.1, 5.1].
    a = b = 1 and the resolution is fixed, so the same key always
    reproduces the same shape.

    Args:
        key: JAX random key
        resolution: Sample count of the returned parameters

    Returns:
        New SuperformulaParams within the documented ranges
    """
    k_m, k_n1, k_n2, k_n3 = jr.split(key, 4)

    m = int(jr.randint(k_m, (), minval=2, maxval=18))
    n1 = round(float(jr.uniform(k_n1, minval=0.1, maxval=10.1)), 1)
    n2 = round(float(jr.uniform(k_n2, minval=0.1, maxval=5.1)), 1)
    n3 = round(float(jr.uniform(k_n3, minval=0.1, maxval=5.1)), 1)

    return SuperformulaParams(
        m=m, n1=n1, n2=n2, n3=n3, a=1.0, b=1.0, resolution=resolution
    )


def complexity(params: SuperformulaParams) -> float:
    """Complexity read-out shown next to the shape: m * n1."""
    return float(params.m * params.n1)


def marker_points(points: Array, resolution: int) -> Array:
    """Every k-th vertex, roughly 40 per curve, for decorative vertex dots."""
    stride = max(1, resolution // 40)
    return points[::stride]
