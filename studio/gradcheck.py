"""
Gradient health checks for the superformula radius.

The radius is differentiable in the shape exponents, which makes the
evaluator usable for gradient-based shape fitting. The risky spots are
samples where a cosine or sine term vanishes: a naive pow() gives
0 * log(0) = NaN there. These utilities verify that the guarded radius
keeps gradients finite across the randomiser's parameter ranges.
"""

import jax
import jax.numpy as jnp
import jax.random as jr
from jax import Array

from studio.superformula import superformula_radius


def sample_parameter_distribution(
    key: Array,
    num_samples: int = 1000,
) -> dict[str, Array]:
    """
    Sample shape parameters across the randomiser ranges.

    Symmetry orders are integers in [2, 17]; angles include the exact
    multiples of π/2 where one of the two terms is zero.

    Returns:
        Dictionary with arrays for each input dimension
    """
    keys = jr.split(key, 5)

    m = jr.randint(keys[0], (num_samples,), minval=2, maxval=18).astype(jnp.float32)
    n1 = jr.uniform(keys[1], (num_samples,), minval=0.1, maxval=10.1)
    n2 = jr.uniform(keys[2], (num_samples,), minval=0.1, maxval=5.1)
    n3 = jr.uniform(keys[3], (num_samples,), minval=0.1, maxval=5.1)
    phi = jr.uniform(keys[4], (num_samples,), minval=0.0, maxval=2.0 * jnp.pi)
    # A quarter of the samples land on φ = 0, where sin(mφ/4) is exactly zero
    phi = phi.at[: num_samples // 4].set(0.0)

    return {"m": m, "n1": n1, "n2": n2, "n3": n3, "phi": phi}


def compute_radius_gradients(samples: dict[str, Array]) -> dict[str, Array]:
    """
    Compute gradient magnitudes of r(φ) wrt each shape exponent.

    Returns:
        Dictionary mapping exponent names to gradient magnitude arrays
    """

    def radius_fn(n1: float, n2: float, n3: float, m: float, phi: float) -> Array:
        return superformula_radius(phi, m, n1, n2, n3)

    args = (samples["n1"], samples["n2"], samples["n3"], samples["m"], samples["phi"])
    grad_n1 = jax.vmap(jax.grad(radius_fn, argnums=0))(*args)
    grad_n2 = jax.vmap(jax.grad(radius_fn, argnums=1))(*args)
    grad_n3 = jax.vmap(jax.grad(radius_fn, argnums=2))(*args)

    return {
        "n1": jnp.abs(grad_n1),
        "n2": jnp.abs(grad_n2),
        "n3": jnp.abs(grad_n3),
    }


def gradient_health_report(
    key: Array,
    num_samples: int = 1000,
) -> dict[str, dict[str, float]]:
    """
    Generate a gradient health report for the radius function.

    Key metrics:
    - pct_finite: fraction of samples with a finite gradient (must be 100)
    - pct_near_zero: fraction with |grad| < 0.001 (flat regions, expected
      where r is clamped or one term dominates)

    Args:
        key: JAX random key
        num_samples: Number of samples to draw

    Returns:
        Nested dict: {exponent_name: {metric_name: value}}
    """
    samples = sample_parameter_distribution(key, num_samples)
    gradients = compute_radius_gradients(samples)

    report = {}
    for name, grads in gradients.items():
        finite = jnp.isfinite(grads)
        safe = jnp.where(finite, grads, 0.0)
        report[name] = {
            "mean": float(jnp.mean(safe)),
            "std": float(jnp.std(safe)),
            "min": float(jnp.min(safe)),
            "max": float(jnp.max(safe)),
            "pct_near_zero": float(jnp.mean(safe < 0.001) * 100),
            "pct_finite": float(jnp.mean(finite) * 100),
        }

    return report


def print_gradient_report(report: dict[str, dict[str, float]]) -> None:
    """Pretty-print a gradient health report."""
    print("\n" + "=" * 60)
    print("GRADIENT HEALTH REPORT - Superformula radius")
    print("=" * 60)
    print(f"{'Input':<8} {'Mean':>8} {'Std':>8} {'Max':>8} {'%Flat':>8} {'%Finite':>8}")
    print("-" * 60)

    for name, metrics in report.items():
        print(
            f"{name:<8} "
            f"{metrics['mean']:>8.4f} "
            f"{metrics['std']:>8.4f} "
            f"{metrics['max']:>8.4f} "
            f"{metrics['pct_near_zero']:>7.1f}% "
            f"{metrics['pct_finite']:>7.1f}%"
        )

    print("=" * 60)
    print("Flat = |grad| < 0.001, Finite = no NaN/Inf")
    print("Target: 100% finite")
    print()
