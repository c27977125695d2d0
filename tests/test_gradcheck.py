"""
Tests for gradient health checks.
"""

import jax.numpy as jnp
import jax.random as jr

from studio.gradcheck import (
    compute_radius_gradients,
    gradient_health_report,
    print_gradient_report,
    sample_parameter_distribution,
)


class TestGradientHealth:
    """Tests for gradient health utilities."""

    def test_sample_distribution_shapes(self) -> None:
        """Sample distribution should have correct shapes."""
        samples = sample_parameter_distribution(jr.PRNGKey(0), num_samples=100)

        for name in ("m", "n1", "n2", "n3", "phi"):
            assert samples[name].shape == (100,)

    def test_samples_include_zero_terms(self) -> None:
        """A quarter of the angles sit exactly where the sine term vanishes."""
        samples = sample_parameter_distribution(jr.PRNGKey(0), num_samples=100)
        assert int(jnp.sum(samples["phi"] == 0.0)) >= 25

    def test_gradients_have_sample_shape(self) -> None:
        """One gradient per sample and exponent."""
        samples = sample_parameter_distribution(jr.PRNGKey(1), num_samples=64)
        grads = compute_radius_gradients(samples)
        assert set(grads) == {"n1", "n2", "n3"}
        assert all(g.shape == (64,) for g in grads.values())

    def test_gradient_report_structure(self) -> None:
        """Gradient report should have expected structure."""
        report = gradient_health_report(jr.PRNGKey(42), num_samples=100)

        expected_metrics = ["mean", "std", "min", "max", "pct_near_zero", "pct_finite"]
        for name in ("n1", "n2", "n3"):
            assert name in report
            for metric in expected_metrics:
                assert metric in report[name]

    def test_gradients_always_finite(self) -> None:
        """The zero-sum guard keeps every gradient finite."""
        report = gradient_health_report(jr.PRNGKey(42), num_samples=500)

        for name, metrics in report.items():
            assert metrics["pct_finite"] == 100.0, f"{name} has non-finite gradients"

    def test_print_report(self, capsys) -> None:
        """The printed report lists every exponent."""
        print_gradient_report(gradient_health_report(jr.PRNGKey(0), num_samples=50))
        out = capsys.readouterr().out
        assert "GRADIENT HEALTH REPORT" in out
        for name in ("n1", "n2", "n3"):
            assert name in out
