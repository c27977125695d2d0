"""
Tests for the frame-driven animator and offline growth runs.
"""

import logging

import numpy as np
import pytest

from studio.animation import FractalAnimator, final_tree, run_growth
from studio.config import FractalParams, StudioConfig
from studio.growth import GrowthPhase


class FakeTimer:
    def __init__(self) -> None:
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


class TestFractalAnimator:
    """Tests for the tick loop."""

    def test_tick_advances_and_renders(self) -> None:
        """Each tick grows the tree and hands it to the renderer."""
        rendered = []
        animator = FractalAnimator(FractalParams(depth=4), renderer=rendered.append)
        tree = animator.tick()
        assert len(rendered) == 1
        assert rendered[0] is tree
        assert animator.state.growth == pytest.approx(0.01)
        assert tree.growth == pytest.approx(0.01)
        assert len(tree) == 31

    def test_params_apply_on_next_tick(self) -> None:
        """Queued parameters are invisible until the next tick."""
        animator = FractalAnimator(FractalParams(depth=3))
        animator.tick()
        animator.set_params(FractalParams(depth=3, angle=45.0))
        assert animator.params.angle == 25.0
        animator.tick()
        assert animator.params.angle == 45.0

    def test_depth_change_resets_before_recompute(self) -> None:
        """The first frame after a depth change is generated from zero growth."""
        animator = FractalAnimator(FractalParams(depth=4))
        for _ in range(60):
            animator.tick()
        assert animator.state.growth == pytest.approx(0.6)

        animator.set_params(FractalParams(depth=6))
        tree = animator.tick()
        assert tree.max_depth == 6
        assert tree.growth == pytest.approx(0.01)
        assert animator.state.phase is GrowthPhase.GROWING

    def test_regrow(self) -> None:
        """Regrow restarts growth from zero."""
        animator = FractalAnimator(FractalParams(depth=2))
        for _ in range(150):
            animator.tick()
        assert animator.state.is_grown
        animator.regrow()
        animator.tick()
        assert animator.state.growth == pytest.approx(0.01)

    def test_pause_and_resume(self) -> None:
        """Paused animators keep rendering without growing."""
        animator = FractalAnimator(FractalParams(depth=2))
        animator.tick()
        animator.pause()
        animator.tick()
        assert animator.state.growth == pytest.approx(0.01)
        animator.resume()
        animator.tick()
        assert animator.state.growth == pytest.approx(0.02)

    def test_wind_time(self) -> None:
        """Wind time accumulates the tick intervals."""
        animator = FractalAnimator(FractalParams(depth=2), wind_enabled=True)
        for _ in range(3):
            animator.tick(dt=0.5)
        assert animator.state.time == pytest.approx(1.5)
        animator.toggle_wind()
        animator.tick(dt=0.5)
        assert animator.state.time == pytest.approx(1.5)

    def test_close_stops_timer_and_ticks(self) -> None:
        """Closing stops the attached timer; later ticks raise."""
        timer = FakeTimer()
        animator = FractalAnimator(FractalParams(depth=2))
        animator.attach_timer(timer)
        animator.close()
        assert timer.stopped
        assert animator.closed
        with pytest.raises(RuntimeError):
            animator.tick()

    def test_capped_depth_warns_once_per_change(self, caplog) -> None:
        """A capped depth is warned about once per parameter change, not every tick."""
        config = StudioConfig(max_segments=100)
        with caplog.at_level(logging.WARNING, logger="studio"):
            animator = FractalAnimator(FractalParams(depth=10), config=config)
            for _ in range(30):
                animator.tick()
            animator.set_params(FractalParams(depth=10))
            animator.tick()
            assert len(caplog.records) == 1

            animator.set_params(FractalParams(depth=9))
            for _ in range(30):
                animator.tick()
        assert len(caplog.records) == 2
        assert all("capped" in r.getMessage() for r in caplog.records)

    def test_context_manager_closes(self) -> None:
        """Leaving the context closes the animator."""
        with FractalAnimator(FractalParams(depth=2)) as animator:
            animator.tick()
        assert animator.closed


class TestRunGrowth:
    """Tests for offline growth runs."""

    def test_trajectory_lengths(self) -> None:
        """One record per frame."""
        trajectory = run_growth(FractalParams(depth=5), num_frames=30)
        assert len(trajectory.states) == 30
        assert len(trajectory.segment_counts) == 30
        assert len(trajectory.drawn_lengths) == 30
        assert trajectory.segment_counts[-1] == 63

    def test_drawn_length_non_decreasing(self) -> None:
        """Without wind, total drawn length never shrinks while growing."""
        trajectory = run_growth(FractalParams(depth=5), num_frames=60)
        assert np.all(np.diff(trajectory.drawn_lengths) >= -1e-9)

    def test_saturation_frame(self) -> None:
        """Depth 10 saturates at growth 0.2, i.e. after 20 ticks."""
        trajectory = run_growth(FractalParams(depth=10), num_frames=40)
        lengths = np.array(trajectory.drawn_lengths)
        assert lengths[19] == pytest.approx(lengths[-1])
        assert lengths[18] < lengths[19]

    def test_full_growth_frame(self) -> None:
        """Growth completes on tick 100."""
        trajectory = run_growth(FractalParams(depth=3), num_frames=120)
        assert trajectory.frames_to_full_growth() == 100
        assert trajectory.get_scalar_summary()["FramesToFullGrowth"] == 100

    def test_summary(self, capsys) -> None:
        """Summary reports the final tree and prints a table."""
        trajectory = run_growth(FractalParams(depth=4), num_frames=10, wind_enabled=True, dt=0.1)
        summary = trajectory.get_scalar_summary()
        assert summary["Frames"] == 10
        assert summary["FramesToFullGrowth"] == -1
        assert summary["Segments"] == 31
        assert summary["FinalTime"] == pytest.approx(1.0)

        trajectory.print_summary()
        assert "GROWTH SUMMARY" in capsys.readouterr().out

    def test_rejects_empty_run(self) -> None:
        """At least one frame is required."""
        with pytest.raises(ValueError):
            run_growth(num_frames=0)

    def test_final_tree_is_fully_grown(self) -> None:
        """final_tree is independent of any animation state."""
        tree = final_tree(FractalParams(depth=4))
        assert tree.growth == 1.0
        assert len(tree) == 31
