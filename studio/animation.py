"""
Frame-driven fractal animation.

FractalAnimator owns the single parameter set and growth state of one
view. Each tick runs, in order:

    1. apply parameter changes queued since the previous tick
    2. advance growth (if animating)
    3. advance wind time (if wind is enabled)
    4. recompute the full segment tree from a FractalFrame snapshot
    5. hand the tree to the renderer callback, if any

Parameter changes never land in the middle of a recomputation; they are
queued and picked up at step 1 of the next tick.

run_growth is the offline counterpart: it drives an animator for a fixed
number of frames and records the trajectory for inspection or export.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from studio import growth as growth_ops
from studio.config import FractalParams, StudioConfig
from studio.fractal import FractalFrame, FractalTree, effective_depth, generate_fractal
from studio.growth import GrowthState

logger = logging.getLogger(__name__)

# Receives every freshly generated tree (e.g. a canvas redraw)
RendererFn = Callable[[FractalTree], None]


class FractalAnimator:
    """
    Single-threaded tick consumer for one fractal view.

    Use as a context manager, or call close() on teardown so the attached
    timer stops issuing ticks.
    """

    def __init__(
        self,
        params: FractalParams | None = None,
        *,
        wind_enabled: bool = False,
        config: StudioConfig | None = None,
        renderer: RendererFn | None = None,
    ) -> None:
        self.config = config if config is not None else StudioConfig()
        self.renderer = renderer
        self.state = GrowthState.initial(wind_enabled=wind_enabled)
        self.last_tree: FractalTree | None = None
        self._params = (params if params is not None else FractalParams()).clamped()
        self._pending: FractalParams | None = None
        self._timer = None
        self._closed = False
        self._warn_if_capped(self._params)

    def _warn_if_capped(self, params: FractalParams) -> None:
        depth = effective_depth(params, self.config.max_segments)
        if depth < params.depth:
            logger.warning(
                "Depth %d with %d branches exceeds %d segments; capped to depth %d",
                params.depth, params.branch_count, self.config.max_segments, depth,
            )

    @property
    def params(self) -> FractalParams:
        """Parameters used by the most recent (or next, if none yet) tick."""
        return self._params

    @property
    def closed(self) -> bool:
        return self._closed

    def set_params(self, params: FractalParams) -> None:
        """Queue new parameters; they take effect on the next tick."""
        self._pending = params.clamped()

    def regrow(self) -> None:
        self.state = growth_ops.reset(self.state)

    def pause(self) -> None:
        self.state = growth_ops.pause(self.state)

    def resume(self) -> None:
        self.state = growth_ops.resume(self.state)

    def toggle_wind(self) -> None:
        self.state = growth_ops.toggle_wind(self.state)

    def frame(self) -> FractalFrame:
        """Immutable snapshot of the current parameters and growth state."""
        return FractalFrame(
            params=self._params,
            growth=self.state.growth,
            time=self.state.time,
            wind_enabled=self.state.wind_enabled,
        )

    def tick(self, dt: float | None = None) -> FractalTree:
        """
        Run one animation frame.

        Args:
            dt: Seconds since the previous tick (config.frame_interval if None)

        Returns:
            The tree generated for this frame

        Raises:
            RuntimeError: if the animator has been closed
        """
        if self._closed:
            raise RuntimeError("FractalAnimator has been closed")
        if dt is None:
            dt = self.config.frame_interval

        if self._pending is not None:
            self.state = growth_ops.apply_params(self.state, self._params, self._pending)
            if self._pending != self._params:
                self._warn_if_capped(self._pending)
            self._params = self._pending
            self._pending = None

        self.state = growth_ops.step(self.state, dt, self.config)

        tree = generate_fractal(self.frame(), self.config)
        self.last_tree = tree
        if self.renderer is not None:
            self.renderer(tree)
        return tree

    def attach_timer(self, timer) -> None:
        """Register the timer driving tick() so close() can stop it."""
        self._timer = timer

    def close(self) -> None:
        """Stop issuing ticks. Further tick() calls raise RuntimeError."""
        if self._closed:
            return
        self._closed = True
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        logger.debug("FractalAnimator closed")

    def __enter__(self) -> "FractalAnimator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass
class GrowthTrajectory:
    """
    Record of an offline growth run.

    Contains:
    - states: GrowthState after every tick
    - segment_counts: number of segments generated per tick
    - drawn_lengths: total drawn branch length per tick
    - final_tree: the tree of the last tick
    """

    params: FractalParams
    states: list[GrowthState]
    segment_counts: list[int]
    drawn_lengths: list[float]
    final_tree: FractalTree

    def get_growth_array(self) -> np.ndarray:
        return np.array([s.growth for s in self.states])

    def frames_to_full_growth(self) -> int | None:
        """1-based tick at which growth first reached 1, or None."""
        for i, state in enumerate(self.states):
            if state.is_grown:
                return i + 1
        return None

    def get_scalar_summary(self) -> dict[str, float]:
        """
        Compute a scalar summary of the run.

        - Frames: number of ticks
        - FinalGrowth: growth fraction after the last tick
        - FramesToFullGrowth: first tick with growth 1 (-1 if never)
        - Segments: segments in the final tree
        - FinalDrawnLength / PeakDrawnLength: total branch length
        - FinalTime: accumulated wind time
        - MaxDepth / RequestedDepth: generated vs requested depth
        """
        full = self.frames_to_full_growth()
        final_state = self.states[-1]
        return {
            "Frames": len(self.states),
            "FinalGrowth": float(final_state.growth),
            "FramesToFullGrowth": full if full is not None else -1,
            "Segments": len(self.final_tree),
            "FinalDrawnLength": float(self.drawn_lengths[-1]),
            "PeakDrawnLength": float(max(self.drawn_lengths)),
            "FinalTime": float(final_state.time),
            "MaxDepth": self.final_tree.max_depth,
            "RequestedDepth": self.final_tree.requested_depth,
        }

    def print_summary(self) -> None:
        """Print a formatted summary table to stdout."""
        summary = self.get_scalar_summary()
        print("=" * 50)
        print("GROWTH SUMMARY")
        print("=" * 50)
        for key, value in summary.items():
            if isinstance(value, float):
                print(f"  {key:<20} {value:>12.3f}")
            else:
                print(f"  {key:<20} {value:>12}")
        print("=" * 50)


def run_growth(
    params: FractalParams | None = None,
    num_frames: int = 120,
    wind_enabled: bool = False,
    dt: float | None = None,
    config: StudioConfig | None = None,
) -> GrowthTrajectory:
    """
    Grow a tree for a fixed number of ticks without any display.

    Args:
        params: Fractal parameters (defaults if None)
        num_frames: Number of ticks to run (at least 1)
        wind_enabled: Whether the wind sways the branches
        dt: Seconds per tick (config.frame_interval if None)
        config: Studio constants (defaults if None)

    Returns:
        GrowthTrajectory with per-tick records and the final tree
    """
    if num_frames < 1:
        raise ValueError("num_frames must be at least 1")

    states: list[GrowthState] = []
    segment_counts: list[int] = []
    drawn_lengths: list[float] = []

    with FractalAnimator(params, wind_enabled=wind_enabled, config=config) as animator:
        for _ in range(num_frames):
            tree = animator.tick(dt)
            states.append(animator.state)
            segment_counts.append(len(tree))
            drawn_lengths.append(float(np.sum(tree.lengths())))
        final_params = animator.params

    logger.info(
        "Grew %d frames: growth=%.2f, %d segments",
        num_frames, states[-1].growth, segment_counts[-1],
    )
    return GrowthTrajectory(
        params=final_params,
        states=states,
        segment_counts=segment_counts,
        drawn_lengths=drawn_lengths,
        final_tree=tree,
    )


def final_tree(
    params: FractalParams | None = None,
    time: float = 0.0,
    wind_enabled: bool = False,
    config: StudioConfig | None = None,
) -> FractalTree:
    """A fully grown tree, independent of any animation loop (for export)."""
    if params is None:
        params = FractalParams()
    frame = FractalFrame(params=params, growth=1.0, time=time, wind_enabled=wind_enabled)
    tree = generate_fractal(frame, config)
    if tree.capped:
        logger.warning(
            "Depth %d exceeds the segment ceiling; exported at depth %d",
            tree.requested_depth, tree.max_depth,
        )
    return tree
