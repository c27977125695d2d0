"""
Growth animation state machine.

States:
    GROWING: each tick adds a fixed step to the growth fraction
    GROWN: growth is 1; the tree idles but keeps swaying if wind is on
    RESET: growth has been zeroed and the next tick resumes GROWING

Transitions are pure functions returning a new GrowthState, mirroring
the simulation's `step` style: the caller owns the only mutable
reference and replaces it each tick.

Time advances on every tick while wind is enabled, independently of the
growth phase, so a fully grown tree keeps moving.
"""

import logging
from enum import Enum
from typing import NamedTuple

from studio.config import FractalParams, StudioConfig

logger = logging.getLogger(__name__)


class GrowthPhase(Enum):
    GROWING = "growing"
    GROWN = "grown"
    RESET = "reset"


class GrowthState(NamedTuple):
    """Animation state of one fractal view."""

    growth: float  # Fraction in [0, 1]
    is_animating: bool  # False freezes growth (wind time still advances)
    wind_enabled: bool
    time: float  # Seconds of accumulated wind time
    phase: GrowthPhase

    @classmethod
    def initial(cls, wind_enabled: bool = False, time: float = 0.0) -> "GrowthState":
        """A fresh, ungrown tree that starts growing on the first tick."""
        return cls(
            growth=0.0,
            is_animating=True,
            wind_enabled=wind_enabled,
            time=time,
            phase=GrowthPhase.GROWING,
        )

    @property
    def is_grown(self) -> bool:
        return self.phase is GrowthPhase.GROWN


def step(state: GrowthState, dt: float, config: StudioConfig | None = None) -> GrowthState:
    """
    Advance the animation by one tick.

    Order:
        1. A pending RESET re-zeros growth and switches to GROWING
        2. If animating and GROWING, growth += growth_step (capped at 1);
           reaching 1 switches to GROWN
        3. If wind is enabled, time += dt

    Args:
        state: Current state
        dt: Seconds elapsed since the previous tick
        config: Growth step (defaults if None)

    Returns:
        New GrowthState
    """
    if config is None:
        config = StudioConfig()

    growth = state.growth
    phase = state.phase

    if phase is GrowthPhase.RESET:
        growth = 0.0
        phase = GrowthPhase.GROWING

    if state.is_animating and phase is GrowthPhase.GROWING:
        growth = min(growth + config.growth_step, 1.0)
        # Absorb float drift so exactly 1 / growth_step ticks complete growth
        if growth >= 1.0 - 1e-9:
            growth = 1.0
            phase = GrowthPhase.GROWN
            logger.debug("Growth complete")

    time = state.time + dt if state.wind_enabled else state.time

    return state._replace(growth=growth, phase=phase, time=time)


def reset(state: GrowthState) -> GrowthState:
    """Zero the growth immediately and resume animating from the next tick."""
    return state._replace(growth=0.0, is_animating=True, phase=GrowthPhase.RESET)


def pause(state: GrowthState) -> GrowthState:
    return state._replace(is_animating=False)


def resume(state: GrowthState) -> GrowthState:
    return state._replace(is_animating=True)


def toggle_wind(state: GrowthState) -> GrowthState:
    return state._replace(wind_enabled=not state.wind_enabled)


def apply_params(
    state: GrowthState,
    old: FractalParams,
    new: FractalParams,
) -> GrowthState:
    """
    React to a parameter change.

    A depth change alters the tree's structure, so partial growth is no
    longer meaningful and the state is reset. Angle, multiplier and
    branching changes keep the current growth.
    """
    if old.clamped().depth != new.clamped().depth:
        logger.debug("Depth changed %d -> %d; resetting growth", old.depth, new.depth)
        return reset(state)
    return state
