"""ABOUTME: Slow-motion display support for LFOs too fast to follow on screen.
ABOUTME: Picks a slowdown factor from the cycle time and turns real phase into a slowed display phase."""

import math
from typing import NamedTuple, Optional

from lfo.engine import wrap_phase

# (cycle time below which the factor applies, factor), fastest first
SLOWDOWN_THRESHOLDS = [
    (67.0, 16),    # 15+ Hz, audio rate
    (125.0, 8),    # 8-15 Hz, strobes
    (250.0, 4),    # 4-8 Hz
    (500.0, 2),    # 2-4 Hz
]

HYSTERESIS_MARGIN = 0.15


class SlowdownInfo(NamedTuple):
    factor: int
    frequency_hz: float
    is_slowed: bool


def get_slowdown_factor(cycle_ms: float) -> int:
    """Slowdown factor without hysteresis (1, 2, 4, 8 or 16)."""
    for threshold, factor in SLOWDOWN_THRESHOLDS:
        if cycle_ms < threshold:
            return factor
    return 1


def _threshold_for_factor(factor: int) -> float:
    for threshold, candidate in SLOWDOWN_THRESHOLDS:
        if candidate == factor:
            return threshold
    return math.inf


def get_slowdown_info(cycle_ms: float, previous_factor: int = 1) -> SlowdownInfo:
    """
    Slowdown factor with 15% hysteresis so it does not flicker near a threshold.

    Args:
        cycle_ms: LFO cycle time in milliseconds (may be inf)
        previous_factor: Factor in use on the previous frame

    Returns:
        SlowdownInfo with the factor to use now and the real LFO frequency
    """
    frequency_hz = 1000.0 / cycle_ms if 0 < cycle_ms < math.inf else 0.0
    target = get_slowdown_factor(cycle_ms)
    factor = previous_factor

    if target > previous_factor:
        if cycle_ms < _threshold_for_factor(target) * (1 - HYSTERESIS_MARGIN):
            factor = target
    elif target < previous_factor:
        if cycle_ms > _threshold_for_factor(previous_factor) * (1 + HYSTERESIS_MARGIN):
            factor = target

    return SlowdownInfo(factor, frequency_hz, factor > 1)


class SlowMotionPhase:
    """
    Display phase that runs `factor` times slower than the real phase.

    Accumulates real phase deltas instead of dividing the phase, so the
    display still sweeps the full 0..1 range. Jumps that cannot be normal
    progress (first frame, retriggers, dropped frames) resync to the real
    phase.
    """

    def __init__(self, factor: int = 1):
        self.factor = max(1, factor)
        self.display_phase = 0.0
        self._last_real: Optional[float] = None

    def set_factor(self, factor: int):
        factor = max(1, factor)
        entering_or_leaving = (self.factor == 1) != (factor == 1)
        self.factor = factor
        if entering_or_leaving:
            self._last_real = None

    def reset(self):
        self._last_real = None

    def update(self, real_phase: float) -> float:
        """Feed the current real phase, get the phase to draw."""
        if self._last_real is None:
            return self._sync(real_phase)

        delta = real_phase - self._last_real

        # Mid-range jump: a reset, not a wrap
        if 0.3 < abs(delta) < 0.7:
            return self._sync(real_phase)

        if delta < -0.5:
            delta += 1.0
        elif delta > 0.5:
            delta -= 1.0
        if abs(delta) > 0.5:
            return self._sync(real_phase)

        self.display_phase = wrap_phase(self.display_phase + delta / self.factor)
        self._last_real = real_phase
        return self.display_phase

    def _sync(self, real_phase: float) -> float:
        self.display_phase = real_phase
        self._last_real = real_phase
        return real_phase
