"""ABOUTME: Depth scaling and the fade-in / fade-out envelope.
ABOUTME: Fade timing is an empirical fit to hardware captures, not a documented formula."""

import math

from lfo.params import TriggerMode

# Depth is normalized against +63, the largest positive setting
DEPTH_NORMALIZER = 63.0

# |fade| up to this value follows the linear part of the fit
FADE_LINEAR_LIMIT = 16

# Above the linear part the fade length doubles every FADE_DOUBLING units
FADE_DOUBLING = 4.5
FADE_CYCLES_AT_LIMIT = 2.2
FADE_MIN_CYCLES = 0.5


def depth_scale(depth: int) -> float:
    """
    Multiplier applied to the waveform for a depth setting.

    depth / 63 clamped to [-1, 1]. The input range is -64..+63, so the raw
    ratio at -64 is -1.016; the clamp folds it onto -1 and -64 and -63 give
    the same scale.
    """
    return max(-1.0, min(1.0, depth / DEPTH_NORMALIZER))


def fade_cycles(fade: int) -> float:
    """
    Number of LFO cycles a fade takes to complete.

    Linear up to |fade| = 16 (2.2 cycles), exponential beyond it. There is
    no cut-off: every non-zero fade completes eventually.
    """
    magnitude = abs(fade)
    if magnitude <= FADE_LINEAR_LIMIT:
        return max(FADE_MIN_CYCLES, 0.1 * magnitude + 0.6)
    return FADE_CYCLES_AT_LIMIT * math.pow(2.0, (magnitude - FADE_LINEAR_LIMIT) / FADE_DOUBLING)


def is_fade_active(fade: int, mode: TriggerMode) -> bool:
    """Fades only run when the LFO is retriggered and fade is non-zero."""
    return fade != 0 and mode != TriggerMode.FREE


def fade_envelope(fade: int, cycles_since_trigger: float) -> float:
    """
    Envelope multiplier (0-1) after `cycles_since_trigger` cycles.

    Fade-in (fade < 0) ramps 0 -> 1 over fade_cycles. Fade-out (fade > 0)
    holds full level for the whole first cycle, then ramps 1 -> 0 over
    fade_cycles.
    """
    if fade == 0:
        return 1.0

    cycles = max(0.0, cycles_since_trigger)
    length = fade_cycles(fade)

    if fade < 0:
        return min(1.0, cycles / length)

    if cycles <= 1.0:
        return 1.0
    return max(0.0, 1.0 - (cycles - 1.0) / length)


def fade_completion_cycles(fade: int) -> float:
    """Cycles after the trigger at which the envelope reaches its end value."""
    if fade == 0:
        return 0.0
    if fade < 0:
        return fade_cycles(fade)
    return 1.0 + fade_cycles(fade)
