"""ABOUTME: Converts speed x multiplier x tempo into an LFO cycle length.
ABOUTME: Produces the timing descriptor (cycle ms, musical label, 1/16 steps) shown by the UI."""

import math
from fractions import Fraction
from typing import NamedTuple

MIN_BPM = 20
MAX_BPM = 300

# Speed x multiplier that yields exactly one bar per cycle
ONE_BAR_PRODUCT = 128

FROZEN_LABEL = "∞ (frozen)"


class TimingInfo(NamedTuple):
    """Timing descriptor for one LFO configuration."""
    cycle_ms: float      # math.inf when the LFO is frozen
    note_label: str      # e.g. "1/4 note", "1 bar", "16 bars"
    steps: float         # 1/16 notes per cycle

    @property
    def frequency_hz(self) -> float:
        if math.isinf(self.cycle_ms) or self.cycle_ms <= 0:
            return 0.0
        return 1000.0 / self.cycle_ms

    @property
    def is_frozen(self) -> bool:
        return math.isinf(self.cycle_ms)


def clamp_bpm(bpm: float) -> int:
    """Round and clamp a tempo into the supported 20-300 BPM range."""
    if bpm is None or not math.isfinite(bpm):
        return 120
    return int(max(MIN_BPM, min(MAX_BPM, round(bpm))))


def bar_duration_ms(bpm: float) -> float:
    """Length of one 4/4 bar in milliseconds."""
    return (60000.0 / clamp_bpm(bpm)) * 4


def sixteenth_duration_ms(bpm: float) -> float:
    """Length of one 1/16 note in milliseconds."""
    return (60000.0 / clamp_bpm(bpm)) / 4


def cycle_product(speed: float, multiplier: int) -> float:
    """|speed| x multiplier; the sign of speed only sets direction."""
    return abs(speed) * multiplier


def note_label(product: float) -> str:
    """
    Musical length of one cycle for a speed x multiplier product.

    128 is one bar; larger products divide the bar ("1/4 note"), smaller
    ones stretch over several bars ("8 bars").
    """
    if product <= 0:
        return FROZEN_LABEL

    whole_notes = Fraction(ONE_BAR_PRODUCT) / Fraction(product).limit_denominator(1000)
    whole_notes = whole_notes.limit_denominator(64)

    if whole_notes >= 1:
        if whole_notes.denominator == 1:
            bars = whole_notes.numerator
            return "1 bar" if bars == 1 else f"{bars} bars"
        return f"{float(whole_notes):.2f} bars"

    if whole_notes.numerator == 1:
        return f"1/{whole_notes.denominator} note"
    return f"{whole_notes.numerator}/{whole_notes.denominator} note"


def calculate_timing(speed: float, multiplier: int, bpm: float = 120) -> TimingInfo:
    """
    Cycle duration for a speed/multiplier pair at a tempo.

    Args:
        speed: Signed speed (-64.00..63.99); only the magnitude matters here
        multiplier: One of the allowed multipliers (1..2048)
        bpm: Tempo, clamped to 20-300

    Returns:
        TimingInfo with cycle_ms = inf for a zero product
    """
    product = cycle_product(speed, multiplier)
    if product == 0:
        return TimingInfo(math.inf, FROZEN_LABEL, math.inf)

    bar_ms = bar_duration_ms(bpm)
    if product >= ONE_BAR_PRODUCT:
        cycle_ms = bar_ms / (product / ONE_BAR_PRODUCT)
    else:
        cycle_ms = bar_ms * (ONE_BAR_PRODUCT / product)

    steps = cycle_ms / sixteenth_duration_ms(bpm)
    return TimingInfo(cycle_ms, note_label(product), steps)
