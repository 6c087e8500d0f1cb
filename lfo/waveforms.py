"""ABOUTME: Waveform shapes of the LFO and the single pure sampling function for them.
ABOUTME: Used by the live engine, the static waveform display and the benchmarks alike."""

import math
from enum import Enum
from typing import List, Tuple

from lfo.random_step import sample_random, sample_random_with_slew


class Waveform(Enum):
    """LFO waveforms, valued by the device's short codes."""
    TRIANGLE = "TRI"
    SINE = "SIN"
    SQUARE = "SQR"
    SAWTOOTH = "SAW"
    EXPONENTIAL = "EXP"
    RAMP = "RMP"
    RANDOM = "RND"


# Order used by the device's waveform parameter (CC value 0-6)
WAVEFORM_ORDER: List[Waveform] = [
    Waveform.TRIANGLE,
    Waveform.SINE,
    Waveform.SQUARE,
    Waveform.SAWTOOTH,
    Waveform.EXPONENTIAL,
    Waveform.RAMP,
    Waveform.RANDOM,
]

UNIPOLAR_WAVEFORMS = {Waveform.EXPONENTIAL, Waveform.RAMP}

# Steepness of the exponential decay
EXP_STEEPNESS = 4.0
_EXP_NORMALIZER = math.exp(EXP_STEEPNESS) - 1.0


def is_unipolar(waveform: Waveform) -> bool:
    """True for waveforms living in [0, 1] rather than [-1, 1]."""
    return waveform in UNIPOLAR_WAVEFORMS


def sample_waveform(waveform: Waveform, phase: float, seed: int = 0) -> float:
    """
    Value of `waveform` at `phase`.

    Total over [0, 1] including both endpoints; never raises for a phase
    in range.

    Args:
        waveform: Shape to sample
        phase: Position in the cycle (0.0-1.0)
        seed: Seed for the RANDOM waveform, ignored by the others

    Returns:
        [-1, 1] for bipolar shapes, [0, 1] for unipolar ones,
        [-0.9, 0.9] for RANDOM
    """
    if waveform == Waveform.TRIANGLE:
        if phase < 0.25:
            return phase * 4.0
        if phase < 0.75:
            return 1.0 - (phase - 0.25) * 4.0
        return -1.0 + (phase - 0.75) * 4.0

    if waveform == Waveform.SINE:
        return math.sin(2.0 * math.pi * phase)

    if waveform == Waveform.SQUARE:
        return 1.0 if phase < 0.5 else -1.0

    if waveform == Waveform.SAWTOOTH:
        # Rising
        return phase * 2.0 - 1.0

    if waveform == Waveform.EXPONENTIAL:
        # Starts at 1, drops fast, long tail towards 0
        return (math.exp(EXP_STEEPNESS * (1.0 - phase)) - 1.0) / _EXP_NORMALIZER

    if waveform == Waveform.RAMP:
        # Falling
        return 1.0 - phase

    if waveform == Waveform.RANDOM:
        return sample_random(phase, seed)

    return 0.0


def waveform_curve(
    waveform: Waveform,
    depth_scale: float = 1.0,
    start_phase: int = 0,
    resolution: int = 128,
) -> List[Tuple[float, float]]:
    """
    One cycle of the waveform as (x, value) points for static display.

    x runs 0..1 across the cycle. For RANDOM the start phase is the slew
    amount and does not shift the curve; for every other shape the curve
    is shifted by start_phase / 128 of a cycle.

    Args:
        waveform: Shape to draw
        depth_scale: Multiplier applied to every value
        start_phase: Start phase parameter (0-127)
        resolution: Number of segments (resolution + 1 points)

    Returns:
        List of (x, value) tuples
    """
    is_random = waveform == Waveform.RANDOM
    offset = 0.0 if is_random else start_phase / 128.0

    points = []
    for i in range(resolution + 1):
        x = i / resolution
        phase = (x + offset) % 1.0 if offset else x
        if is_random:
            value = sample_random_with_slew(phase, start_phase)
        else:
            value = sample_waveform(waveform, phase)
        points.append((x, value * depth_scale))
    return points
