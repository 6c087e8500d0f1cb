"""ABOUTME: Shape-based comparison of a captured CC stream against the simulated LFO.
ABOUTME: Windowed amplitudes, bounds and fade checks decide pass/fail; point checks are diagnostics only."""

import math
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from lfo.engine import simulate
from lfo.params import LfoConfig
from lfo.random_step import RANDOM_AMPLITUDE
from lfo.waveforms import Waveform, waveform_curve
from lfo.fade import depth_scale
from midi.lfo_protocol import output_to_cc
from verification.report import (
    CycleComparison, FadeComparison, ShapeComparison, TimingComparison,
)

# CC units allowed outside the model's bounds
BOUNDS_SLACK = 6

# Observed / expected amplitude ratio required to pass
AMPLITUDE_THRESHOLD = 0.85
TOLERANT_THRESHOLD = 0.6
DEGRADED_THRESHOLD = 0.35

# Cycle times below which the device's CC output can no longer follow the LFO
TOLERANT_CYCLE_MS = 250.0
DEGRADED_CYCLE_MS = 63.0

# Per-cycle fade tolerance: the larger of a share of the expected amplitude or a CC count
FADE_TOLERANCE_PERCENT = 0.25
FADE_TOLERANCE_CC = 8

# Point-wise diagnostic checkpoints
CHECKPOINT_COUNT = 5
CHECKPOINT_TOLERANCE = 15

TIMING_OK_PERCENT = 15.0
TIMING_DRIFT_PERCENT = 30.0

EXPECTED_GRID_MS = 5.0
MAX_GRID_POINTS = 20000


class CapturedPoint(NamedTuple):
    timestamp: float    # ms relative to the first trigger
    value: int          # CC value 0-127


class CycleAmplitude(NamedTuple):
    cycle_index: int
    min: int
    max: int
    amplitude: int


def sort_points(points: Iterable[CapturedPoint]) -> List[CapturedPoint]:
    """Arrival order is not guaranteed; everything downstream wants time order."""
    return sorted(points, key=lambda p: p.timestamp)


def value_range(points: Sequence[CapturedPoint]) -> Optional[Tuple[int, int]]:
    if not points:
        return None
    values = np.fromiter((p.value for p in points), dtype=float, count=len(points))
    return int(values.min()), int(values.max())


def cycle_amplitudes(points: Sequence[CapturedPoint], cycle_ms: float,
                     duration_ms: Optional[float] = None) -> List[CycleAmplitude]:
    """
    Split a sorted stream into windows of one expected cycle and measure each.

    The device only sends a CC when the value changes, so the last value
    before a window is carried into it.

    Args:
        points: Sorted captured points
        cycle_ms: Expected cycle duration (inf gives a single window)
        duration_ms: Capture length from the trigger; windows end here

    Returns:
        One CycleAmplitude per window that holds any value
    """
    if not points:
        return []

    end = duration_ms if duration_ms is not None else points[-1].timestamp
    if not math.isfinite(cycle_ms) or cycle_ms <= 0 or cycle_ms >= end:
        window_count = 1
        width = max(end, 1e-9)
    else:
        width = cycle_ms
        window_count = max(1, int(math.floor(end / cycle_ms + 1e-9)))

    times = np.array([p.timestamp for p in points], dtype=float)
    values = np.array([p.value for p in points], dtype=float)

    result = []
    for index in range(window_count):
        start, stop = index * width, (index + 1) * width
        inside = values[(times >= start) & (times < stop)]
        before = values[times < start]
        if before.size:
            inside = np.append(inside, before[-1])
        if not inside.size:
            continue
        low, high = int(inside.min()), int(inside.max())
        result.append(CycleAmplitude(index, low, high, high - low))
    return result


def count_direction_changes(values: Sequence[int]) -> int:
    changes = 0
    last_direction = 0
    for previous, current in zip(values, values[1:]):
        direction = (current > previous) - (current < previous)
        if direction != 0 and direction != last_direction:
            changes += 1
            last_direction = direction
    return changes


def observed_cycle_ms(points: Sequence[CapturedPoint]) -> float:
    """Cycle time estimated from direction changes (two per cycle); 0 if none."""
    if len(points) < 2:
        return 0.0
    cycles = count_direction_changes([p.value for p in points]) / 2.0
    if cycles <= 0:
        return 0.0
    return (points[-1].timestamp - points[0].timestamp) / cycles


def drift_percent(expected_ms: float, observed_ms: float) -> float:
    if not math.isfinite(expected_ms) or expected_ms <= 0 or observed_ms <= 0:
        return 0.0
    return abs(1.0 - observed_ms / expected_ms) * 100.0


def compare_timing(expected_ms: float, points: Sequence[CapturedPoint]) -> TimingComparison:
    observed = observed_cycle_ms(points)
    if observed <= 0 or not math.isfinite(expected_ms):
        return TimingComparison(expected_ms, observed, 0.0, "N/A")
    drift = drift_percent(expected_ms, observed)
    if drift < TIMING_OK_PERCENT:
        status = "OK"
    elif drift < TIMING_DRIFT_PERCENT:
        status = "DRIFT"
    else:
        status = "WRONG"
    return TimingComparison(expected_ms, observed, drift, status)


def simulate_cc_stream(config: LfoConfig, bpm: float, timestamps: Sequence[float],
                       trigger_offsets: Sequence[float] = (0.0,), seed: int = 0) -> List[CapturedPoint]:
    """Model CC value at each timestamp, triggers fired at the same offsets as on the device."""
    times = [max(0.0, t) for t in timestamps]
    samples = simulate(config, times, bpm, trigger_offsets, seed)
    return [CapturedPoint(t, output_to_cc(s.output)) for t, s in zip(timestamps, samples)]


def expected_grid(config: LfoConfig, bpm: float, duration_ms: float, cycle_ms: float,
                  trigger_offsets: Sequence[float] = (0.0,), seed: int = 0) -> List[CapturedPoint]:
    """Model stream on a regular grid covering the whole capture."""
    step = EXPECTED_GRID_MS
    if math.isfinite(cycle_ms) and cycle_ms > 0:
        step = min(step, cycle_ms / 32.0)
    step = max(step, duration_ms / MAX_GRID_POINTS)
    timestamps = np.arange(0.0, duration_ms + step / 2, step)
    return simulate_cc_stream(config, bpm, timestamps.tolist(), trigger_offsets, seed)


def output_bounds(config: LfoConfig) -> Tuple[int, int]:
    """CC limits the LFO can reach at this depth, whatever its phase or fade."""
    scale = depth_scale(config.depth)
    if config.waveform == Waveform.RANDOM:
        # Every seed lands somewhere in the full random range
        values = [output_to_cc(RANDOM_AMPLITUDE * scale), output_to_cc(-RANDOM_AMPLITUDE * scale)]
    else:
        values = [output_to_cc(v * scale) for _, v in waveform_curve(config.waveform)]
    values.append(output_to_cc(0.0))
    return min(values), max(values)


def amplitude_threshold(config: LfoConfig, cycle_ms: float) -> Tuple[float, str]:
    """Required amplitude ratio and its tier for this configuration."""
    if cycle_ms < DEGRADED_CYCLE_MS:
        return DEGRADED_THRESHOLD, "degraded"
    if cycle_ms < TOLERANT_CYCLE_MS or config.waveform == Waveform.RANDOM:
        return TOLERANT_THRESHOLD, "tolerant"
    return AMPLITUDE_THRESHOLD, "normal"


def evaluate_shape(config: LfoConfig, observed: Sequence[CapturedPoint],
                   expected: Sequence[CapturedPoint], cycle_ms: float) -> ShapeComparison:
    """
    Amplitude and bounds check.

    Passes when the observed amplitude reaches the tier's share of the
    expected amplitude and every observed value lies inside the output
    bounds plus BOUNDS_SLACK.
    """
    expected_range = value_range(expected) or (64, 64)
    observed_range = value_range(observed) or (64, 64)
    expected_amplitude = expected_range[1] - expected_range[0]
    observed_amplitude = observed_range[1] - observed_range[0] if observed else 0

    low, high = output_bounds(config)
    bounds = (max(0, low - BOUNDS_SLACK), min(127, high + BOUNDS_SLACK))

    threshold, tier = amplitude_threshold(config, cycle_ms)
    if expected_amplitude <= BOUNDS_SLACK:
        amplitude_ok = True
    else:
        amplitude_ok = observed_amplitude >= threshold * expected_amplitude

    bounds_ok = not observed or (observed_range[0] >= bounds[0] and observed_range[1] <= bounds[1])

    return ShapeComparison(
        expected_range=expected_range,
        observed_range=observed_range,
        bounds=bounds,
        expected_amplitude=expected_amplitude,
        observed_amplitude=observed_amplitude,
        threshold=threshold,
        tier=tier,
        amplitude_ok=amplitude_ok,
        bounds_ok=bounds_ok,
    )


def evaluate_fade(observed: Sequence[CapturedPoint], expected: Sequence[CapturedPoint],
                  cycle_ms: float, duration_ms: float) -> FadeComparison:
    """Per-cycle amplitude of the capture against the model's amplitude at the same cycle."""
    observed_cycles = {c.cycle_index: c for c in cycle_amplitudes(observed, cycle_ms, duration_ms)}
    per_cycle = []
    for expected_cycle in cycle_amplitudes(expected, cycle_ms, duration_ms):
        seen = observed_cycles.get(expected_cycle.cycle_index)
        observed_amplitude = seen.amplitude if seen else 0
        tolerance = max(FADE_TOLERANCE_PERCENT * expected_cycle.amplitude, FADE_TOLERANCE_CC)
        matched = abs(observed_amplitude - expected_cycle.amplitude) <= tolerance
        per_cycle.append(CycleComparison(
            expected_cycle.cycle_index, expected_cycle.amplitude, observed_amplitude, tolerance, matched,
        ))
    return FadeComparison(per_cycle)


def sample_checkpoints(observed: Sequence[CapturedPoint],
                       model_at_observed: Sequence[CapturedPoint]) -> List[Tuple[CapturedPoint, int, bool]]:
    """
    Up to five evenly spaced point-wise comparisons.

    Returns:
        (observed point, model CC, within tolerance) triples
    """
    if not observed:
        return []
    step = max(1, len(observed) // CHECKPOINT_COUNT)
    checks = []
    for index in range(0, len(observed), step):
        if len(checks) >= CHECKPOINT_COUNT:
            break
        point = observed[index]
        model_value = model_at_observed[index].value
        checks.append((point, model_value, abs(point.value - model_value) <= CHECKPOINT_TOLERANCE))
    return checks
