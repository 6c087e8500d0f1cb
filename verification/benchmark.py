"""ABOUTME: Timing benchmarks for the per-frame engine update, curve sampling and capture evaluation.
ABOUTME: Thresholds are fractions of one 60 fps frame."""

import time
from dataclasses import dataclass
from typing import Callable, List

import numpy as np

from lfo.engine import LfoEngine
from lfo.params import LfoConfig, TriggerMode
from lfo.waveforms import WAVEFORM_ORDER, waveform_curve
from verification.analysis import CapturedPoint, simulate_cc_stream
from verification.harness import VerificationHarness
from verification.simulated_link import SimulatedLink
from verification.suites import TestConfig

FRAME_BUDGET_MS = 1000.0 / 60.0


@dataclass(frozen=True)
class BenchmarkResult:
    name: str
    avg_ms: float
    max_ms: float
    min_ms: float
    iterations: int
    threshold_ms: float

    @property
    def passed(self) -> bool:
        return self.avg_ms <= self.threshold_ms

    def describe(self) -> str:
        mark = "✓" if self.passed else "✗"
        return (f"{mark} {self.name}: avg {self.avg_ms:.3f}ms, max {self.max_ms:.3f}ms, "
                f"min {self.min_ms:.3f}ms over {self.iterations} runs (limit {self.threshold_ms:.2f}ms)")


def measure(name: str, action: Callable[[], None], iterations: int, threshold_ms: float) -> BenchmarkResult:
    """Time `action` `iterations` times with perf_counter."""
    durations = np.empty(iterations)
    for index in range(iterations):
        start = time.perf_counter()
        action()
        durations[index] = (time.perf_counter() - start) * 1000.0
    return BenchmarkResult(
        name=name,
        avg_ms=float(durations.mean()),
        max_ms=float(durations.max()),
        min_ms=float(durations.min()),
        iterations=iterations,
        threshold_ms=threshold_ms,
    )


def _update_benchmark(iterations: int) -> BenchmarkResult:
    engine = LfoEngine(LfoConfig.from_values(speed=32, multiplier=16, fade=-8, mode=TriggerMode.TRIGGERED))
    clock = {"now": 0.0}

    def step():
        clock["now"] += FRAME_BUDGET_MS
        engine.update(clock["now"])

    return measure("Engine update (one frame)", step, iterations, FRAME_BUDGET_MS * 0.01)


def _curve_benchmark(iterations: int) -> BenchmarkResult:
    def sample_all():
        for waveform in WAVEFORM_ORDER:
            waveform_curve(waveform, resolution=128)

    return measure("128-point curves, all waveforms", sample_all, iterations, FRAME_BUDGET_MS * 0.5)


def _evaluate_benchmark(iterations: int) -> BenchmarkResult:
    test = TestConfig("benchmark", LfoConfig.from_values(speed=32, multiplier=8, depth=62,
                                                         fade=-8, mode=TriggerMode.TRIGGERED), 3000)
    timestamps = list(np.arange(0.0, 3000.0, 4.0))
    captured: List[CapturedPoint] = simulate_cc_stream(test.config, 120, timestamps)
    harness = VerificationHarness(SimulatedLink())

    return measure("Capture evaluation", lambda: harness.evaluate(test, captured), iterations,
                   FRAME_BUDGET_MS * 30)


def run_benchmarks(iterations: int = 200) -> List[BenchmarkResult]:
    """Run every benchmark. Evaluation is slow by nature and runs fewer times."""
    return [
        _update_benchmark(iterations * 10),
        _curve_benchmark(iterations),
        _evaluate_benchmark(max(1, iterations // 20)),
    ]
