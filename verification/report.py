"""ABOUTME: Result structures of a verification run and the ASCII waveform overlay.
ABOUTME: TestResult.to_dict() is the structured per-test report; LogEntry is the progress stream."""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from lfo.params import LfoConfig

LOG_KINDS = ("info", "success", "error", "data")

WAVEFORM_HEIGHT = 8
WAVEFORM_WIDTH = 40


@dataclass(frozen=True)
class LogEntry:
    message: str
    kind: str = "info"          # info | success | error | data
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TimingComparison:
    expected_ms: float
    observed_ms: float          # 0 when no cycle could be measured
    drift_percent: float
    status: str                 # OK | DRIFT | WRONG | N/A


@dataclass(frozen=True)
class ShapeComparison:
    expected_range: Tuple[int, int]     # CC min/max the model produces in the window
    observed_range: Tuple[int, int]
    bounds: Tuple[int, int]             # CC limits any output can reach, slack included
    expected_amplitude: int
    observed_amplitude: int
    threshold: float                    # required observed/expected amplitude ratio
    tier: str                           # normal | tolerant | degraded
    amplitude_ok: bool
    bounds_ok: bool

    @property
    def passed(self) -> bool:
        return self.amplitude_ok and self.bounds_ok


@dataclass(frozen=True)
class CycleComparison:
    cycle_index: int
    expected_amplitude: int
    observed_amplitude: int
    tolerance: float
    matched: bool


@dataclass(frozen=True)
class FadeComparison:
    per_cycle: List[CycleComparison]

    @property
    def matched(self) -> int:
        return sum(1 for c in self.per_cycle if c.matched)

    @property
    def passed(self) -> bool:
        if not self.per_cycle:
            return False
        return self.matched * 2 >= len(self.per_cycle)


@dataclass
class TestResult:
    __test__ = False    # not a pytest test class

    name: str
    config: LfoConfig
    passed: bool
    captured_points: int = 0
    timing: Optional[TimingComparison] = None
    shape: Optional[ShapeComparison] = None
    fade: Optional[FadeComparison] = None
    error: Optional[str] = None
    diagnostics: List[LogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Structured report, keyed the way result consumers read it."""
        data: Dict[str, Any] = {
            "name": self.name,
            "config": self.config.to_dict(),
            "passed": self.passed,
            "capturedPoints": self.captured_points,
        }
        if self.timing is not None:
            data["timing"] = {
                "expected": self.timing.expected_ms,
                "observed": self.timing.observed_ms,
                "driftPercent": self.timing.drift_percent,
            }
        if self.shape is not None:
            data["shape"] = {
                "expectedRange": list(self.shape.expected_range),
                "observedRange": list(self.shape.observed_range),
                "bounds": list(self.shape.bounds),
                "pass": self.shape.passed,
            }
        if self.fade is not None:
            data["fade"] = {
                "perCycle": [
                    {
                        "cycle": c.cycle_index,
                        "expected": c.expected_amplitude,
                        "observed": c.observed_amplitude,
                        "pass": c.matched,
                    }
                    for c in self.fade.per_cycle
                ],
                "pass": self.fade.passed,
            }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class SuiteReport:
    name: str
    results: List[TestResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.passed_count

    @property
    def all_passed(self) -> bool:
        return bool(self.results) and self.failed_count == 0 and not self.cancelled

    def summary(self) -> str:
        total = len(self.results)
        if total == 0:
            return "No tests run"
        rate = round(100 * self.passed_count / total)
        text = f"{self.passed_count}/{total} passed ({rate}%)"
        if self.cancelled:
            text += " - cancelled"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suite": self.name,
            "cancelled": self.cancelled,
            "passed": self.passed_count,
            "failed": self.failed_count,
            "tests": [r.to_dict() for r in self.results],
        }


def draw_waveform_comparison(observed: Sequence[Tuple[float, int]],
                             expected: Sequence[Tuple[float, int]]) -> List[str]:
    """
    ASCII overlay of observed and model CC values over time.

    Args:
        observed: (timestamp_ms, cc) pairs from the device
        expected: (timestamp_ms, cc) pairs from the model

    Returns:
        Lines to log; 'o' = device, '·' = model, '●' = both
    """
    if not observed:
        return ["No data to visualize"]

    times = [t for t, _ in observed]
    min_time = min(times)
    max_time = max(times)
    time_range = (max_time - min_time) or 1.0

    grid = [[" "] * WAVEFORM_WIDTH for _ in range(WAVEFORM_HEIGHT)]

    def value_to_row(value: int) -> int:
        normalized = max(0, min(127, value)) / 127.0
        return int(math.floor((1 - normalized) * (WAVEFORM_HEIGHT - 1)))

    def time_to_col(timestamp: float) -> int:
        normalized = (timestamp - min_time) / time_range
        return max(0, min(WAVEFORM_WIDTH - 1, int(math.floor(normalized * WAVEFORM_WIDTH))))

    for timestamp, value in expected:
        if timestamp < min_time or timestamp > max_time:
            continue
        row, col = value_to_row(value), time_to_col(timestamp)
        if grid[row][col] == " ":
            grid[row][col] = "·"

    for timestamp, value in observed:
        row, col = value_to_row(value), time_to_col(timestamp)
        grid[row][col] = "●" if grid[row][col] in ("·", "●") else "o"

    lines = ["Waveform: o=device  ·=model  ●=match", "127 ┬" + "─" * WAVEFORM_WIDTH + "┐"]
    for row in range(WAVEFORM_HEIGHT):
        if row == WAVEFORM_HEIGHT - 1:
            label = "  0 │"
        elif row == WAVEFORM_HEIGHT // 2:
            label = " 64 │"
        else:
            label = "    │"
        lines.append(label + "".join(grid[row]) + "│")
    lines.append("    └" + "─" * WAVEFORM_WIDTH + "┘")
    lines.append(f"     {min_time:.0f}ms" + " " * (WAVEFORM_WIDTH - 10) + f"{max_time:.0f}ms")
    return lines
