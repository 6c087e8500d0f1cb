"""ABOUTME: Asynchronous hardware verification: configure, settle, capture, trigger, compare.
ABOUTME: Link failures fail one test and the run moves on; only cancel() stops a suite early."""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from lfo.timing import calculate_timing, clamp_bpm
from lfo.params import TriggerMode
from midi import lfo_protocol
from midi.hardware_link import CCEvent, ControlLink, LinkError, send_trigger
from verification import analysis
from verification.analysis import CapturedPoint
from verification.report import LogEntry, SuiteReport, TestResult, draw_waveform_comparison
from verification.suites import SUITE_TITLES, TEST_SUITES, TestConfig, get_suite, is_fade_test

logger = logging.getLogger(__name__)

LogListener = Callable[[LogEntry], None]


class VerificationCancelled(Exception):
    """Raised between steps after cancel() was called."""


class VerificationHarness:
    """
    Runs test configurations against a device behind a ControlLink.

    Each test: send parameter CCs, wait the settle delay, open the capture,
    trigger (optionally several times), keep capturing for the window,
    close the capture, then compare against the model. Captured points are
    stamped by the link's clock and sorted before analysis.
    """

    def __init__(self, link: ControlLink, bpm: float = 120, settle_ms: float = 500,
                 param_channel: int = lfo_protocol.PARAM_CHANNEL,
                 trigger_channel: int = lfo_protocol.TRIGGER_CHANNEL,
                 output_channel: int = lfo_protocol.OUTPUT_CHANNEL,
                 output_cc: int = lfo_protocol.OUTPUT_CC,
                 seed: int = 0):
        """
        Initialize the harness.

        Args:
            link: Open control link (hardware or simulated)
            bpm: Tempo the device is running at
            settle_ms: Wait after configuring before capturing
            param_channel: Channel of the LFO parameter CCs
            trigger_channel: Channel of the trigger note
            output_channel: Channel the LFO output CC arrives on
            output_cc: Controller number of the LFO output
            seed: RANDOM seed used for the model run
        """
        self.link = link
        self.bpm = clamp_bpm(bpm)
        self.settle_ms = settle_ms
        self.param_channel = param_channel
        self.trigger_channel = trigger_channel
        self.output_channel = output_channel
        self.output_cc = output_cc
        self.seed = seed

        self.logs: List[LogEntry] = []
        self.is_running = False
        self.current_test = 0
        self._log_listeners: List[LogListener] = []
        self._cancelled = False
        self._capturing = False
        self._captured: List[Tuple[float, int]] = []

    # ── Log stream ───────────────────────────────────────────────

    def add_log_listener(self, listener: LogListener) -> Callable[[], None]:
        self._log_listeners.append(listener)

        def remove():
            if listener in self._log_listeners:
                self._log_listeners.remove(listener)

        return remove

    def log(self, message: str, kind: str = "info"):
        self._emit(LogEntry(message, kind))

    def _emit(self, entry: LogEntry):
        self.logs.append(entry)
        if entry.kind == "error":
            logger.warning(entry.message)
        else:
            logger.info(entry.message)
        for listener in list(self._log_listeners):
            listener(entry)

    def clear_logs(self):
        self.logs = []

    # ── Control ──────────────────────────────────────────────────

    def cancel(self):
        """Abandon the run at the next step boundary. The device keeps its last config."""
        self._cancelled = True

    def _check_cancelled(self):
        if self._cancelled:
            raise VerificationCancelled()

    def configure(self, test: TestConfig):
        """Send every LFO parameter of the test to the device."""
        for control, value in lfo_protocol.config_messages(test.config):
            self.link.send_cc(self.param_channel, control, value)

    def _on_cc(self, event: CCEvent):
        if not self._capturing:
            return
        if event.channel == self.output_channel and event.control == self.output_cc:
            self._captured.append((event.timestamp, event.value))

    async def capture(self, test: TestConfig) -> Tuple[List[CapturedPoint], List[float], float]:
        """
        Configure, settle, then trigger and capture.

        Returns:
            (points relative to the first trigger, trigger offsets, capture length in ms)
        """
        self._captured = []
        remove_listener = self.link.add_cc_listener(self._on_cc)
        try:
            self.configure(test)
            await self.link.sleep(self.settle_ms)
            self._check_cancelled()

            self._capturing = True
            trigger_times = []
            for _ in range(test.retriggers + 1):
                trigger_times.append(self.link.now_ms())
                await send_trigger(self.link, self.trigger_channel)
                await self.link.sleep(test.duration_ms)
                self._check_cancelled()
            end_time = self.link.now_ms()
        finally:
            self._capturing = False
            remove_listener()

        origin = trigger_times[0]
        points = [CapturedPoint(t - origin, v) for t, v in self._captured]
        offsets = [t - origin for t in trigger_times]
        return points, offsets, end_time - origin

    def evaluate(self, test: TestConfig, points: Sequence[CapturedPoint],
                 trigger_offsets: Sequence[float] = (0.0,),
                 duration_ms: Optional[float] = None) -> TestResult:
        """
        Compare a capture with the model. Pure: same capture, same verdict.

        Args:
            test: Test the capture belongs to
            points: Captured points, timestamps relative to the first trigger
            trigger_offsets: Trigger times relative to the first trigger
            duration_ms: Capture length after the first trigger

        Returns:
            TestResult with diagnostics attached
        """
        config = lfo_protocol.device_config(test.config)
        timing = calculate_timing(config.speed, config.multiplier, self.bpm)
        cycle_ms = timing.cycle_ms
        if duration_ms is None:
            duration_ms = test.duration_ms * (test.retriggers + 1)

        observed = analysis.sort_points(points)
        expected = analysis.expected_grid(config, self.bpm, duration_ms, cycle_ms, trigger_offsets, self.seed)
        shape = analysis.evaluate_shape(config, observed, expected, cycle_ms)
        timing_comparison = analysis.compare_timing(cycle_ms, observed)

        diagnostics: List[LogEntry] = [LogEntry(f"Captured {len(observed)} CC values on CC{self.output_cc}", "data")]

        if not observed:
            quiet_expected = config.mode == TriggerMode.HOLD or shape.expected_amplitude <= analysis.BOUNDS_SLACK
            if quiet_expected:
                diagnostics.append(LogEntry("No data captured (none expected)", "success"))
            else:
                diagnostics.append(LogEntry("No data captured!", "error"))
            return TestResult(
                name=test.name, config=config, passed=quiet_expected, captured_points=0,
                timing=timing_comparison, shape=shape,
                error=None if quiet_expected else "no data captured",
                diagnostics=diagnostics,
            )

        fade = None
        if is_fade_test(test):
            fade = analysis.evaluate_fade(observed, expected, cycle_ms, duration_ms)

        passed = shape.passed and (fade is None or fade.passed)
        diagnostics.extend(self._diagnostics(config, observed, expected, trigger_offsets, shape,
                                             timing_comparison, fade))

        return TestResult(
            name=test.name, config=config, passed=passed, captured_points=len(observed),
            timing=timing_comparison, shape=shape, fade=fade, diagnostics=diagnostics,
        )

    def _diagnostics(self, config, observed, expected, trigger_offsets, shape, timing, fade) -> List[LogEntry]:
        entries = [LogEntry(f"First CC at {observed[0].timestamp:.0f}ms, last at {observed[-1].timestamp:.0f}ms", "data")]

        if timing.status != "N/A":
            entries.append(LogEntry(
                f"Timing: {timing.observed_ms:.0f}ms vs {timing.expected_ms:.0f}ms expected ({timing.status})",
                "success" if timing.status == "OK" else "data",
            ))

        entries.append(LogEntry(
            f"Range: device=[{shape.observed_range[0]}-{shape.observed_range[1]}] "
            f"model=[{shape.expected_range[0]}-{shape.expected_range[1]}] bounds={list(shape.bounds)}",
            "success" if shape.bounds_ok else "error",
        ))
        entries.append(LogEntry(
            f"Amplitude: {shape.observed_amplitude} vs {shape.expected_amplitude} "
            f"(needs {shape.threshold:.0%}, {shape.tier})",
            "success" if shape.amplitude_ok else "error",
        ))

        if fade is not None:
            for cycle in fade.per_cycle:
                entries.append(LogEntry(
                    f"  cycle {cycle.cycle_index}: device={cycle.observed_amplitude} "
                    f"model={cycle.expected_amplitude} {'✓' if cycle.matched else '✗'}",
                    "data",
                ))
            entries.append(LogEntry(
                f"Fade: {fade.matched}/{len(fade.per_cycle)} cycles match",
                "success" if fade.passed else "error",
            ))

        model_at_observed = analysis.simulate_cc_stream(
            config, self.bpm, [p.timestamp for p in observed], trigger_offsets, self.seed,
        )
        for point, model_value, within in analysis.sample_checkpoints(observed, model_at_observed):
            entries.append(LogEntry(
                f"  t={point.timestamp:.0f}ms: device={point.value} model={model_value} {'✓' if within else '✗'}",
                "data",
            ))
        entries.append(LogEntry(
            f"Direction changes: device={analysis.count_direction_changes([p.value for p in observed])} "
            f"model={analysis.count_direction_changes([p.value for p in model_at_observed])}",
            "data",
        ))
        for line in draw_waveform_comparison(
            [(p.timestamp, p.value) for p in observed],
            [(p.timestamp, p.value) for p in expected],
        ):
            entries.append(LogEntry(line, "data"))
        return entries

    # ── Running ──────────────────────────────────────────────────

    async def run_test(self, test: TestConfig) -> TestResult:
        """Run one test. Link failures become a failed result, never an exception."""
        self.log(f"--- {test.name} ---")
        self.log(test.config.describe())
        try:
            points, offsets, duration_ms = await self.capture(test)
        except (LinkError, OSError) as e:
            self.log(f"Link failure: {e}", "error")
            return TestResult(name=test.name, config=test.config, passed=False, error=str(e))

        result = self.evaluate(test, points, offsets, duration_ms)
        for entry in result.diagnostics:
            self._emit(entry)
        if result.passed:
            self.log(f"{test.name}: PASS", "success")
        else:
            self.log(f"{test.name}: FAIL", "error")
        return result

    async def run_suite(self, name: str, tests: Optional[Sequence[TestConfig]] = None) -> SuiteReport:
        """
        Run every test of a suite in order, whatever the individual outcomes.

        Args:
            name: Suite key ('timing', 'fade', ..., or 'all')
            tests: Explicit test list, overriding the registry

        Returns:
            SuiteReport; `cancelled` is set when cancel() cut it short
        """
        tests = list(tests) if tests is not None else get_suite(name)
        report = SuiteReport(name)
        title = SUITE_TITLES.get(name, name.upper())

        self._cancelled = False
        self.is_running = True
        self.log("=" * 40)
        self.log(f"  {title}")
        self.log("=" * 40)
        self.log(f"Running {len(tests)} tests at {self.bpm} BPM")
        try:
            for index, test in enumerate(tests):
                self.current_test = index + 1
                self._check_cancelled()
                report.results.append(await self.run_test(test))
        except VerificationCancelled:
            report.cancelled = True
            self.log("Run cancelled", "error")
        finally:
            self.is_running = False
            self.current_test = 0

        kind = "success" if report.all_passed else "error"
        self.log(f"{title}: {report.summary()}", kind)
        return report

    async def run_all(self) -> List[SuiteReport]:
        """Run every registered suite; stops after a cancelled one."""
        reports = []
        for name in TEST_SUITES:
            report = await self.run_suite(name)
            reports.append(report)
            if report.cancelled:
                break
        return reports
