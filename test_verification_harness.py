#!/usr/bin/env python3
"""ABOUTME: Tests for the verification harness: capture, shape/fade evaluation, reports and cancellation.
ABOUTME: Runs against the simulated device, so every suite must pass on a dry run."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from midi import lfo_protocol
from verification import analysis
from verification.analysis import CapturedPoint
from verification.benchmark import run_benchmarks
from verification.harness import VerificationHarness
from verification.report import draw_waveform_comparison
from verification.simulated_link import SimulatedLink
from verification.suites import (
    DEPTH_TESTS, EDGE_CASE_TESTS, FADE_TESTS, MODE_TESTS, TEST_SUITES, TRIGGER_TESTS, get_suite,
)
from testing_results import TestResults, run_all, section


def _named(tests, name):
    return next(t for t in tests if t.name == name)


def _model_stream(config, duration_ms, step_ms=10.0):
    timestamps = [i * step_ms for i in range(int(duration_ms / step_ms) + 1)]
    return analysis.simulate_cc_stream(config, 120, timestamps)


def test_suite_registry(results=None):
    results = results or TestResults()
    section("TEST: Suite registry")

    results.assert_equal(len(TEST_SUITES), 8, "Eight suites")
    results.assert_equal(
        len(get_suite("all")), sum(len(s) for s in TEST_SUITES.values()), "'all' chains every suite",
    )
    names = [t.name for t in get_suite("all")]
    results.assert_equal(len(names), len(set(names)), "Test names are unique")

    results.check()


def test_evaluate_is_pure(results=None):
    results = results or TestResults()
    section("TEST: Evaluation is repeatable")

    harness = VerificationHarness(SimulatedLink())
    test = _named(TRIGGER_TESTS, "TRG phase=0")
    points = _model_stream(test.config, test.duration_ms)

    first = harness.evaluate(test, points)
    second = harness.evaluate(test, points)
    shuffled = harness.evaluate(test, list(reversed(points)))
    results.assert_true(first.passed, "Model stream passes against the model")
    results.assert_equal(first.to_dict(), second.to_dict(), "Same capture, same verdict")
    results.assert_equal(first.to_dict(), shuffled.to_dict(), "Arrival order does not matter")
    results.assert_close(first.timing.expected_ms, 4000.0, "Expected cycle from the device config")
    results.assert_true(first.timing.observed_ms > 0, "Cycle measured from direction changes")

    report = first.to_dict()
    results.assert_equal(set(report["timing"]), {"expected", "observed", "driftPercent"}, "Timing keys")
    results.assert_equal(set(report["shape"]), {"expectedRange", "observedRange", "bounds", "pass"}, "Shape keys")
    results.assert_true("fade" not in report, "No fade section without a fade")

    results.check()


def test_evaluate_failures(results=None):
    results = results or TestResults()
    section("TEST: Evaluation catches bad captures")

    harness = VerificationHarness(SimulatedLink())

    depth = _named(DEPTH_TESTS, "Depth +16")
    wild = [CapturedPoint(0, 64), CapturedPoint(500, 127), CapturedPoint(1000, 0)]
    result = harness.evaluate(depth, wild)
    results.assert_true(not result.shape.bounds_ok, "Values outside the depth bounds are caught")
    results.assert_true(not result.passed, "Out-of-bounds capture fails")

    fade = _named(FADE_TESTS, "Fade out +16")
    unfaded = _model_stream(fade.config.with_changes(fade=0), fade.duration_ms)
    result = harness.evaluate(fade, unfaded)
    results.assert_true(result.shape.passed, "Shape alone looks fine")
    results.assert_true(not result.fade.passed, "Missing fade-out is caught per cycle")
    results.assert_true(not result.passed, "Capture without the fade fails")
    results.assert_equal(set(result.to_dict()["fade"]), {"perCycle", "pass"}, "Fade keys")

    faded = harness.evaluate(fade, _model_stream(fade.config, fade.duration_ms))
    results.assert_true(faded.fade.passed, "Faded model stream passes")

    results.check()


def test_no_data(results=None):
    results = results or TestResults()
    section("TEST: Empty captures")

    harness = VerificationHarness(SimulatedLink())

    hold = harness.evaluate(_named(MODE_TESTS, "HLD mode"), [])
    results.assert_true(hold.passed, "HLD may legitimately send nothing")

    frozen = harness.evaluate(_named(EDGE_CASE_TESTS, "Speed zero"), [])
    results.assert_true(frozen.passed, "A frozen LFO sends nothing")

    silent = harness.evaluate(_named(EDGE_CASE_TESTS, "Depth zero"), [])
    results.assert_true(silent.passed, "Depth 0 sends nothing")

    missing = harness.evaluate(_named(TRIGGER_TESTS, "TRG phase=0"), [])
    results.assert_true(not missing.passed, "A moving LFO that sends nothing fails")
    results.assert_equal(missing.error, "no data captured", "Error says why")

    results.check()


def test_capture_sequence(results=None):
    results = results or TestResults()
    section("TEST: Capture sends config, then triggers")

    link = SimulatedLink()
    harness = VerificationHarness(link)
    test = _named(TRIGGER_TESTS, "TRG retrigger")
    points, offsets, duration_ms = asyncio.run(harness.capture(test))

    config_ccs = [entry for entry in link.sent if entry[0] == "cc"]
    results.assert_equal(
        [(c[2], c[3]) for c in config_ccs], lfo_protocol.config_messages(test.config),
        "Parameter CCs sent in order",
    )
    results.assert_true(all(c[1] == 9 for c in config_ccs), "Parameters on the parameter channel")
    notes = [entry for entry in link.sent if entry[0] == "note_on"]
    results.assert_equal(len(notes), 3, "One trigger plus two retriggers")
    results.assert_equal(offsets, [0.0, 1550.0, 3100.0], "Trigger offsets include the note hold")
    results.assert_close(duration_ms, 4650.0, "Capture covers every round", 1e-6)
    results.assert_true(len(points) > 100, "Output CCs captured")
    results.assert_true(points[0].timestamp >= 0.0, "Nothing captured before the trigger")

    results.check()


def test_dry_run_passes(results=None):
    results = results or TestResults()
    section("TEST: Every suite passes against the simulated device")

    harness = VerificationHarness(SimulatedLink())
    reports = asyncio.run(harness.run_all())

    results.assert_equal(len(reports), len(TEST_SUITES), "All suites ran")
    for report in reports:
        failed = [r.name for r in report.results if not r.passed]
        results.assert_true(report.all_passed, f"{report.name}: {report.summary()} {failed or ''}")
    results.assert_true(not harness.is_running, "Harness idle afterwards")
    results.assert_true(any(e.kind == "success" for e in harness.logs), "Progress logged")

    results.check()


def test_link_failure_continues(results=None):
    results = results or TestResults()
    section("TEST: Link failure fails the test, not the run")

    link = SimulatedLink()
    link.close()
    harness = VerificationHarness(link)
    report = asyncio.run(harness.run_suite("mode"))

    results.assert_equal(len(report.results), len(MODE_TESTS), "Every test still attempted")
    results.assert_equal(report.failed_count, len(MODE_TESTS), "Every test failed")
    results.assert_true(all(r.error for r in report.results), "Each failure carries the link error")
    results.assert_true(not report.cancelled, "A link failure is not a cancel")

    results.check()


def test_cancel(results=None):
    results = results or TestResults()
    section("TEST: Cancel stops at the next step")

    harness = VerificationHarness(SimulatedLink())

    def cancel_after_first(entry):
        if entry.message.endswith(": PASS") or entry.message.endswith(": FAIL"):
            harness.cancel()

    harness.add_log_listener(cancel_after_first)
    report = asyncio.run(harness.run_suite("depth"))

    results.assert_true(report.cancelled, "Report marked cancelled")
    results.assert_equal(len(report.results), 1, "Stopped after the first test")
    results.assert_true("cancelled" in report.summary(), "Summary mentions the cancel")
    results.assert_equal(harness.current_test, 0, "Progress counter reset")

    results.check()


def test_waveform_overlay(results=None):
    results = results or TestResults()
    section("TEST: ASCII waveform overlay")

    results.assert_equal(draw_waveform_comparison([], [(0, 64)]), ["No data to visualize"], "Empty capture")

    observed = [(0.0, 127), (500.0, 64), (1000.0, 0)]
    lines = draw_waveform_comparison(observed, observed)
    results.assert_equal(len(lines), 12, "Legend, frame, eight rows, frame, axis")
    grid = "".join(lines[2:10])
    results.assert_true("●" in grid, "Matching points drawn as ●")
    results.assert_true("o" not in grid, "No device-only points when model agrees")

    results.check()


def test_benchmarks_run(results=None):
    results = results or TestResults()
    section("TEST: Benchmarks produce measurements")

    benchmarks = run_benchmarks(iterations=2)
    results.assert_equal(len(benchmarks), 3, "Three benchmarks")
    results.assert_true(all(b.min_ms <= b.avg_ms <= b.max_ms for b in benchmarks), "min <= avg <= max")
    results.assert_true(all(b.describe() for b in benchmarks), "Each benchmark describes itself")

    results.check()


TESTS = [
    test_suite_registry,
    test_evaluate_is_pure,
    test_evaluate_failures,
    test_no_data,
    test_capture_sequence,
    test_dry_run_passes,
    test_link_failure_continues,
    test_cancel,
    test_waveform_overlay,
    test_benchmarks_run,
]


def main():
    """Run all tests."""
    return run_all("VERIFICATION HARNESS TEST SUITE", TESTS)


if __name__ == "__main__":
    sys.exit(main())
