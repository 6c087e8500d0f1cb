#!/usr/bin/env python3
"""ABOUTME: Tests for the phase engine, its five trigger modes and the engine host.
ABOUTME: Drives engines with explicit timestamps so every expectation is exact."""

import math
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from lfo.engine import LfoEngine, simulate, wrap_phase
from lfo.host import LfoHost, SharedValue
from lfo.params import LfoConfig, TriggerMode
from lfo.random_step import sample_random
from lfo.waveforms import Waveform
from testing_results import TestResults, run_all, section


def _config(mode=TriggerMode.TRIGGERED, waveform=Waveform.TRIANGLE, **kwargs):
    """Speed 32 x 4 = one bar, 2000 ms at 120 BPM."""
    values = {"speed": 32, "multiplier": 4, "depth": 63}
    values.update(kwargs)
    return LfoConfig.from_values(waveform=waveform, mode=mode, **values)


def test_first_update_and_clock(results=None):
    results = results or TestResults()
    section("TEST: First update and clock handling")

    engine = LfoEngine(_config(), bpm=120)
    results.assert_close(engine.cycle_ms, 2000.0, "One bar at 120 BPM")

    engine.update(12345.0)
    results.assert_equal(engine.phase, 0.0, "First update advances nothing")

    engine.update(12845.0)
    results.assert_close(engine.phase, 0.25, "500 ms is a quarter cycle")

    engine.update(12000.0)
    results.assert_close(engine.phase, 0.25, "Backwards timestamp counts as no time")

    results.assert_equal(wrap_phase(1.0), 0.0, "wrap_phase(1.0) = 0")
    results.assert_true(0.0 <= wrap_phase(-1e-18) < 1.0, "Tiny negative wraps into [0, 1)")

    frozen = LfoEngine(_config(speed=0), bpm=120)
    frozen.update(0.0)
    frozen.update(60000.0)
    results.assert_equal(frozen.phase, 0.0, "Speed 0 never advances")
    results.assert_true(not frozen.is_running(), "Speed 0 is not running")

    results.check()


def test_negative_speed(results=None):
    results = results or TestResults()
    section("TEST: Negative speed runs backwards")

    engine = LfoEngine(_config(speed=-32), bpm=120)
    engine.update(0.0)
    engine.update(500.0)
    results.assert_close(engine.phase, 0.75, "Quarter cycle backwards lands on 0.75")
    results.assert_close(engine.sample.raw, -1.0, "TRI read at the reversed phase")

    results.check()


def test_triggered_restart(results=None):
    results = results or TestResults()
    section("TEST: TRG restarts the cycle")

    engine = LfoEngine(_config(), bpm=120)
    engine.update(0.0)
    engine.update(5300.0)
    results.assert_equal(engine.state.cycle_count, 2, "Two whole cycles counted")

    engine.update(5400.0)
    engine.trigger()
    sample = engine.update(5400.0)
    results.assert_equal(sample.phase, 0.0, "Phase is 0 right after a trigger")
    results.assert_equal(sample.cycle_count, 0, "Cycle count cleared")
    results.assert_close(engine.state.fade_start_cycle, engine.state.total_cycles, "Fade anchor moved to the trigger")

    engine.update(5900.0)
    results.assert_close(engine.phase, 0.25, "Runs on from the trigger")

    results.check()


def test_trigger_between_frames(results=None):
    results = results or TestResults()
    section("TEST: A trigger between frames starts the cycle at the trigger")

    engine = LfoEngine(_config(), bpm=120)
    engine.update(0.0)
    engine.update(1000.0)
    results.assert_close(engine.phase, 0.5, "Half a cycle before the trigger")
    engine.trigger()
    engine.update(1016.7)
    results.assert_equal(engine.phase, 0.0, "Frame time before an untimed trigger is not counted")
    engine.update(1516.7)
    results.assert_close(engine.phase, 0.25, "Counts from the first frame after the trigger")

    timed = LfoEngine(_config(), bpm=120)
    timed.update(0.0)
    timed.update(1000.0)
    timed.trigger(1008.0)
    results.assert_equal(timed.phase, 0.0, "Timed trigger lands on phase 0")
    timed.update(1016.0)
    results.assert_close(timed.phase, 8.0 / 2000.0, "Only time after the trigger advances the new cycle")
    results.assert_close(timed.state.cycles_since_trigger, 8.0 / 2000.0, "Fade clock starts at the trigger")

    hold = LfoEngine(_config(mode=TriggerMode.HOLD), bpm=120)
    hold.update(0.0)
    hold.update(1000.0)
    hold.trigger()
    hold.update(1500.0)
    results.assert_close(hold.phase, 0.75, "HLD keeps its clock across a trigger")

    host = LfoHost(_config(), bpm=120)
    host.tick(0.0)
    host.tick(1000.0)
    host.trigger(1010.0)
    results.assert_close(host.tick(1020.0).phase, 10.0 / 2000.0, "Host passes the trigger time through")

    results.check()


def test_free_ignores_triggers(results=None):
    results = results or TestResults()
    section("TEST: FRE ignores triggers")

    engine = LfoEngine(_config(mode=TriggerMode.FREE), bpm=120)
    engine.update(0.0)
    engine.update(500.0)
    before = engine.state
    engine.trigger()
    results.assert_equal(engine.state, before, "State unchanged by a trigger")

    results.check()


def test_hold_latches_output(results=None):
    results = results or TestResults()
    section("TEST: HLD latches the output")

    engine = LfoEngine(_config(mode=TriggerMode.HOLD, waveform=Waveform.SINE), bpm=120)
    engine.update(0.0)
    results.assert_close(engine.sample.output, 0.0, "First update latches phase 0")

    engine.update(250.0)
    results.assert_close(engine.sample.output, 0.0, "Output stays latched while the phase runs")

    engine.trigger()
    expected = math.sin(2 * math.pi * 0.125)
    outputs = [engine.update(t).output for t in (300.0, 1000.0, 1750.0, 6000.0)]
    results.assert_true(all(abs(o - expected) < 1e-9 for o in outputs), "Trigger latches the live value")
    results.assert_true(engine.phase != 0.125, "Phase keeps running underneath")

    results.check()


def test_one_shot_freezes(results=None):
    results = results or TestResults()
    section("TEST: ONE plays one cycle then freezes")

    engine = LfoEngine(_config(mode=TriggerMode.ONE_SHOT), bpm=120)
    engine.update(0.0)
    engine.update(1500.0)
    results.assert_close(engine.phase, 0.75, "Still running at 3/4 cycle")

    engine.update(2500.0)
    results.assert_true(engine.state.frozen, "Frozen after one cycle")
    results.assert_equal(engine.phase, 0.0, "Stops exactly at the end of the cycle")
    results.assert_equal(engine.state.cycle_count, 1, "One cycle completed")
    results.assert_true(not engine.is_running(), "is_running() false once frozen")

    engine.update(4000.0)
    results.assert_equal(engine.phase, 0.0, "Stays frozen")

    engine.trigger(4000.0)
    engine.update(4500.0)
    results.assert_close(engine.phase, 0.25, "A trigger runs it again")
    results.assert_close(engine.sample.output, 1.0, "TRI peak on the rerun")

    results.check()


def test_half_freezes(results=None):
    results = results or TestResults()
    section("TEST: HLF plays half a cycle then freezes")

    engine = LfoEngine(_config(mode=TriggerMode.HALF), bpm=120)
    engine.update(0.0)
    engine.update(1500.0)
    results.assert_equal(engine.phase, 0.5, "Stops exactly at half a cycle")
    results.assert_true(engine.state.frozen, "Frozen")
    results.assert_close(engine.sample.output, 0.0, "TRI(0.5) = 0 while frozen")

    reverse = LfoEngine(_config(mode=TriggerMode.HALF, speed=-32), bpm=120)
    reverse.update(0.0)
    reverse.update(3000.0)
    results.assert_equal(reverse.phase, 0.5, "Reverse half cycle also ends at 0.5")

    results.check()


def test_start_stop(results=None):
    results = results or TestResults()
    section("TEST: Start and stop")

    engine = LfoEngine(_config(), bpm=120)
    engine.update(0.0)
    engine.stop()
    engine.update(1000.0)
    results.assert_equal(engine.phase, 0.0, "Stopped engine does not advance")
    results.assert_true(not engine.is_running(), "Reports stopped")

    engine.start()
    engine.update(1500.0)
    results.assert_close(engine.phase, 0.25, "Time spent stopped is not caught up")

    engine.stop()
    engine.trigger()
    results.assert_true(engine.is_running(), "A restarting trigger also resumes")

    results.check()


def test_fade_in_engine(results=None):
    results = results or TestResults()
    section("TEST: Fade envelope follows cycles since trigger")

    engine = LfoEngine(_config(fade=16), bpm=120)
    engine.update(0.0)
    engine.update(1900.0)
    results.assert_equal(engine.sample.fade_envelope, 1.0, "Fade-out holds for the first cycle")
    engine.update(4200.0)
    results.assert_close(engine.sample.fade_envelope, 0.5, "Half way through the fade-out", 1e-9)
    engine.update(8000.0)
    results.assert_equal(engine.sample.fade_envelope, 0.0, "Fade-out complete")
    results.assert_equal(engine.sample.output, 0.0, "Silent after the fade")

    engine.trigger()
    results.assert_equal(engine.sample.fade_envelope, 1.0, "A trigger restarts the fade")

    free = LfoEngine(_config(mode=TriggerMode.FREE, fade=16), bpm=120)
    free.update(0.0)
    free.update(8000.0)
    results.assert_equal(free.sample.fade_envelope, 1.0, "FRE ignores fade")

    fade_in = LfoEngine(_config(fade=-16), bpm=120)
    fade_in.update(0.0)
    results.assert_equal(fade_in.sample.output, 0.0, "Fade-in starts silent")
    fade_in.update(2200.0)
    results.assert_close(fade_in.sample.fade_envelope, 0.5, "Half way through the fade-in", 1e-9)

    results.check()


def test_random_reseeds_per_cycle(results=None):
    results = results or TestResults()
    section("TEST: RND draws new steps every cycle")

    engine = LfoEngine(_config(waveform=Waveform.RANDOM), bpm=120, seed=5)
    engine.update(0.0)
    engine.update(500.0)
    results.assert_equal(engine.sample.raw, sample_random(0.25, 5), "Cycle 0 uses the base seed")
    engine.update(2500.0)
    results.assert_equal(engine.sample.raw, sample_random(0.25, 6), "Cycle 1 uses base seed + 1")

    results.check()


def test_end_to_end_triangle(results=None):
    results = results or TestResults()
    section("TEST: TRI 16 x 4, depth 40, TRG at 120 BPM")

    config = LfoConfig.from_values(Waveform.TRIANGLE, speed=16, multiplier=4, depth=40, mode="TRG")
    samples = simulate(config, [t * 10.0 for t in range(401)], bpm=120)
    outputs = [s.output for s in samples]
    limit = 40 / 63

    results.assert_close(LfoEngine(config).cycle_ms, 4000.0, "Cycle is 4000 ms")
    results.assert_true(all(abs(o) <= limit + 1e-12 for o in outputs), "Output stays within ±40/63")
    results.assert_close(max(outputs), limit, "Reaches the positive peak", 1e-6)
    results.assert_close(min(outputs), -limit, "Reaches the negative peak", 1e-6)
    results.assert_close(samples[100].output, limit, "Peak a quarter cycle in", 1e-6)

    one_shot = simulate(config.with_changes(mode=TriggerMode.ONE_SHOT), [t * 100.0 for t in range(81)])
    results.assert_true(all(s.output == 0.0 for s in one_shot[41:]), "ONE is silent after its cycle")

    results.check()


def test_host_publishing(results=None):
    results = results or TestResults()
    section("TEST: Host publishes samples and swaps engines")

    shared = SharedValue(1)
    seen = []
    unsubscribe = shared.subscribe(seen.append)
    shared.set(2)
    unsubscribe()
    shared.set(3)
    results.assert_equal(seen, [2], "Unsubscribed callbacks stop firing")
    results.assert_equal(shared.get(), 3, "get() returns the latest value")

    view = shared.view()
    results.assert_true(not hasattr(view, "set"), "A view cannot publish")
    shared.set(4)
    results.assert_equal(view.get(), 4, "A view follows its source")

    host = LfoHost(_config(), bpm=120)
    results.assert_true(
        not any(hasattr(v, "set") for v in (host.config, host.timing, host.sample)),
        "Host hands out read-only values",
    )
    samples = []
    stop_listening = host.sample.subscribe(samples.append)
    host.tick(0.0)
    host.tick(500.0)
    results.assert_equal(len(samples), 2, "One publication per tick")
    results.assert_close(samples[-1].phase, 0.25, "Latest sample published")
    stop_listening()

    timings = []
    host.timing.subscribe(timings.append)
    host.apply_config(_config(multiplier=8))
    results.assert_close(timings[-1].cycle_ms, 1000.0, "New timing published on reconfigure")
    results.assert_equal(host.engine.phase, 0.0, "Reconfigure starts a fresh engine")

    host.stop()
    host.set_bpm(60)
    results.assert_true(not host.engine.state.running, "Tempo change keeps the engine stopped")
    results.assert_close(host.timing.get().cycle_ms, 2000.0, "Tempo change republishes timing")

    host.set_bpm(999)
    results.assert_equal(host.bpm, 300, "Host clamps tempo")

    results.check()


TESTS = [
    test_first_update_and_clock,
    test_negative_speed,
    test_triggered_restart,
    test_trigger_between_frames,
    test_free_ignores_triggers,
    test_hold_latches_output,
    test_one_shot_freezes,
    test_half_freezes,
    test_start_stop,
    test_fade_in_engine,
    test_random_reseeds_per_cycle,
    test_end_to_end_triangle,
    test_host_publishing,
]


def main():
    """Run all tests."""
    return run_all("LFO ENGINE TEST SUITE", TESTS)


if __name__ == "__main__":
    sys.exit(main())
