#!/usr/bin/env python3
"""ABOUTME: Tests for depth scaling, the fade envelope, LfoConfig clamping and the factory presets."""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from lfo.fade import (
    depth_scale, fade_completion_cycles, fade_cycles, fade_envelope, is_fade_active,
)
from lfo.params import LfoConfig, TriggerMode
from lfo.presets import LFO_PRESETS, get_all_preset_names, get_preset, next_preset_name
from lfo.waveforms import Waveform
from testing_results import TestResults, run_all, section


def test_depth_scale(results=None):
    results = results or TestResults()
    section("TEST: Depth scale")

    results.assert_equal(depth_scale(63), 1.0, "+63 is full scale")
    results.assert_equal(depth_scale(0), 0.0, "0 silences the LFO")
    results.assert_close(depth_scale(-32), -32 / 63, "Negative depth inverts")
    results.assert_equal(depth_scale(-63), -1.0, "-63 is full inverted scale")
    # -64 / 63 would overshoot; it folds onto -1
    results.assert_equal(depth_scale(-64), -1.0, "-64 clamps to -1")

    results.check()


def test_fade_cycles(results=None):
    results = results or TestResults()
    section("TEST: Fade length in cycles")

    results.assert_close(fade_cycles(16), 2.2, "|fade| 16 takes 2.2 cycles", 1e-12)
    results.assert_close(fade_cycles(-16), 2.2, "Sign does not change the length", 1e-12)
    results.assert_close(fade_cycles(4), 1.0, "|fade| 4 takes one cycle", 1e-12)
    results.assert_close(fade_cycles(1), 0.7, "Short fades stay above the minimum", 1e-12)
    results.assert_close(fade_cycles(25), 8.8, "Doubles every 4.5 units above 16", 1e-9)
    results.assert_true(fade_cycles(63) > fade_cycles(40) > fade_cycles(17), "Monotonic in |fade|")
    results.assert_true(fade_cycles(64) < float("inf"), "Largest fade still completes")

    results.check()


def test_fade_envelope(results=None):
    results = results or TestResults()
    section("TEST: Fade envelope")

    results.assert_equal(fade_envelope(0, 5.0), 1.0, "No fade is always full level")

    results.assert_equal(fade_envelope(-16, 0.0), 0.0, "Fade-in starts silent")
    results.assert_close(fade_envelope(-16, 1.1), 0.5, "Fade-in half way at 1.1 cycles", 1e-12)
    results.assert_equal(fade_envelope(-16, 3.0), 1.0, "Fade-in complete")
    results.assert_equal(fade_envelope(-16, -2.0), 0.0, "Negative elapsed treated as zero")

    results.assert_equal(fade_envelope(16, 0.99), 1.0, "Fade-out holds through the first cycle")
    results.assert_close(fade_envelope(16, 2.1), 0.5, "Fade-out half way", 1e-9)
    results.assert_equal(fade_envelope(16, 10.0), 0.0, "Fade-out ends at zero")

    results.assert_close(fade_completion_cycles(-16), 2.2, "Fade-in completes after its length", 1e-12)
    results.assert_close(fade_completion_cycles(16), 3.2, "Fade-out completes one cycle later", 1e-12)
    results.assert_equal(fade_completion_cycles(0), 0.0, "No fade completes at once")

    results.check()


def test_fade_mode_gating(results=None):
    results = results or TestResults()
    section("TEST: Fade only with retriggering modes")

    results.assert_true(not is_fade_active(16, TriggerMode.FREE), "FRE never fades")
    results.assert_true(not is_fade_active(0, TriggerMode.TRIGGERED), "Fade 0 is inactive")
    for mode in (TriggerMode.TRIGGERED, TriggerMode.HOLD, TriggerMode.ONE_SHOT, TriggerMode.HALF):
        results.assert_true(is_fade_active(-8, mode), f"{mode.value} fades")

    results.check()


def test_config_clamping(results=None):
    results = results or TestResults()
    section("TEST: LfoConfig clamps instead of rejecting")

    config = LfoConfig.from_values(
        waveform="sine", speed=99, multiplier=100, depth=-200, fade=70, start_phase=300, mode="trg",
    )
    results.assert_equal(config.waveform, Waveform.SINE, "Waveform parsed by name")
    results.assert_equal(config.speed, 63.99, "Speed clamped to 63.99")
    results.assert_equal(config.multiplier, 128, "Multiplier snapped to the nearest allowed value")
    results.assert_equal(config.depth, -64, "Depth clamped to -64")
    results.assert_equal(config.fade, 63, "Fade clamped to 63")
    results.assert_equal(config.start_phase, 127, "Start phase clamped to 127")
    results.assert_equal(config.mode, TriggerMode.TRIGGERED, "Mode parsed by short code")

    junk = LfoConfig.from_values(waveform="???", speed="fast", depth=float("nan"), mode=42)
    results.assert_equal(junk.waveform, Waveform.TRIANGLE, "Unknown waveform falls back to TRI")
    results.assert_equal(junk.speed, 0.0, "Unparseable speed becomes 0")
    results.assert_equal(junk.depth, 0, "NaN depth becomes 0")
    results.assert_equal(junk.mode, TriggerMode.HALF, "Out-of-range mode index clamps")

    edited = config.with_changes(depth=500, speed=-12.347)
    results.assert_equal(edited.depth, 63, "with_changes re-clamps")
    results.assert_equal(edited.speed, -12.35, "Speed kept to two decimals")

    stored = LfoConfig.from_dict(config.to_dict())
    results.assert_equal(stored, config, "to_dict / from_dict preserve the config")
    results.assert_equal(config.to_dict()["mode"], "TRG", "Enums stored by short code")

    results.assert_equal(
        LfoConfig(speed=16, multiplier=8).describe(),
        "TRI | SPD=16 | MULT=8 | DEPTH=63 | MODE=FRE",
        "describe() uses device abbreviations",
    )

    results.check()


def test_factory_presets(results=None):
    results = results or TestResults()
    section("TEST: Factory presets")

    names = get_all_preset_names()
    results.assert_equal(names[0], "Init", "Init comes first")
    results.assert_equal(len(names), 6, "Six factory presets")
    for name, config in LFO_PRESETS.items():
        results.assert_equal(LfoConfig.from_values(**config.to_dict()), config, f"{name} survives clamping unchanged")

    wobble = get_preset("Wobble Bass")
    results.assert_equal(
        (wobble.waveform, wobble.multiplier, wobble.start_phase, wobble.mode, wobble.depth),
        (Waveform.SINE, 8, 32, TriggerMode.TRIGGERED, 48),
        "Wobble Bass fields",
    )
    results.assert_equal(get_preset("Pumping Sidechain").depth, -63, "Inverted depth kept")
    results.assert_equal(get_preset("Fade-In One-Shot").fade, -32, "Negative fade kept")
    results.assert_equal(get_preset("Nope"), None, "Unknown preset is None")

    results.assert_equal(next_preset_name(None), "Init", "Cycling starts at Init")
    results.assert_equal(next_preset_name("Init"), "Wobble Bass", "Steps in table order")
    results.assert_equal(next_preset_name(names[-1]), "Init", "Wraps around")
    results.assert_equal(next_preset_name("Init", -1), names[-1], "Steps backwards")

    results.check()


TESTS = [
    test_depth_scale,
    test_fade_cycles,
    test_fade_envelope,
    test_fade_mode_gating,
    test_config_clamping,
    test_factory_presets,
]


def main():
    """Run all tests."""
    return run_all("FADE AND DEPTH TEST SUITE", TESTS)


if __name__ == "__main__":
    sys.exit(main())
