#!/usr/bin/env python3
"""ABOUTME: Tests for persisted settings: ports, tempo, link channels and the last monitored LFO."""

import json
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config_manager import ConfigManager
from lfo.params import LfoConfig, TriggerMode
from lfo.waveforms import Waveform
from testing_results import TestResults, run_all, section


def test_defaults(results=None):
    results = results or TestResults()
    section("TEST: Defaults without a config file")

    with tempfile.TemporaryDirectory() as tmp:
        manager = ConfigManager(Path(tmp) / "config.json")
        results.assert_equal(manager.get_bpm(), 120, "Default tempo 120")
        results.assert_equal(manager.get_param_channel(), 9, "Parameters on channel 10 (index 9)")
        results.assert_equal(manager.get_trigger_channel(), 0, "Trigger on channel 1")
        results.assert_equal(manager.get_output_cc(), 70, "Output on CC 70")
        results.assert_equal(manager.get_settle_ms(), 500, "500 ms settle delay")
        results.assert_equal(manager.get_selected_output(), None, "No output port selected")
        results.assert_equal(manager.get_last_lfo(), LfoConfig(), "Default LFO")

    results.check()


def test_persistence(results=None):
    results = results or TestResults()
    section("TEST: Settings survive a restart")

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.json"
        manager = ConfigManager(path)
        manager.set_selected_output("Digitakt MIDI 1")
        manager.set_selected_input("Digitakt MIDI 1")
        manager.set_bpm(999)
        lfo = LfoConfig.from_values(Waveform.RANDOM, speed=-8, multiplier=16, depth=-20,
                                    fade=12, start_phase=40, mode=TriggerMode.HOLD)
        manager.set_last_lfo(lfo)

        reloaded = ConfigManager(path)
        results.assert_equal(reloaded.get_selected_output(), "Digitakt MIDI 1", "Output port kept")
        results.assert_equal(reloaded.get_selected_input(), "Digitakt MIDI 1", "Input port kept")
        results.assert_equal(reloaded.get_bpm(), 300, "Tempo stored clamped")
        results.assert_equal(reloaded.get_last_lfo(), lfo, "Last LFO kept")

    results.check()


def test_bad_values(results=None):
    results = results or TestResults()
    section("TEST: Bad files and values fall back")

    with tempfile.TemporaryDirectory() as tmp:
        broken = Path(tmp) / "broken.json"
        broken.write_text("{not json")
        results.assert_equal(ConfigManager(broken).get_bpm(), 120, "Unreadable file gives defaults")

        edited = Path(tmp) / "edited.json"
        edited.write_text(json.dumps({
            "bpm": "fast",
            "param_channel": 40,
            "output_cc": "seventy",
            "last_lfo": {"waveform": "SQR", "depth": 500},
        }))
        manager = ConfigManager(edited)
        results.assert_equal(manager.get_bpm(), 120, "Non-numeric tempo gives 120")
        results.assert_equal(manager.get_param_channel(), 15, "Channel clamped to 15")
        results.assert_equal(manager.get_output_cc(), 70, "Non-numeric CC gives the default")
        last = manager.get_last_lfo()
        results.assert_equal(last.waveform, Waveform.SQUARE, "Partial LFO keeps what it has")
        results.assert_equal(last.depth, 63, "Partial LFO is clamped")

    results.check()


TESTS = [
    test_defaults,
    test_persistence,
    test_bad_values,
]


def main():
    """Run all tests."""
    return run_all("CONFIG MANAGER TEST SUITE", TESTS)


if __name__ == "__main__":
    sys.exit(main())
