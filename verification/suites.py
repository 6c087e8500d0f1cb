"""ABOUTME: Hardware test configurations grouped into suites.
ABOUTME: Slow LFOs make trigger behaviour visible; fast ones probe the device's CC resolution."""

from dataclasses import dataclass
from typing import Dict, List

from lfo.params import LfoConfig, TriggerMode
from lfo.waveforms import Waveform, WAVEFORM_ORDER


@dataclass(frozen=True)
class TestConfig:
    """One hardware test: a parameter set and how long to watch it."""
    __test__ = False    # not a pytest test class

    name: str
    config: LfoConfig
    duration_ms: float
    retriggers: int = 0         # extra trigger + capture rounds after the first


def _lfo(waveform: Waveform = Waveform.TRIANGLE, speed: float = 32, multiplier: int = 8,
         depth: int = 62, fade: int = 0, start_phase: int = 0,
         mode: TriggerMode = TriggerMode.TRIGGERED) -> LfoConfig:
    return LfoConfig.from_values(waveform, speed, multiplier, depth, fade, start_phase, mode)


# Product 64 -> 4000 ms cycle at 120 BPM, slow enough to see where a trigger lands
TRIGGER_TESTS: List[TestConfig] = [
    TestConfig("TRG phase=0", _lfo(speed=16, multiplier=4, depth=40), 5000),
    TestConfig("TRG phase=64", _lfo(speed=16, multiplier=4, depth=40, start_phase=64), 5000),
    TestConfig("FRE mode", _lfo(speed=16, multiplier=4, depth=40, mode=TriggerMode.FREE), 5000),
    TestConfig("TRG retrigger", _lfo(speed=16, multiplier=4, depth=40), 1500, retriggers=2),
]

TIMING_TESTS: List[TestConfig] = [
    TestConfig("1 bar cycle", _lfo(speed=32, multiplier=4), 4000),
    TestConfig("1/2 note cycle", _lfo(speed=32, multiplier=8), 3000),
    TestConfig("1/4 note cycle", _lfo(speed=32, multiplier=16), 2000),
    TestConfig("1/16 note cycle", _lfo(speed=32, multiplier=64), 1000),
    TestConfig("2 bar cycle", _lfo(speed=16, multiplier=4), 8000),
    TestConfig("Negative speed", _lfo(speed=-32, multiplier=8), 3000),
]

WAVEFORM_TESTS: List[TestConfig] = [
    TestConfig(f"{waveform.value} shape", _lfo(waveform=waveform), 3000)
    for waveform in WAVEFORM_ORDER
]

DEPTH_TESTS: List[TestConfig] = [
    TestConfig("Depth +62", _lfo(depth=62), 2000),
    TestConfig("Depth +32", _lfo(depth=32), 2000),
    TestConfig("Depth -32", _lfo(depth=-32), 2000),
    TestConfig("Depth +16", _lfo(depth=16), 2000),
    TestConfig("Depth -64", _lfo(depth=-64), 2000),
]

# 1000 ms cycles so a fade spans a handful of windows
FADE_TESTS: List[TestConfig] = [
    TestConfig("Fade in -4", _lfo(fade=-4), 3000),
    TestConfig("Fade in -16", _lfo(fade=-16), 4000),
    TestConfig("Fade out +4", _lfo(fade=4), 4000),
    TestConfig("Fade out +16", _lfo(fade=16), 5000),
    TestConfig("Fade ignored in FRE", _lfo(fade=-16, mode=TriggerMode.FREE), 3000),
]

MODE_TESTS: List[TestConfig] = [
    TestConfig("HLD mode", _lfo(mode=TriggerMode.HOLD), 3000),
    TestConfig("ONE mode", _lfo(mode=TriggerMode.ONE_SHOT), 3000),
    TestConfig("HLF mode", _lfo(mode=TriggerMode.HALF), 3000),
    TestConfig("ONE retrigger", _lfo(mode=TriggerMode.ONE_SHOT), 1500, retriggers=1),
]

START_PHASE_TESTS: List[TestConfig] = [
    TestConfig("SIN phase=32", _lfo(waveform=Waveform.SINE, start_phase=32), 2000),
    TestConfig("SIN phase=96", _lfo(waveform=Waveform.SINE, start_phase=96), 2000),
    TestConfig("ONE phase=64", _lfo(mode=TriggerMode.ONE_SHOT, start_phase=64), 2000),
    TestConfig("RND slew=64", _lfo(waveform=Waveform.RANDOM, start_phase=64), 3000),
]

EDGE_CASE_TESTS: List[TestConfig] = [
    TestConfig("Fastest", _lfo(speed=63, multiplier=2048), 1000),
    TestConfig("Very slow", _lfo(speed=1, multiplier=1), 3000),
    TestConfig("Speed zero", _lfo(speed=0), 2000),
    TestConfig("Depth zero", _lfo(depth=0), 2000),
    TestConfig("Max fade out", _lfo(speed=63, multiplier=64, fade=63), 3000),
]

TEST_SUITES: Dict[str, List[TestConfig]] = {
    "trigger": TRIGGER_TESTS,
    "timing": TIMING_TESTS,
    "waveform": WAVEFORM_TESTS,
    "depth": DEPTH_TESTS,
    "fade": FADE_TESTS,
    "mode": MODE_TESTS,
    "start_phase": START_PHASE_TESTS,
    "edge": EDGE_CASE_TESTS,
}

SUITE_TITLES: Dict[str, str] = {
    "trigger": "TRIGGER BEHAVIOR TESTS",
    "timing": "TIMING VERIFICATION TESTS",
    "waveform": "WAVEFORM SHAPE TESTS",
    "depth": "DEPTH SCALING TESTS",
    "fade": "FADE ENVELOPE TESTS",
    "mode": "TRIGGER MODE TESTS",
    "start_phase": "START PHASE TESTS",
    "edge": "EDGE CASE TESTS",
}


def get_suite(name: str) -> List[TestConfig]:
    """Tests of a named suite; 'all' chains every suite in order."""
    if name == "all":
        return [test for suite in TEST_SUITES.values() for test in suite]
    return TEST_SUITES[name]


def is_fade_test(test: TestConfig) -> bool:
    return test.config.fade != 0 and test.config.mode != TriggerMode.FREE
