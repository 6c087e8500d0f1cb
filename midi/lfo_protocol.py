"""ABOUTME: MIDI CC map for the device's LFO1 parameters, trigger note and LFO output.
ABOUTME: Encodes an LfoConfig into parameter CCs and decodes them back with the device's quantisation."""

import math
from typing import Dict, List, Tuple

from lfo.params import (
    LfoConfig, MODE_ORDER, MULTIPLIERS, TriggerMode,
    DEPTH_MIN, DEPTH_MAX, FADE_MIN, FADE_MAX,
)
from lfo.waveforms import Waveform, WAVEFORM_ORDER

# Channels are zero-based (9 = MIDI channel 10, the track's auto channel)
PARAM_CHANNEL = 9
TRIGGER_CHANNEL = 0
OUTPUT_CHANNEL = 0

# LFO1 parameter CCs on the parameter channel
CC_SPEED = 102
CC_MULTIPLIER = 103
CC_FADE = 104
CC_DESTINATION = 105
CC_WAVEFORM = 106
CC_START_PHASE = 107
CC_MODE = 108
CC_DEPTH = 109

# Destination value that routes LFO1 to the CC the device echoes back
DESTINATION_VALUE = 70
OUTPUT_CC = 70

TRIGGER_NOTE = 60
TRIGGER_VELOCITY = 100
TRIGGER_HOLD_MS = 50

CC_CENTER = 64
CC_MAX = 127
OUTPUT_SWING = 63


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_cc(value: int) -> int:
    return max(0, min(CC_MAX, value))


def encode_speed(speed: float) -> int:
    """CC 0-127 covers speed -64..+63 (whole steps only)."""
    return _clamp_cc(CC_CENTER + _round_half_up(speed))


def decode_speed(value: int) -> float:
    return float(_clamp_cc(value) - CC_CENTER)


def encode_multiplier(multiplier: int) -> int:
    if multiplier in MULTIPLIERS:
        return MULTIPLIERS.index(multiplier)
    return 0


def decode_multiplier(value: int) -> int:
    return MULTIPLIERS[max(0, min(len(MULTIPLIERS) - 1, value))]


def encode_depth(depth: int) -> int:
    """The device shows depth as -128..+127, so one CC step is two depth units."""
    return _clamp_cc(_round_half_up(CC_CENTER + depth / 2))


def decode_depth(value: int) -> int:
    return max(DEPTH_MIN, min(DEPTH_MAX, (_clamp_cc(value) - CC_CENTER) * 2))


def encode_fade(fade: int) -> int:
    return _clamp_cc(CC_CENTER + fade)


def decode_fade(value: int) -> int:
    return max(FADE_MIN, min(FADE_MAX, _clamp_cc(value) - CC_CENTER))


def encode_waveform(waveform: Waveform) -> int:
    return WAVEFORM_ORDER.index(waveform)


def decode_waveform(value: int) -> Waveform:
    return WAVEFORM_ORDER[max(0, min(len(WAVEFORM_ORDER) - 1, value))]


def encode_mode(mode: TriggerMode) -> int:
    return MODE_ORDER.index(mode)


def decode_mode(value: int) -> TriggerMode:
    return MODE_ORDER[max(0, min(len(MODE_ORDER) - 1, value))]


def output_to_cc(output: float) -> int:
    """Map an engine output (-1..1 after depth and fade) to the CC value the device sends."""
    return _clamp_cc(_round_half_up(CC_CENTER + output * OUTPUT_SWING))


def config_messages(config: LfoConfig) -> List[Tuple[int, int]]:
    """
    Parameter CCs that put LFO1 into `config`, in sending order.

    Returns:
        List of (control, value) pairs for the parameter channel
    """
    return [
        (CC_WAVEFORM, encode_waveform(config.waveform)),
        (CC_SPEED, encode_speed(config.speed)),
        (CC_MULTIPLIER, encode_multiplier(config.multiplier)),
        (CC_DEPTH, encode_depth(config.depth)),
        (CC_FADE, encode_fade(config.fade)),
        (CC_START_PHASE, _clamp_cc(config.start_phase)),
        (CC_MODE, encode_mode(config.mode)),
        (CC_DESTINATION, DESTINATION_VALUE),
    ]


def decode_config(values: Dict[int, int], base: LfoConfig = None) -> LfoConfig:
    """
    Rebuild the config the device would run from received parameter CCs.

    Args:
        values: control -> last value received on the parameter channel
        base: Config supplying any parameter not present in `values`

    Returns:
        LfoConfig quantised the way the device stores it
    """
    base = base or LfoConfig()
    return LfoConfig.from_values(
        waveform=decode_waveform(values[CC_WAVEFORM]) if CC_WAVEFORM in values else base.waveform,
        speed=decode_speed(values[CC_SPEED]) if CC_SPEED in values else base.speed,
        multiplier=decode_multiplier(values[CC_MULTIPLIER]) if CC_MULTIPLIER in values else base.multiplier,
        depth=decode_depth(values[CC_DEPTH]) if CC_DEPTH in values else base.depth,
        fade=decode_fade(values[CC_FADE]) if CC_FADE in values else base.fade,
        start_phase=values.get(CC_START_PHASE, base.start_phase),
        mode=decode_mode(values[CC_MODE]) if CC_MODE in values else base.mode,
    )


def device_config(config: LfoConfig) -> LfoConfig:
    """The config as the device ends up running it after a CC round trip."""
    return decode_config(dict(config_messages(config)), config)
