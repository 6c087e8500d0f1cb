"""ABOUTME: Factory LFO presets, one named LfoConfig each.
ABOUTME: The monitor cycles through them; order here is the cycling order."""

from typing import List, Optional

from lfo.params import LfoConfig

LFO_PRESETS = {
    "Init": LfoConfig.from_values(
        waveform="SIN", speed=16, multiplier=16, start_phase=0, mode="FRE", depth=63, fade=0,
    ),
    "Wobble Bass": LfoConfig.from_values(
        waveform="SIN", speed=16, multiplier=8, start_phase=32, mode="TRG", depth=48, fade=0,
    ),
    "Ambient Drift": LfoConfig.from_values(
        waveform="SIN", speed=1, multiplier=1, start_phase=0, mode="FRE", depth=24, fade=0,
    ),
    # Start phase doubles as slew for RND; 0 keeps the steps hard
    "Hi-Hat Humanizer": LfoConfig.from_values(
        waveform="RND", speed=32, multiplier=64, start_phase=0, mode="FRE", depth=12, fade=0,
    ),
    "Pumping Sidechain": LfoConfig.from_values(
        waveform="EXP", speed=32, multiplier=4, start_phase=0, mode="TRG", depth=-63, fade=0,
    ),
    "Fade-In One-Shot": LfoConfig.from_values(
        waveform="RMP", speed=8, multiplier=16, start_phase=0, mode="ONE", depth=63, fade=-32,
    ),
}


def get_preset(name: str) -> Optional[LfoConfig]:
    """Get a preset config by name, or None if there is no such preset."""
    return LFO_PRESETS.get(name)


def get_all_preset_names() -> List[str]:
    """Get list of all preset names in order."""
    return list(LFO_PRESETS.keys())


def next_preset_name(current: Optional[str], direction: int = 1) -> str:
    """Name of the preset after (or before) `current`; the first one if `current` is unknown."""
    names = get_all_preset_names()
    if current not in LFO_PRESETS:
        return names[0] if direction >= 0 else names[-1]
    return names[(names.index(current) + direction) % len(names)]
