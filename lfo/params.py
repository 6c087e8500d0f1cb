"""ABOUTME: LFO parameter set (LfoConfig) and the trigger mode enum.
ABOUTME: from_values() is the clamping boundary: bad input is corrected, never rejected."""

import math
from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Dict, List, Union

from lfo.waveforms import Waveform, WAVEFORM_ORDER


class TriggerMode(Enum):
    """How the LFO reacts to note triggers, valued by the device's short codes."""
    FREE = "FRE"          # Runs continuously, ignores triggers
    TRIGGERED = "TRG"     # Every trigger restarts the cycle
    HOLD = "HLD"          # Every trigger latches the current output
    ONE_SHOT = "ONE"      # Trigger plays one cycle then freezes
    HALF = "HLF"          # Trigger plays half a cycle then freezes


# Order used by the device's mode parameter (CC value 0-4)
MODE_ORDER: List[TriggerMode] = [
    TriggerMode.FREE,
    TriggerMode.TRIGGERED,
    TriggerMode.HOLD,
    TriggerMode.ONE_SHOT,
    TriggerMode.HALF,
]

MULTIPLIERS: List[int] = [1, 2, 4, 8, 16, 32, 64, 128, 256, 512, 1024, 2048]

SPEED_MIN = -64.0
SPEED_MAX = 63.99
DEPTH_MIN = -64
DEPTH_MAX = 63
FADE_MIN = -64
FADE_MAX = 63
START_PHASE_MIN = 0
START_PHASE_MAX = 127


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _clamp_int(value: Any, low: int, high: int, default: int = 0) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(_clamp(round(number), low, high))


def snap_multiplier(value: Any) -> int:
    """Nearest allowed multiplier (ties resolve to the smaller one)."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return MULTIPLIERS[0]
    if not math.isfinite(number):
        return MULTIPLIERS[-1] if number > 0 else MULTIPLIERS[0]
    return min(MULTIPLIERS, key=lambda m: (abs(m - number), m))


def parse_waveform(value: Union[Waveform, str, int]) -> Waveform:
    """Accept a Waveform, its short code ('TRI'), its name ('TRIANGLE') or its index."""
    if isinstance(value, Waveform):
        return value
    if isinstance(value, int):
        return WAVEFORM_ORDER[int(_clamp(value, 0, len(WAVEFORM_ORDER) - 1))]
    text = str(value).strip().upper()
    for waveform in Waveform:
        if text in (waveform.value, waveform.name):
            return waveform
    return Waveform.TRIANGLE


def parse_mode(value: Union[TriggerMode, str, int]) -> TriggerMode:
    """Accept a TriggerMode, its short code ('TRG'), its name or its index."""
    if isinstance(value, TriggerMode):
        return value
    if isinstance(value, int):
        return MODE_ORDER[int(_clamp(value, 0, len(MODE_ORDER) - 1))]
    text = str(value).strip().upper().replace("-", "_")
    for mode in TriggerMode:
        if text in (mode.value, mode.name):
            return mode
    return TriggerMode.FREE


@dataclass(frozen=True)
class LfoConfig:
    """
    Immutable parameter set for one engine run.

    Construct through `from_values` when the input comes from a user or a
    file; the plain constructor trusts its arguments.
    """
    waveform: Waveform = Waveform.TRIANGLE
    speed: float = 16.0
    multiplier: int = 8
    depth: int = 63
    fade: int = 0
    start_phase: int = 0
    mode: TriggerMode = TriggerMode.FREE

    @classmethod
    def from_values(
        cls,
        waveform: Union[Waveform, str, int] = Waveform.TRIANGLE,
        speed: float = 16.0,
        multiplier: int = 8,
        depth: int = 63,
        fade: int = 0,
        start_phase: int = 0,
        mode: Union[TriggerMode, str, int] = TriggerMode.FREE,
    ) -> "LfoConfig":
        """Build a config, clamping and rounding every field into range."""
        try:
            speed_value = float(speed)
        except (TypeError, ValueError):
            speed_value = 0.0
        if not math.isfinite(speed_value):
            speed_value = 0.0
        speed_value = round(_clamp(speed_value, SPEED_MIN, SPEED_MAX), 2)

        return cls(
            waveform=parse_waveform(waveform),
            speed=speed_value,
            multiplier=snap_multiplier(multiplier),
            depth=_clamp_int(depth, DEPTH_MIN, DEPTH_MAX),
            fade=_clamp_int(fade, FADE_MIN, FADE_MAX),
            start_phase=_clamp_int(start_phase, START_PHASE_MIN, START_PHASE_MAX),
            mode=parse_mode(mode),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LfoConfig":
        """Rebuild a config from `to_dict` output (unknown keys are ignored)."""
        defaults = cls()
        return cls.from_values(
            waveform=data.get("waveform", defaults.waveform),
            speed=data.get("speed", defaults.speed),
            multiplier=data.get("multiplier", defaults.multiplier),
            depth=data.get("depth", defaults.depth),
            fade=data.get("fade", defaults.fade),
            start_phase=data.get("start_phase", defaults.start_phase),
            mode=data.get("mode", defaults.mode),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["waveform"] = self.waveform.value
        data["mode"] = self.mode.value
        return data

    def with_changes(self, **changes) -> "LfoConfig":
        """Copy with some fields changed, re-clamped through from_values."""
        merged = replace(self, **changes)
        return LfoConfig.from_values(**{
            "waveform": merged.waveform,
            "speed": merged.speed,
            "multiplier": merged.multiplier,
            "depth": merged.depth,
            "fade": merged.fade,
            "start_phase": merged.start_phase,
            "mode": merged.mode,
        })

    @property
    def product(self) -> float:
        return abs(self.speed) * self.multiplier

    def describe(self) -> str:
        """One-line summary in the device's own abbreviations."""
        parts = [
            self.waveform.value,
            f"SPD={self.speed:g}",
            f"MULT={self.multiplier}",
            f"DEPTH={self.depth}",
            f"MODE={self.mode.value}",
        ]
        if self.fade:
            parts.append(f"FADE={self.fade}")
        if self.start_phase:
            parts.append(f"SPH={self.start_phase}")
        return " | ".join(parts)
