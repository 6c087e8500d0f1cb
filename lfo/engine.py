"""ABOUTME: Phase engine of the LFO: advances phase over wall-clock time and renders samples.
ABOUTME: Combines timing, waveform sampling, trigger modes, depth and fade for one config."""

import math
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

from lfo.fade import depth_scale, fade_envelope, is_fade_active
from lfo.params import LfoConfig, TriggerMode
from lfo.random_step import sample_random_with_slew
from lfo.timing import TimingInfo, calculate_timing, clamp_bpm
from lfo.trigger_modes import TriggerStateMachine
from lfo.waveforms import Waveform, sample_waveform


@dataclass(frozen=True)
class EngineState:
    """
    Snapshot of a running engine.

    Frozen so a trigger or update replaces it in one assignment; a reader
    never sees phase reset without cycle_count and fade_start_cycle.
    """
    phase: float = 0.0                              # [0, 1), un-shifted by start phase
    last_update_timestamp: Optional[float] = None   # None until the first update
    cycle_count: int = 0                            # whole cycles since the last trigger
    running: bool = True
    frozen: bool = False                            # ONE_SHOT / HALF finished their run
    held_output: Optional[float] = None             # HOLD latch (raw waveform value)
    fade_start_cycle: float = 0.0                   # total_cycles at the last trigger
    total_cycles: float = 0.0                       # absolute cycles advanced since creation

    @property
    def cycles_since_trigger(self) -> float:
        return self.total_cycles - self.fade_start_cycle


class Sample(NamedTuple):
    """What one update hands to consumers."""
    phase: float           # [0, 1)
    output: float          # after depth and fade
    raw: float             # waveform value before depth and fade
    fade_envelope: float   # 0-1
    cycle_count: int


def wrap_phase(phase: float) -> float:
    """Wrap into [0, 1); float modulo can land exactly on 1.0 for tiny negatives."""
    if not math.isfinite(phase):
        return 0.0
    wrapped = phase % 1.0
    if wrapped >= 1.0:
        return 0.0
    return wrapped


class LfoEngine:
    """
    One LFO for one configuration.

    Driven from outside by `update(timestamp_ms)`, typically once per
    display frame; it never reads a clock itself. A changed configuration
    means a new engine, never a mutated one.
    """

    def __init__(self, config: LfoConfig, bpm: float = 120, seed: int = 0):
        """
        Initialize the engine. Construction counts as a trigger: phase 0,
        counters cleared.

        Args:
            config: Parameter set for this run
            bpm: Tempo (clamped to 20-300)
            seed: Base seed for the RANDOM waveform
        """
        self.config = config
        self.bpm = clamp_bpm(bpm)
        self.seed = seed
        self.timing: TimingInfo = calculate_timing(config.speed, config.multiplier, self.bpm)
        self._modes = TriggerStateMachine(config.mode)
        self._direction = -1.0 if config.speed < 0 else 1.0
        self._depth_scale = depth_scale(config.depth)
        self._fade_active = is_fade_active(config.fade, config.mode)
        self._start_offset = config.start_phase / 128.0
        self._state = EngineState()
        self._sample = self._render(self._state)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def sample(self) -> Sample:
        """Sample produced by the latest update (or trigger)."""
        return self._sample

    @property
    def phase(self) -> float:
        return self._state.phase

    @property
    def cycle_ms(self) -> float:
        return self.timing.cycle_ms

    def is_running(self) -> bool:
        """True while the engine actually advances."""
        return self._state.running and not self._state.frozen and not self.timing.is_frozen

    def start(self):
        """Resume advancing. Time spent stopped is not caught up."""
        self._state = replace(self._state, running=True)

    def stop(self):
        """Pause advancing; phase and counters stay where they are."""
        self._state = replace(self._state, running=False)

    def trigger(self, timestamp_ms: Optional[float] = None) -> Sample:
        """
        Apply a note trigger according to the trigger mode.

        With `timestamp_ms` the engine first advances to the trigger time,
        so the new cycle starts exactly there. Without it, a restarting
        mode drops the last timestamp and the next update adds no time.
        """
        if timestamp_ms is not None:
            self.update(timestamp_ms)
        live_raw = self._sample_raw(self._state.phase, self._state.cycle_count)
        state = self._modes.on_trigger(self._state, live_raw)
        if timestamp_ms is not None:
            state = replace(state, last_update_timestamp=timestamp_ms)
        self._state = state
        self._sample = self._render(state)
        return self._sample

    def update(self, timestamp_ms: float) -> Sample:
        """
        Advance to `timestamp_ms` and return the new sample.

        The first call only records the timestamp. Timestamps going
        backwards are treated as no time passing.
        """
        state = self._state
        if state.last_update_timestamp is None:
            delta_ms = 0.0
        else:
            delta_ms = max(0.0, timestamp_ms - state.last_update_timestamp)

        advance = 0.0
        if delta_ms > 0 and state.running and not state.frozen and not self.timing.is_frozen:
            advance = delta_ms / self.timing.cycle_ms

        state = self._advance(state, advance)
        state = replace(state, last_update_timestamp=timestamp_ms)

        if self._modes.holds_output and state.held_output is None:
            state = replace(state, held_output=self._sample_raw(state.phase, state.cycle_count))

        self._state = state
        self._sample = self._render(state)
        return self._sample

    def _advance(self, state: EngineState, advance: float) -> EngineState:
        if advance <= 0:
            return state

        frozen = False
        limit = self._modes.run_limit
        elapsed = state.cycles_since_trigger
        if limit is not None and elapsed + advance >= limit:
            advance = max(0.0, limit - elapsed)
            frozen = True

        total_cycles = state.total_cycles + advance
        if frozen:
            # Runs start at phase 0, so the stop point is exact
            phase = wrap_phase(self._direction * limit)
            total_cycles = state.fade_start_cycle + limit
        else:
            phase = wrap_phase(state.phase + self._direction * advance)

        completed = int(math.floor(total_cycles - state.fade_start_cycle + 1e-9))
        return replace(
            state,
            phase=phase,
            total_cycles=total_cycles,
            cycle_count=max(state.cycle_count, completed),
            frozen=frozen,
        )

    def _sample_raw(self, phase: float, cycle_count: int) -> float:
        if self.config.waveform == Waveform.RANDOM:
            # Start phase is the slew amount for RANDOM
            return sample_random_with_slew(phase, self.config.start_phase, self.seed + cycle_count)
        return sample_waveform(self.config.waveform, wrap_phase(phase + self._start_offset))

    def _render(self, state: EngineState) -> Sample:
        if self._modes.holds_output and state.held_output is not None:
            raw = state.held_output
        else:
            raw = self._sample_raw(state.phase, state.cycle_count)

        envelope = 1.0
        if self._fade_active:
            envelope = fade_envelope(self.config.fade, state.cycles_since_trigger)

        output = raw * self._depth_scale * envelope
        return Sample(state.phase, output, raw, envelope, state.cycle_count)


def simulate(config: LfoConfig, timestamps, bpm: float = 120, trigger_times=(0.0,), seed: int = 0):
    """
    Run a fresh engine over sorted timestamps, firing triggers on the way.

    Args:
        config: Parameter set
        timestamps: Ascending timestamps in ms (relative to the first trigger)
        bpm: Tempo
        trigger_times: Ascending times at which a trigger fires
        seed: RANDOM base seed

    Returns:
        List of Sample, one per timestamp
    """
    engine = LfoEngine(config, bpm, seed)
    pending = sorted(trigger_times)
    samples = []
    for timestamp in timestamps:
        while pending and pending[0] <= timestamp:
            engine.trigger(pending.pop(0))
        samples.append(engine.update(timestamp))
    return samples
