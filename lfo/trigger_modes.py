"""ABOUTME: Trigger state machine for the five LFO trigger modes.
ABOUTME: Maps each mode to its trigger handler and to the point where it freezes itself."""

from dataclasses import replace
from typing import Callable, Dict, Optional, TYPE_CHECKING

from lfo.params import TriggerMode

if TYPE_CHECKING:
    from lfo.engine import EngineState


class TriggerStateMachine:
    """
    Decides how an engine state reacts to a trigger and when it stops by itself.

    Triggers are the only external transition. The only internal ones are
    the self-freezes of ONE_SHOT (after one cycle) and HALF (after half a
    cycle), exposed through `run_limit`.
    """

    # Cycles of advance after a trigger before the mode freezes
    RUN_LIMITS: Dict[TriggerMode, float] = {
        TriggerMode.ONE_SHOT: 1.0,
        TriggerMode.HALF: 0.5,
    }

    def __init__(self, mode: TriggerMode):
        self.mode = mode
        self._trigger_functions: Dict[TriggerMode, Callable[["EngineState", float], "EngineState"]] = {
            TriggerMode.FREE: self._trigger_free,
            TriggerMode.TRIGGERED: self._trigger_restart,
            TriggerMode.HOLD: self._trigger_hold,
            TriggerMode.ONE_SHOT: self._trigger_restart,
            TriggerMode.HALF: self._trigger_restart,
        }

    @property
    def run_limit(self) -> Optional[float]:
        """Cycles after a trigger at which the LFO freezes, or None if it never does."""
        return self.RUN_LIMITS.get(self.mode)

    @property
    def holds_output(self) -> bool:
        return self.mode == TriggerMode.HOLD

    @property
    def ignores_triggers(self) -> bool:
        return self.mode == TriggerMode.FREE

    def on_trigger(self, state: "EngineState", live_raw: float) -> "EngineState":
        """
        New state after a trigger.

        Args:
            state: State at the moment of the trigger
            live_raw: Waveform value at the current phase (latched by HOLD)

        Returns:
            Replacement state; the caller swaps it in with one assignment
        """
        return self._trigger_functions[self.mode](state, live_raw)

    def _trigger_free(self, state: "EngineState", live_raw: float) -> "EngineState":
        """FREE: triggers change nothing."""
        return state

    def _trigger_restart(self, state: "EngineState", live_raw: float) -> "EngineState":
        """TRIGGERED / ONE_SHOT / HALF: back to phase 0, unfrozen and running.

        The last timestamp is dropped so time before the trigger never
        counts toward the new cycle.
        """
        return replace(
            state,
            phase=0.0,
            last_update_timestamp=None,
            cycle_count=0,
            fade_start_cycle=state.total_cycles,
            frozen=False,
            running=True,
        )

    def _trigger_hold(self, state: "EngineState", live_raw: float) -> "EngineState":
        """HOLD: keep running underneath, latch what the waveform shows right now."""
        return replace(
            state,
            held_output=live_raw,
            cycle_count=0,
            fade_start_cycle=state.total_cycles,
        )
