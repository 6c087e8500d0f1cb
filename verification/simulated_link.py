"""ABOUTME: Offline stand-in for the device: a ControlLink running the LFO model on a virtual clock.
ABOUTME: Lets the harness do a deterministic dry run with no MIDI ports attached."""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from lfo.engine import LfoEngine
from midi import lfo_protocol
from midi.hardware_link import CCEvent, ControlLink, LinkError

logger = logging.getLogger(__name__)


class SimulatedLink(ControlLink):
    """
    Behaves like the device on the other end of a HardwareLink.

    Parameter CCs are decoded (with the device's quantisation) into a new
    engine; the trigger note fires `trigger()`; `sleep()` advances virtual
    time in ticks and sends the output CC whenever its value changes, the
    way the device only transmits on change.
    """

    def __init__(self, bpm: float = 120, tick_ms: float = 2.0,
                 param_channel: int = lfo_protocol.PARAM_CHANNEL,
                 trigger_channel: int = lfo_protocol.TRIGGER_CHANNEL,
                 output_channel: int = lfo_protocol.OUTPUT_CHANNEL,
                 output_cc: int = lfo_protocol.OUTPUT_CC,
                 seed: int = 0):
        super().__init__()
        self.bpm = bpm
        self.tick_ms = tick_ms
        self.param_channel = param_channel
        self.trigger_channel = trigger_channel
        self.output_channel = output_channel
        self.output_cc = output_cc
        self.seed = seed

        self.sent: List[Tuple[str, int, int, int]] = []   # (kind, channel, data1, data2)
        self.engine: Optional[LfoEngine] = None
        self._params: Dict[int, int] = {}
        self._now = 0.0
        self._last_value: Optional[int] = None
        self._open = True

    def is_open(self) -> bool:
        return self._open

    def close(self):
        self._open = False
        super().close()

    def now_ms(self) -> float:
        return self._now

    async def sleep(self, ms: float):
        target = self._now + max(0.0, ms)
        while self._now < target:
            self._now = min(target, self._now + self.tick_ms)
            if self.engine is not None:
                self.engine.update(self._now)
                self._send_output()
        # Let other tasks (UI, cancel) run between virtual steps
        await asyncio.sleep(0)

    def _require_open(self):
        if not self._open:
            raise LinkError("Simulated link is closed")

    def send_cc(self, channel: int, control: int, value: int):
        self._require_open()
        self.sent.append(("cc", channel, control, value))
        if channel != self.param_channel:
            return
        self._params[control] = value
        config = lfo_protocol.decode_config(self._params)
        self.engine = LfoEngine(config, self.bpm, self.seed)
        self.engine.update(self._now)

    def send_note_on(self, channel: int, note: int, velocity: int):
        self._require_open()
        self.sent.append(("note_on", channel, note, velocity))
        if channel == self.trigger_channel and velocity > 0 and self.engine is not None:
            self.engine.trigger(self._now)
            self._send_output()

    def send_note_off(self, channel: int, note: int):
        self._require_open()
        self.sent.append(("note_off", channel, note, 0))

    def _send_output(self):
        value = lfo_protocol.output_to_cc(self.engine.sample.output)
        if value == self._last_value:
            return
        self._last_value = value
        self._dispatch(CCEvent(self.output_channel, self.output_cc, value, self._now))
