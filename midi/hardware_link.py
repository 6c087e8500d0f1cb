"""ABOUTME: Control-data link to the device: parameter CCs and triggers out, LFO output CCs in.
ABOUTME: Incoming CCs are timestamped on arrival and fanned out to registered listeners."""

import asyncio
import logging
import time
from threading import Lock
from typing import Callable, List, NamedTuple, Optional

import mido

from midi import lfo_protocol

logger = logging.getLogger(__name__)


class LinkError(Exception):
    """The link is closed or a port failed mid-run."""


class CCEvent(NamedTuple):
    channel: int
    control: int
    value: int
    timestamp: float    # ms on the link's clock


CCListener = Callable[[CCEvent], None]


class ControlLink:
    """
    Interface the verification harness talks to.

    `now_ms()` and `sleep()` share one clock, the same one that stamps
    incoming CC events, so capture times never mix two time bases.
    """

    def __init__(self):
        self._listeners: List[CCListener] = []
        self._listeners_lock = Lock()

    def send_cc(self, channel: int, control: int, value: int):
        raise NotImplementedError

    def send_note_on(self, channel: int, note: int, velocity: int):
        raise NotImplementedError

    def send_note_off(self, channel: int, note: int):
        raise NotImplementedError

    def now_ms(self) -> float:
        raise NotImplementedError

    async def sleep(self, ms: float):
        raise NotImplementedError

    def is_open(self) -> bool:
        return True

    def close(self):
        with self._listeners_lock:
            self._listeners.clear()

    def add_cc_listener(self, listener: CCListener) -> Callable[[], None]:
        """
        Register a listener for every incoming CC.

        Returns:
            Function that removes the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def remove():
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    def _dispatch(self, event: CCEvent):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)


class HardwareLink(ControlLink):
    """Link over a real MIDI output/input port pair (mido)."""

    def __init__(self):
        super().__init__()
        self.output_port: Optional[mido.ports.BaseOutput] = None
        self.input_port: Optional[mido.ports.BaseInput] = None
        self.last_error: Optional[str] = None

    def open(self, output_name: str, input_name: str) -> bool:
        """Open both ports.

        Args:
            output_name: Port the device receives on.
            input_name: Port the device sends its LFO output on.

        Returns:
            True if both ports opened, False otherwise (see last_error).
        """
        self.close_ports()
        try:
            self.output_port = mido.open_output(output_name)
            self.input_port = mido.open_input(input_name, callback=self._on_message)
            self.last_error = None
            logger.info("Hardware link open: out=%s in=%s", output_name, input_name)
            return True
        except (OSError, IOError) as e:
            self.last_error = f"Error opening MIDI ports: {e}"
            logger.error(self.last_error)
            self.close_ports()
            return False

    def close_ports(self):
        for port in (self.input_port, self.output_port):
            if port is None:
                continue
            try:
                port.close()
            except OSError as e:
                logger.warning("Error closing MIDI port: %s", e)
        self.input_port = None
        self.output_port = None

    def close(self):
        self.close_ports()
        super().close()

    def is_open(self) -> bool:
        return self.output_port is not None and self.input_port is not None

    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    async def sleep(self, ms: float):
        await asyncio.sleep(max(0.0, ms) / 1000.0)

    def _send(self, message: mido.Message):
        if self.output_port is None:
            raise LinkError("MIDI output port is not open")
        try:
            self.output_port.send(message)
        except OSError as e:
            raise LinkError(f"MIDI send failed: {e}") from e

    def send_cc(self, channel: int, control: int, value: int):
        self._send(mido.Message('control_change', channel=channel, control=control, value=value))

    def send_note_on(self, channel: int, note: int, velocity: int):
        self._send(mido.Message('note_on', channel=channel, note=note, velocity=velocity))

    def send_note_off(self, channel: int, note: int):
        self._send(mido.Message('note_off', channel=channel, note=note, velocity=0))

    def _on_message(self, msg: mido.Message):
        """
        Runs on the MIDI backend's thread; stamp first, then dispatch.

        mido hands over no device timestamp, so the stamp is the host's
        monotonic clock when the callback runs. Backend queueing latency
        ends up in the captured timing.
        """
        timestamp = self.now_ms()
        if msg.type == 'control_change':
            self._dispatch(CCEvent(msg.channel, msg.control, msg.value, timestamp))


async def send_trigger(link: ControlLink, channel: int = lfo_protocol.TRIGGER_CHANNEL,
                       hold_ms: float = lfo_protocol.TRIGGER_HOLD_MS):
    """Note-on, short hold, note-off: one LFO trigger."""
    link.send_note_on(channel, lfo_protocol.TRIGGER_NOTE, lfo_protocol.TRIGGER_VELOCITY)
    await link.sleep(hold_ms)
    link.send_note_off(channel, lfo_protocol.TRIGGER_NOTE)
