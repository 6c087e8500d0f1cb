"""ABOUTME: Owns the single live LfoEngine and publishes its output to any number of consumers.
ABOUTME: Reconfiguration swaps in a fresh engine; consumers only see read-only shared values."""

import logging
from typing import Callable, Generic, List, Optional, TypeVar

from lfo.engine import LfoEngine, Sample
from lfo.params import LfoConfig
from lfo.timing import TimingInfo, clamp_bpm

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ValueView(Generic[T]):
    """Read side of a SharedValue: `get()` and `subscribe()`, no `set()`."""

    def __init__(self, source: "SharedValue[T]"):
        self._source = source

    def get(self) -> T:
        return self._source.get()

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        return self._source.subscribe(callback)


class SharedValue(Generic[T]):
    """
    Observable cell with a single writer.

    The owner keeps the SharedValue and hands readers `view()`, which can
    observe the value but not publish into it.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: List[Callable[[T], None]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T):
        self._value = value
        for callback in list(self._subscribers):
            callback(value)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """
        Register a callback fired on every set().

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def view(self) -> ValueView[T]:
        return ValueView(self)


class LfoHost:
    """
    Explicit owner of the live engine.

    The UI loop calls `tick(timestamp_ms)` once per frame. The renderer,
    the timing display and any output mapper read the `sample`, `timing`
    and `config` views. Changing parameters or tempo builds a new engine
    and replaces the reference in one assignment, so a tick never sees
    half a config.
    """

    def __init__(self, config: Optional[LfoConfig] = None, bpm: float = 120, seed: int = 0):
        self.seed = seed
        self._bpm = clamp_bpm(bpm)
        self._engine: Optional[LfoEngine] = None

        initial = config or LfoConfig()
        engine = LfoEngine(initial, self._bpm, seed)
        self._config: SharedValue[LfoConfig] = SharedValue(initial)
        self._timing: SharedValue[TimingInfo] = SharedValue(engine.timing)
        self._sample: SharedValue[Sample] = SharedValue(engine.sample)
        self.config: ValueView[LfoConfig] = self._config.view()
        self.timing: ValueView[TimingInfo] = self._timing.view()
        self.sample: ValueView[Sample] = self._sample.view()
        self._engine = engine

    @property
    def engine(self) -> LfoEngine:
        return self._engine

    @property
    def bpm(self) -> int:
        return self._bpm

    def apply_config(self, config: LfoConfig):
        """Replace the engine for a new parameter set (counts as a trigger)."""
        self._replace_engine(config, self._bpm)
        logger.debug("LFO reconfigured: %s", config.describe())

    def set_bpm(self, bpm: float):
        self._bpm = clamp_bpm(bpm)
        self._replace_engine(self._config.get(), self._bpm)

    def tick(self, timestamp_ms: float) -> Sample:
        """Advance the engine to `timestamp_ms` and publish the sample."""
        sample = self._engine.update(timestamp_ms)
        self._sample.set(sample)
        return sample

    def trigger(self, timestamp_ms: Optional[float] = None) -> Sample:
        """Fire a trigger, at `timestamp_ms` when the caller knows it."""
        sample = self._engine.trigger(timestamp_ms)
        self._sample.set(sample)
        return sample

    def start(self):
        self._engine.start()

    def stop(self):
        self._engine.stop()

    def is_running(self) -> bool:
        return self._engine.is_running()

    def _replace_engine(self, config: LfoConfig, bpm: int):
        was_running = self._engine is None or self._engine.state.running
        engine = LfoEngine(config, bpm, self.seed)
        if not was_running:
            engine.stop()
        self._engine = engine
        self._config.set(config)
        self._timing.set(engine.timing)
        self._sample.set(engine.sample)
