"""LFO monitor: runs the engine at display rate and shows waveform, phase and timing."""
import time
from typing import List

from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Label, Static

from components.header_widget import HeaderWidget
from components.waveform_widget import WaveformDisplay
from lfo.engine import Sample
from lfo.host import LfoHost
from lfo.params import LfoConfig, MODE_ORDER, MULTIPLIERS
from lfo.presets import get_preset, next_preset_name
from lfo.slowdown import SlowMotionPhase, get_slowdown_info
from lfo.timing import MAX_BPM, MIN_BPM
from lfo.waveforms import WAVEFORM_ORDER

FRAME_INTERVAL = 1 / 60


class MonitorMode(Vertical):
    """Live view of one LFO. Every parameter edit rebuilds the engine."""

    DEFAULT_CSS = """
    MonitorMode:focus {
        border: heavy $accent;
    }
    MonitorMode {
        align: center middle;
        padding: 1;
    }
    #param-row {
        width: 100%;
        text-align: center;
        margin-top: 1;
    }
    #timing-label {
        width: 100%;
        text-align: center;
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("left", "previous_param", "Param -", show=False),
        Binding("right", "next_param", "Param +", show=False),
        Binding("up", "increase_param", "Value +", show=False),
        Binding("down", "decrease_param", "Value -", show=False),
        Binding("t", "trigger", "Trigger", show=False),
        Binding("space", "toggle_running", "Start/Stop", show=False),
        Binding("]", "increase_tempo", "Tempo +", show=False),
        Binding("[", "decrease_tempo", "Tempo -", show=False),
        Binding("p", "next_preset", "Preset", show=False),
    ]

    PARAMS: List[str] = ["waveform", "speed", "multiplier", "depth", "fade", "start_phase", "mode"]
    PARAM_LABELS = {
        "waveform": "WAVE", "speed": "SPD", "multiplier": "MULT", "depth": "DEP",
        "fade": "FADE", "start_phase": "SPH", "mode": "MODE",
    }

    can_focus = True

    def __init__(self, config_manager=None):
        super().__init__()
        self.config_manager = config_manager
        config = config_manager.get_last_lfo() if config_manager else LfoConfig()
        bpm = config_manager.get_bpm() if config_manager else 120
        self.host = LfoHost(config, bpm)
        self.selected_param = 0
        self.preset_name = None
        self.slow_motion = SlowMotionPhase()
        self.timer = None
        self._unsubscribe = None

    def compose(self):
        yield HeaderWidget(title="L F O   M O N I T O R", subtitle="T: trigger | SPACE: start/stop")
        yield WaveformDisplay(self.host.config.get(), id="waveform-display")
        yield Static(self._param_row(), id="param-row")
        yield Label(self._timing_text(), id="timing-label")

    def on_mount(self):
        self.focus()
        self._unsubscribe = self.host.sample.subscribe(self._on_sample)
        self.timer = self.set_interval(FRAME_INTERVAL, self._tick)

    def on_unmount(self):
        if self.timer:
            self.timer.stop()
        if self._unsubscribe:
            self._unsubscribe()

    def _tick(self):
        self.host.tick(time.monotonic() * 1000.0)

    def _on_sample(self, sample: Sample):
        display_phase = self.slow_motion.update(sample.phase)
        self.query_one("#waveform-display", WaveformDisplay).update_position(display_phase, sample.output)

    # ── Text ─────────────────────────────────────────────────────

    def _param_row(self) -> str:
        config = self.host.config.get()
        values = {
            "waveform": config.waveform.value,
            "speed": f"{config.speed:+.2f}",
            "multiplier": str(config.multiplier),
            "depth": f"{config.depth:+d}",
            "fade": f"{config.fade:+d}",
            "start_phase": str(config.start_phase),
            "mode": config.mode.value,
        }
        parts = []
        for index, name in enumerate(self.PARAMS):
            text = f"{self.PARAM_LABELS[name]} {values[name]}"
            parts.append(f"[reverse]{text}[/]" if index == self.selected_param else text)
        return "   ".join(parts)

    def _timing_text(self) -> str:
        timing = self.host.timing.get()
        info = get_slowdown_info(timing.cycle_ms, self.slow_motion.factor)
        self.slow_motion.set_factor(info.factor)

        if timing.is_frozen:
            cycle = timing.note_label
        else:
            cycle = f"{timing.cycle_ms:.0f} ms | {timing.note_label} | {timing.steps:g} steps | {info.frequency_hz:.2f} Hz"
        state = "running" if self.host.is_running() else "stopped"
        slowed = f" | shown {info.factor}x slower" if info.is_slowed else ""
        return f"{self.host.bpm} BPM | {cycle} | {state}{slowed}"

    def _refresh_labels(self):
        self.query_one("#param-row", Static).update(self._param_row())
        self.query_one("#timing-label", Label).update(self._timing_text())

    # ── Editing ──────────────────────────────────────────────────

    def _step_value(self, name: str, config: LfoConfig, direction: int):
        if name == "waveform":
            index = WAVEFORM_ORDER.index(config.waveform)
            return WAVEFORM_ORDER[(index + direction) % len(WAVEFORM_ORDER)]
        if name == "mode":
            index = MODE_ORDER.index(config.mode)
            return MODE_ORDER[(index + direction) % len(MODE_ORDER)]
        if name == "multiplier":
            index = MULTIPLIERS.index(config.multiplier)
            return MULTIPLIERS[max(0, min(len(MULTIPLIERS) - 1, index + direction))]
        return getattr(config, name) + direction

    def _apply(self, config: LfoConfig):
        self.host.apply_config(config)
        self.slow_motion.reset()
        self.query_one("#waveform-display", WaveformDisplay).set_config(config)
        if self.config_manager:
            self.config_manager.set_last_lfo(config)
        self._refresh_labels()

    def _adjust(self, direction: int):
        name = self.PARAMS[self.selected_param]
        config = self.host.config.get()
        self._apply(config.with_changes(**{name: self._step_value(name, config, direction)}))

    def action_previous_param(self):
        self.selected_param = (self.selected_param - 1) % len(self.PARAMS)
        self._refresh_labels()

    def action_next_param(self):
        self.selected_param = (self.selected_param + 1) % len(self.PARAMS)
        self._refresh_labels()

    def action_increase_param(self):
        self._adjust(1)

    def action_decrease_param(self):
        self._adjust(-1)

    def action_trigger(self):
        self.host.trigger(time.monotonic() * 1000.0)
        self.slow_motion.reset()
        self._refresh_labels()

    def action_toggle_running(self):
        # A finished ONE/HLF run is frozen, not stopped
        if self.host.engine.state.running:
            self.host.stop()
        else:
            self.host.start()
        self._refresh_labels()

    def _set_tempo(self, bpm: int):
        self.host.set_bpm(max(MIN_BPM, min(MAX_BPM, bpm)))
        if self.config_manager:
            self.config_manager.set_bpm(self.host.bpm)
        self.slow_motion.reset()
        self._refresh_labels()

    def action_increase_tempo(self):
        self._set_tempo(self.host.bpm + 1)

    def action_decrease_tempo(self):
        self._set_tempo(self.host.bpm - 1)

    def action_next_preset(self):
        self.preset_name = next_preset_name(self.preset_name)
        self._apply(get_preset(self.preset_name))
        self.app.notify(f"Preset: {self.preset_name}")
