"""Waveform display widget: one LFO cycle with the live phase marker."""
from typing import List, Optional

from rich.align import Align
from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text
from textual.reactive import reactive
from textual.widget import Widget

from lfo.fade import depth_scale
from lfo.params import LfoConfig
from lfo.waveforms import waveform_curve


class WaveformDisplay(Widget):
    """Draws the configured waveform (depth applied) and where the LFO is on it."""

    DEFAULT_CSS = """
    WaveformDisplay {
        width: 100%;
        height: auto;
    }
    """

    phase: reactive[float] = reactive(0.0, init=False)
    output: reactive[float] = reactive(0.0, init=False)

    GRID_WIDTH = 64
    GRID_HEIGHT = 13

    def __init__(self, config: Optional[LfoConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self.config = config or LfoConfig()
        self._curve_rows: List[int] = []
        self._build_curve()

    def set_config(self, config: LfoConfig):
        self.config = config
        self._build_curve()
        self.refresh()

    def update_position(self, phase: float, output: float):
        self.phase = phase
        self.output = output

    def _value_to_row(self, value: float) -> int:
        normalized = (max(-1.0, min(1.0, value)) + 1.0) / 2.0
        return int(round((1.0 - normalized) * (self.GRID_HEIGHT - 1)))

    def _build_curve(self):
        points = waveform_curve(
            self.config.waveform,
            depth_scale(self.config.depth),
            self.config.start_phase,
            resolution=self.GRID_WIDTH - 1,
        )
        self._curve_rows = [self._value_to_row(value) for _, value in points]

    def render(self) -> RenderableType:
        """Render the curve, centre line, phase column and output dot."""
        marker_col = min(self.GRID_WIDTH - 1, int(self.phase * self.GRID_WIDTH))
        output_row = self._value_to_row(self.output)
        center_row = self._value_to_row(0.0)

        text = Text()
        for row in range(self.GRID_HEIGHT):
            for col in range(self.GRID_WIDTH):
                if col == marker_col and row == output_row:
                    text.append("●", style="bold #ff5f5f")
                elif self._curve_rows[col] == row:
                    text.append("•", style="#00d7ff")
                elif col == marker_col:
                    text.append("│", style="#444444")
                elif row == center_row:
                    text.append("─", style="#333333")
                else:
                    text.append(" ")
            if row < self.GRID_HEIGHT - 1:
                text.append("\n")

        title = f"{self.config.waveform.name}  phase {self.phase:0.3f}  out {self.output:+0.3f}"
        return Align.center(Panel(text, title=title, border_style="#ffd700", expand=False))
