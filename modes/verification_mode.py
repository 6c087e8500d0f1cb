"""Hardware verification mode: runs test suites against the device (or the offline model)."""
import logging
from typing import List, Optional

from rich.text import Text
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Label, RichLog

from components.header_widget import HeaderWidget
from midi.hardware_link import ControlLink, HardwareLink
from verification.benchmark import run_benchmarks
from verification.harness import VerificationHarness
from verification.report import LogEntry
from verification.simulated_link import SimulatedLink
from verification.suites import TEST_SUITES, SUITE_TITLES

logger = logging.getLogger(__name__)

LOG_STYLES = {
    "info": "",
    "success": "#00ff87",
    "error": "bold #ff5f5f",
    "data": "#888888",
}


class VerificationMode(Vertical):
    """Pick a suite, run it, watch the log stream."""

    DEFAULT_CSS = """
    VerificationMode:focus {
        border: heavy $accent;
    }
    VerificationMode {
        padding: 1;
    }
    #suite-label {
        width: 100%;
        text-align: center;
        margin-bottom: 1;
    }
    #verification-log {
        height: 1fr;
        border: solid #ffd700;
    }
    """

    BINDINGS = [
        Binding("left", "previous_suite", "Suite -", show=False),
        Binding("right", "next_suite", "Suite +", show=False),
        Binding("r", "run_suite", "Run", show=False),
        Binding("h", "toggle_target", "Hardware/Dry run", show=False),
        Binding("x", "cancel_run", "Cancel", show=False),
        Binding("b", "run_benchmarks", "Benchmarks", show=False),
        Binding("l", "clear_log", "Clear", show=False),
    ]

    can_focus = True

    def __init__(self, config_manager=None, device_manager=None):
        super().__init__()
        self.config_manager = config_manager
        self.device_manager = device_manager
        self.suite_names: List[str] = list(TEST_SUITES) + ["all"]
        self.suite_index = 0
        self.use_hardware = bool(device_manager and device_manager.has_link())
        self.harness: Optional[VerificationHarness] = None
        self._link: Optional[ControlLink] = None

    def compose(self):
        yield HeaderWidget(
            title="V E R I F Y",
            subtitle="←→: suite | R: run | H: hardware/dry run | X: cancel | B: benchmarks",
        )
        yield Label(self._suite_text(), id="suite-label")
        yield RichLog(id="verification-log", wrap=False, markup=False)

    def on_mount(self):
        self.focus()

    def on_unmount(self):
        if self.harness:
            self.harness.cancel()
        self._close_link()

    def _suite_text(self) -> str:
        name = self.suite_names[self.suite_index]
        title = SUITE_TITLES.get(name, "ALL SUITES")
        count = sum(len(s) for s in TEST_SUITES.values()) if name == "all" else len(TEST_SUITES[name])
        target = "hardware" if self.use_hardware else "dry run (model)"
        return f"Suite: {title} ({count} tests) | Target: {target}"

    def _refresh_label(self):
        self.query_one("#suite-label", Label).update(self._suite_text())

    def _write(self, entry: LogEntry):
        self.query_one("#verification-log", RichLog).write(Text(entry.message, style=LOG_STYLES.get(entry.kind, "")))

    # ── Link ─────────────────────────────────────────────────────

    def _open_link(self) -> Optional[ControlLink]:
        bpm = self.config_manager.get_bpm() if self.config_manager else 120
        if not self.use_hardware:
            return SimulatedLink(bpm=bpm)

        link = HardwareLink()
        if not link.open(self.device_manager.selected_output, self.device_manager.selected_input):
            self._write(LogEntry(link.last_error or "Could not open MIDI ports", "error"))
            return None
        return link

    def _close_link(self):
        if self._link is not None:
            self._link.close()
            self._link = None

    def _build_harness(self, link: ControlLink) -> VerificationHarness:
        cm = self.config_manager
        if cm is None:
            return VerificationHarness(link)
        return VerificationHarness(
            link,
            bpm=cm.get_bpm(),
            settle_ms=cm.get_settle_ms(),
            param_channel=cm.get_param_channel(),
            trigger_channel=cm.get_trigger_channel(),
            output_channel=cm.get_output_channel(),
            output_cc=cm.get_output_cc(),
        )

    # ── Actions ──────────────────────────────────────────────────

    def action_previous_suite(self):
        self.suite_index = (self.suite_index - 1) % len(self.suite_names)
        self._refresh_label()

    def action_next_suite(self):
        self.suite_index = (self.suite_index + 1) % len(self.suite_names)
        self._refresh_label()

    def action_toggle_target(self):
        if self.harness and self.harness.is_running:
            return
        if not self.use_hardware and not (self.device_manager and self.device_manager.has_link()):
            self.app.notify("Select MIDI output and input ports first (press C)")
            return
        self.use_hardware = not self.use_hardware
        self._refresh_label()

    def action_clear_log(self):
        self.query_one("#verification-log", RichLog).clear()

    def action_cancel_run(self):
        if self.harness and self.harness.is_running:
            self.harness.cancel()

    def action_run_suite(self):
        if self.harness and self.harness.is_running:
            self.app.notify("A run is already in progress")
            return
        self.run_worker(self._run_selected(), exclusive=True, group="verification")

    async def _run_selected(self):
        self._close_link()
        self._link = self._open_link()
        if self._link is None:
            return

        self.harness = self._build_harness(self._link)
        remove_listener = self.harness.add_log_listener(self._write)
        name = self.suite_names[self.suite_index]
        try:
            if name == "all":
                reports = await self.harness.run_all()
            else:
                reports = [await self.harness.run_suite(name)]
        finally:
            remove_listener()
            self._close_link()

        total = sum(len(r.results) for r in reports)
        passed = sum(r.passed_count for r in reports)
        logger.info("Verification finished: %d/%d passed", passed, total)
        self.app.notify(f"Verification: {passed}/{total} passed")

    def action_run_benchmarks(self):
        self.run_worker(self._benchmarks, thread=True, group="benchmarks")

    def _benchmarks(self):
        self.app.call_from_thread(self._write, LogEntry("Running benchmarks..."))
        for result in run_benchmarks():
            kind = "success" if result.passed else "error"
            self.app.call_from_thread(self._write, LogEntry(result.describe(), kind))
