#!/usr/bin/env python3
"""LFO Lab TUI Application - Main Entry Point."""
import logging
from typing import Optional

from textual.app import App
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from config_manager import ConfigManager
from logging_utils import setup_file_logger
from midi.device_manager import MIDIDeviceManager
from modes.config_mode import ConfigMode
from modes.main_menu_mode import MainMenuMode
from modes.monitor_mode import MonitorMode
from modes.verification_mode import VerificationMode

logger = logging.getLogger(__name__)


class MonitorHelpBar(Static):
    """ABOUTME: Help bar displaying Monitor keybinds - shown only in Monitor mode.
    ABOUTME: Displays keyboard shortcuts for parameter editing and transport on two lines."""

    def render(self) -> str:
        line1 = "←→: Parameter | ↑↓: Adjust | T: Trigger | SPACE: Start/Stop"
        line2 = r"\[/\]: Tempo - / + | P: Next preset"
        return f"{line1}\n{line2}"


class VerifyHelpBar(Static):
    """ABOUTME: Help bar displaying Verify keybinds - shown only in Verify mode.
    ABOUTME: Displays keyboard shortcuts for running suites and benchmarks."""

    def render(self) -> str:
        line1 = "←→: Suite | R: Run | X: Cancel | H: Hardware/Dry run"
        line2 = "B: Benchmarks | L: Clear log"
        return f"{line1}\n{line2}"


class MainScreen(Screen):
    """Main screen: header, swappable content area, footer."""

    CSS = """
    MainScreen {
        layout: vertical;
    }

    #content-area {
        height: 1fr;
        width: 100%;
        align: center middle;
    }

    #content-area > .mode-mounting {
        display: none;
    }

    #monitor-help-bar, #verification-help-bar {
        width: 100%;
        height: auto;
        text-align: center;
        color: $text-muted;
        padding: 0;
        margin: 0;
        border-top: solid $accent;
    }
    """

    BINDINGS = [
        Binding("0", "show_main_menu", "Menu", show=True),
        Binding("1", "show_monitor", "Monitor", show=True),
        Binding("2", "show_verification", "Verify", show=True),
        Binding("c", "show_config", "MIDI", show=True),
        Binding("backspace", "go_back", "Back", show=True),
        Binding("escape", "quit_app", "Quit", show=True),
    ]

    HELP_BARS = {
        "monitor": MonitorHelpBar,
        "verification": VerifyHelpBar,
    }

    def __init__(self, app_context):
        super().__init__()
        self.app_context = app_context
        self.mode_history = []
        self._help_bars: dict[str, Optional[Static]] = {name: None for name in self.HELP_BARS}
        self._show_functions = {
            "main_menu": self.action_show_main_menu,
            "monitor": self.action_show_monitor,
            "verification": self.action_show_verification,
        }

    def compose(self):
        yield Header()
        with Container(id="content-area"):
            pass
        yield Footer()

    def on_mount(self):
        self.action_show_main_menu(save_history=False)

    def _record_history(self):
        """Record current mode to history if it's different from the last entry."""
        current = self.app_context.get("current_mode")
        if current:
            if not self.mode_history or self.mode_history[-1] != current:
                self.mode_history.append(current)

    def action_go_back(self):
        """Go back to the previous mode."""
        if not self.mode_history:
            if self.app_context.get("current_mode") != "main_menu":
                self.action_show_main_menu(save_history=False)
            return
        previous_mode = self.mode_history.pop()
        self._show_functions.get(previous_mode, self.action_show_main_menu)(save_history=False)

    def _switch_mode(self, create_fn, mode_name: str):
        """Swap the content area to a freshly built mode widget."""
        content = self.query_one("#content-area")
        content.remove_children()
        mode_widget = create_fn()
        # Hide mode during mounting to prevent cascading widget render artifacts
        mode_widget.add_class("mode-mounting")
        content.mount(mode_widget)

        def show_mode():
            mode_widget.remove_class("mode-mounting")

        self.call_later(show_mode)

        if getattr(mode_widget, "can_focus", False):
            mode_widget.focus()

        if mode_name in self.HELP_BARS and self._help_bars[mode_name] is None:
            self._help_bars[mode_name] = self.HELP_BARS[mode_name](id=f"{mode_name}-help-bar")
            self.mount(self._help_bars[mode_name])

        for mode, help_bar in self._help_bars.items():
            if mode != mode_name and help_bar is not None:
                help_bar.remove()
                self._help_bars[mode] = None

        self.app_context["current_mode"] = mode_name

    def action_show_main_menu(self, save_history=True):
        if save_history:
            self._record_history()
        self._switch_mode(lambda: self.app_context["create_main_menu"](self), "main_menu")

    def action_show_monitor(self, save_history=True):
        if save_history:
            self._record_history()
        self._switch_mode(self.app_context["create_monitor"], "monitor")

    def action_show_verification(self, save_history=True):
        if save_history:
            self._record_history()
        self._switch_mode(self.app_context["create_verification"], "verification")

    def action_show_config(self):
        """Show the MIDI port screen, then return to the mode that was open."""
        self.app_context["mode_before_config"] = self.app_context["current_mode"]

        def on_closed(result):
            self.app.update_sub_title()
            previous_mode = self.app_context.get("mode_before_config", "main_menu")
            self._show_functions.get(previous_mode, self.action_show_main_menu)(save_history=False)

        self.app.push_screen(ConfigMode(self.app_context["device_manager"]), on_closed)

    def action_quit_app(self):
        self.app.exit()


class LfoLabApp(App):
    """LFO simulation and hardware verification TUI."""

    VERSION = "0.3.0"

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        super().__init__()
        self.title = f"LFO Lab v{self.VERSION}"
        self.config_manager = config_manager or ConfigManager()
        self.device_manager = MIDIDeviceManager(self.config_manager)

        self.app_context = {
            "device_manager": self.device_manager,
            "config_manager": self.config_manager,
            "create_main_menu": self._create_main_menu_mode,
            "create_monitor": self._create_monitor_mode,
            "create_verification": self._create_verification_mode,
            "current_mode": "main_menu",
            "mode_before_config": "main_menu",
        }

    def on_mount(self):
        self.push_screen(MainScreen(self.app_context))
        self.update_sub_title()

    def update_sub_title(self):
        """Update sub title with the MIDI link state."""
        dm = self.device_manager
        if dm.has_link():
            self.sub_title = f"🎛 Out: {dm.selected_output} | In: {dm.selected_input}"
        else:
            self.sub_title = "⚠ No MIDI link (press C to configure) - verification runs against the model"

    def _create_main_menu_mode(self, main_screen):
        return MainMenuMode(main_screen)

    def _create_monitor_mode(self):
        return MonitorMode(self.config_manager)

    def _create_verification_mode(self):
        return VerificationMode(self.config_manager, self.device_manager)


def main():
    """Main entry point."""
    log_file = setup_file_logger()
    logger.info("Starting LFO Lab, logging to %s", log_file)
    app = LfoLabApp()
    app.run()


if __name__ == "__main__":
    main()
