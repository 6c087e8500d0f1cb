"""ABOUTME: Landing screen of LFO Lab: mode buttons plus a status card.
ABOUTME: The card shows the MIDI link, the tempo and the LFO the monitor will open with."""

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Center, Horizontal, Vertical
from textual.widgets import Button, Static

from components.header_widget import HeaderWidget

MENU_BUTTONS = [
    ("Monitor", "monitor_button", "action_show_monitor"),
    ("Verify", "verify_button", "action_show_verification"),
    ("MIDI", "config_button", "action_show_config"),
]


class MainMenuMode(Vertical):
    """Mode picker."""

    DEFAULT_CSS = """
    MainMenuMode {
        align: center middle;
        width: 100%;
        height: 100%;
        border: heavy $accent;
        padding: 1;
    }

    #menu-buttons {
        width: auto;
        height: auto;
    }

    #menu-buttons Button {
        width: 20;
        height: 7;
        margin: 0 2;
        border: tall $primary;
    }

    #menu-buttons Button:focus {
        background: $accent;
        text-style: bold;
        border: tall $primary-lighten-3;
    }

    #menu-status {
        width: 70;
        height: auto;
        margin-top: 2;
        padding: 0 1;
        border: round $primary;
    }
    """

    def __init__(self, main_screen, **kwargs):
        super().__init__(**kwargs)
        self.main_screen = main_screen
        self._actions = {button_id: action for _, button_id, action in MENU_BUTTONS}

    def compose(self) -> ComposeResult:
        yield HeaderWidget(title="L F O   L A B", subtitle="Simulate the LFO, verify it against the device")

        with Center():
            with Horizontal(id="menu-buttons"):
                for label, button_id, _ in MENU_BUTTONS:
                    yield Button(label, id=button_id, variant="primary")
        with Center():
            yield Static(self._status_text(), id="menu-status")

    def _status_text(self) -> Text:
        context = self.main_screen.app_context
        device_manager = context["device_manager"]
        config_manager = context["config_manager"]

        text = Text()
        text.append("MIDI link  ", style="bold")
        if device_manager.has_link():
            text.append(f"{device_manager.selected_output} → {device_manager.selected_input}\n", style="green")
        else:
            text.append("not configured (dry runs only)\n", style="yellow")
        text.append("Tempo      ", style="bold")
        text.append(f"{config_manager.get_bpm()} BPM\n")
        text.append("Last LFO   ", style="bold")
        text.append(config_manager.get_last_lfo().describe())
        return text

    def on_mount(self) -> None:
        self.query_one("#monitor_button").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        action = self._actions.get(event.button.id)
        if action:
            getattr(self.main_screen, action)()

    def on_key(self, event: events.Key) -> None:
        if event.key == "left":
            self.app.action_focus_previous()
        elif event.key == "right":
            self.app.action_focus_next()
