"""MIDI port configuration screen."""
from typing import List, TYPE_CHECKING

from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ListItem, ListView

if TYPE_CHECKING:
    from midi.device_manager import MIDIDeviceManager


class ConfigMode(Screen):
    """Screen for choosing the output port (to the device) and input port (from it)."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=True),
        Binding("r", "refresh_devices", "Refresh", show=True),
        Binding("space", "select", "Select", show=True),
        Binding("tab", "switch_list", "Output/Input", show=True),
    ]

    CSS = """
    ConfigMode {
        align: center middle;
    }

    #config-container {
        width: 100;
        height: auto;
        border: thick #ffd700;
        background: #1a1a1a;
        padding: 1 2;
    }

    #title {
        width: 100%;
        content-align: center middle;
        text-style: bold;
        color: #ffd700;
        margin-bottom: 1;
    }

    .port-column {
        width: 1fr;
        height: auto;
    }

    .port-list {
        width: 100%;
        height: 12;
        border: solid #ffd700;
        margin: 1 0;
    }

    .port-list:focus {
        border: double #00ff87;
    }

    #instructions {
        width: 100%;
        content-align: center middle;
        color: #888888;
        text-style: italic;
        margin-top: 1;
    }

    #selected-ports {
        width: 100%;
        content-align: center middle;
        color: #00ff00;
        margin-top: 1;
    }
    """

    def __init__(self, device_manager: 'MIDIDeviceManager'):
        super().__init__()
        self.device_manager = device_manager
        self.outputs: List[str] = []
        self.inputs: List[str] = []

    def compose(self):
        yield Header()
        with Vertical(id="config-container"):
            yield Label("🎛 MIDI Link Configuration", id="title")
            with Horizontal():
                with Vertical(classes="port-column"):
                    yield Label("Output (parameters + trigger → device)")
                    yield ListView(id="output-list", classes="port-list")
                with Vertical(classes="port-column"):
                    yield Label("Input (LFO output CC ← device)")
                    yield ListView(id="input-list", classes="port-list")
            yield Label("", id="selected-ports")
            yield Label(
                "↑↓: Navigate | Tab: Output/Input | Space: Select | R: Refresh | Esc: Close",
                id="instructions"
            )
        yield Footer()

    def on_mount(self):
        self.refresh_device_lists()
        self.query_one("#output-list", ListView).focus()

    def _fill(self, list_view: ListView, devices: List[str], selected):
        list_view.clear()
        if not devices:
            if self.device_manager.last_error:
                list_view.append(ListItem(Label("❌ " + self.device_manager.last_error)))
            else:
                list_view.append(ListItem(Label("No MIDI ports found")))
            return
        for device in devices:
            mark = "☑" if device == selected else "☐"
            list_view.append(ListItem(Label(f"{mark} {device}")))
        list_view.index = 0

    def refresh_device_lists(self):
        """Re-enumerate ports and redraw both lists."""
        self.outputs = self.device_manager.get_output_devices()
        self.inputs = self.device_manager.get_input_devices()
        self._fill(self.query_one("#output-list", ListView), self.outputs, self.device_manager.selected_output)
        self._fill(self.query_one("#input-list", ListView), self.inputs, self.device_manager.selected_input)
        self.update_selected_display()

    def update_selected_display(self):
        output = self.device_manager.selected_output or "None"
        input_port = self.device_manager.selected_input or "None"
        self.query_one("#selected-ports", Label).update(f"Out: {output} | In: {input_port}")

    def action_refresh_devices(self):
        self.refresh_device_lists()
        self.app.notify("Port lists refreshed")

    def action_switch_list(self):
        output_list = self.query_one("#output-list", ListView)
        if output_list.has_focus:
            self.query_one("#input-list", ListView).focus()
        else:
            output_list.focus()

    def action_select(self):
        """Select the highlighted port of the focused list; close once both are set."""
        output_list = self.query_one("#output-list", ListView)
        input_list = self.query_one("#input-list", ListView)

        if output_list.has_focus:
            devices, index, select = self.outputs, output_list.index, self.device_manager.select_output
        else:
            devices, index, select = self.inputs, input_list.index, self.device_manager.select_input

        if index is None or not (0 <= index < len(devices)):
            return

        device = devices[index]
        if select(device):
            self.app.notify(f"✓ Selected: {device}")
        else:
            self.app.notify(f"✗ Failed to select: {device}")

        self.refresh_device_lists()
        if self.device_manager.has_link():
            self.dismiss()
        elif output_list.has_focus:
            input_list.focus()
