"""MIDI port detection and selection."""
import logging
import os
import sys
from typing import Callable, List, Optional, TYPE_CHECKING

import mido

if TYPE_CHECKING:
    from config_manager import ConfigManager

logger = logging.getLogger(__name__)


class MIDIDeviceManager:
    """Manages MIDI port enumeration and the selected output/input pair."""

    def __init__(self, config_manager: 'ConfigManager' = None):
        self.config_manager = config_manager
        self.selected_output: Optional[str] = None
        self.selected_input: Optional[str] = None
        self.last_error: Optional[str] = None

        # Restore saved ports if they are still connected
        if self.config_manager:
            saved_output = self.config_manager.get_selected_output()
            if saved_output and saved_output in self.get_output_devices():
                self.selected_output = saved_output
            saved_input = self.config_manager.get_selected_input()
            if saved_input and saved_input in self.get_input_devices():
                self.selected_input = saved_input

    def _list_ports(self, lister: Callable[[], List[str]]) -> List[str]:
        try:
            # Suppress ALSA error messages to stderr
            stderr_backup = sys.stderr
            with open(os.devnull, 'w') as devnull:
                sys.stderr = devnull
                try:
                    devices = lister()
                finally:
                    sys.stderr = stderr_backup

            self.last_error = None
            return devices
        except (OSError, RuntimeError, ImportError) as e:
            error_msg = str(e).lower()
            if "no such file" in error_msg and "snd/seq" in error_msg:
                self.last_error = "ALSA sequencer not available. Run: sudo modprobe snd-seq"
            else:
                self.last_error = f"Error: {e}"
            logger.warning("MIDI port enumeration failed: %s", e)
            return []

    def get_output_devices(self) -> List[str]:
        """Get list of available MIDI output ports."""
        return self._list_ports(mido.get_output_names)

    def get_input_devices(self) -> List[str]:
        """Get list of available MIDI input ports."""
        return self._list_ports(mido.get_input_names)

    def select_output(self, device_name: str) -> bool:
        """Select the port parameter changes and triggers are sent to.

        Args:
            device_name: Name of the output port.

        Returns:
            True if the port exists and was selected.
        """
        if device_name in self.get_output_devices():
            self.selected_output = device_name
            if self.config_manager:
                self.config_manager.set_selected_output(device_name)
            return True
        return False

    def select_input(self, device_name: str) -> bool:
        """Select the port the LFO output CCs arrive on.

        Args:
            device_name: Name of the input port.

        Returns:
            True if the port exists and was selected.
        """
        if device_name in self.get_input_devices():
            self.selected_input = device_name
            if self.config_manager:
                self.config_manager.set_selected_input(device_name)
            return True
        return False

    def has_link(self) -> bool:
        """True when both an output and an input port are selected."""
        return self.selected_output is not None and self.selected_input is not None
