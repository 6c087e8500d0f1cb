"""Configuration file management."""
import json
import logging
from pathlib import Path
from typing import Optional, Union

from lfo.params import LfoConfig
from lfo.timing import clamp_bpm
from midi import lfo_protocol

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages application settings (ports, tempo, channels, last monitored LFO)."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        self.config_file = Path(config_file) if config_file else Path(__file__).parent / "config.json"
        self.config = self._load_config()

    def _load_config(self) -> dict:
        """Load configuration from file, falling back to defaults."""
        config = self._default_config()
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    stored = json.load(f)
                if isinstance(stored, dict):
                    config.update(stored)
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
        return config

    def _default_config(self) -> dict:
        """Return default configuration."""
        return {
            "selected_output_device": None,
            "selected_input_device": None,
            "bpm": 120,
            "param_channel": lfo_protocol.PARAM_CHANNEL,
            "trigger_channel": lfo_protocol.TRIGGER_CHANNEL,
            "output_channel": lfo_protocol.OUTPUT_CHANNEL,
            "output_cc": lfo_protocol.OUTPUT_CC,
            "settle_ms": 500,
            "last_lfo": None,
        }

    def save_config(self):
        """Save configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.error("Error saving config: %s", e)

    # ── MIDI ports ───────────────────────────────────────────────

    def get_selected_output(self) -> Optional[str]:
        return self.config.get("selected_output_device")

    def set_selected_output(self, device_name: Optional[str]):
        self.config["selected_output_device"] = device_name
        self.save_config()

    def get_selected_input(self) -> Optional[str]:
        return self.config.get("selected_input_device")

    def set_selected_input(self, device_name: Optional[str]):
        self.config["selected_input_device"] = device_name
        self.save_config()

    # ── Tempo ────────────────────────────────────────────────────

    def get_bpm(self) -> int:
        """Return the tempo (default 120)."""
        try:
            return clamp_bpm(float(self.config.get("bpm", 120)))
        except (TypeError, ValueError):
            return 120

    def set_bpm(self, bpm: float):
        """Persist the tempo. Rounded and clamped to [20, 300]."""
        self.config["bpm"] = clamp_bpm(bpm)
        self.save_config()

    # ── Channels and timing of the hardware link ─────────────────

    def _get_int(self, key: str, low: int, high: int) -> int:
        default = self._default_config()[key]
        try:
            return max(low, min(high, int(self.config.get(key, default))))
        except (TypeError, ValueError):
            return default

    def get_param_channel(self) -> int:
        return self._get_int("param_channel", 0, 15)

    def get_trigger_channel(self) -> int:
        return self._get_int("trigger_channel", 0, 15)

    def get_output_channel(self) -> int:
        return self._get_int("output_channel", 0, 15)

    def get_output_cc(self) -> int:
        return self._get_int("output_cc", 0, 127)

    def get_settle_ms(self) -> int:
        return self._get_int("settle_ms", 0, 10000)

    # ── Last monitored LFO ───────────────────────────────────────

    def get_last_lfo(self) -> LfoConfig:
        """Return the last LFO shown in the monitor, or the default config."""
        data = self.config.get("last_lfo")
        if isinstance(data, dict):
            return LfoConfig.from_dict(data)
        return LfoConfig()

    def set_last_lfo(self, config: LfoConfig):
        self.config["last_lfo"] = config.to_dict()
        self.save_config()
