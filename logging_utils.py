"""ABOUTME: File logging setup; the Textual UI owns the terminal so log records go to a file.
ABOUTME: Log directory comes from LFO_LAB_LOG_DIR, else ~/.lfo_lab/logs."""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

LOG_DIR_ENV = "LFO_LAB_LOG_DIR"
LOG_FILENAME = "lfo_lab.log"

# Top-level packages whose module loggers share the log file
APP_LOGGERS = ("lfo", "midi", "verification", "modes", "components", "config_manager", "main")


def default_log_dir() -> Path:
    env_dir = os.environ.get(LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".lfo_lab" / "logs"


def log_path(filename: str = LOG_FILENAME, log_dir: Optional[str] = None) -> Path:
    base_dir = Path(log_dir) if log_dir else default_log_dir()
    return base_dir / filename


def setup_file_logger(
    names: Iterable[str] = APP_LOGGERS,
    filename: str = LOG_FILENAME,
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
) -> Path:
    """Attach one FileHandler to each named logger. Loggers that already have handlers are left alone."""
    path = log_path(filename, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = None
    for name in names:
        logger = logging.getLogger(name)
        if logger.handlers:
            continue
        if handler is None:
            handler = logging.FileHandler(path)
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.setLevel(level)
        logger.addHandler(handler)
    return path
