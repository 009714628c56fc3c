from __future__ import annotations

import os
import platform
from datetime import datetime
from pathlib import Path
from typing import Optional

APP_NAME = "stormrender"
LOG_DIR_ENV = "STORMRENDER_LOG_DIR"


def default_log_dir() -> Path:
    """Platform log location for render runs.

    - Windows: %LOCALAPPDATA%/stormrender/logs
    - macOS:   ~/Library/Logs/stormrender
    - other:   $XDG_STATE_HOME/stormrender/logs (fallback ~/.local/state)
    """
    system = platform.system().lower()
    if system.startswith("win"):
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        root = Path(base) if base else Path.home() / "AppData" / "Local"
        return root / APP_NAME / "logs"
    if system == "darwin":
        return Path.home() / "Library" / "Logs" / APP_NAME
    state = os.environ.get("XDG_STATE_HOME")
    root = Path(state) if state else Path.home() / ".local" / "state"
    return root / APP_NAME / "logs"


def resolve_log_dir(log_dir: Optional[str | Path] = None) -> Path:
    """Pick the log directory (explicit argument, then $STORMRENDER_LOG_DIR, then the platform default) and create it."""
    if log_dir is not None:
        d = Path(log_dir)
    elif os.environ.get(LOG_DIR_ENV):
        d = Path(os.environ[LOG_DIR_ENV])
    else:
        d = default_log_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d


def run_log_path(log_dir: Optional[str | Path] = None, when: Optional[datetime] = None) -> Path:
    """Timestamped log file for one CLI run."""
    ts = (when or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return resolve_log_dir(log_dir) / f"{APP_NAME}_{ts}.log"
