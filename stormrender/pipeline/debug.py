from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger("stormrender.pipeline")


@dataclass(frozen=True)
class TraceEvent:
    """One trace event (stage-tagged, timestamped)."""

    t_iso: str
    stage: str
    message: str


class RenderTrace:
    """Collects stage-tagged render messages and can persist them.

    Every message goes to the ``stormrender.pipeline`` logger at ``level``
    and, if given, to ``log_cb``.
    """

    def __init__(self, log_cb: Optional[Callable[[str], None]] = None, level: int = logging.DEBUG):
        self._log_cb = log_cb
        self.level = level
        self.events: List[TraceEvent] = []

    def log(self, stage: str, message: str) -> None:
        msg = str(message)
        line = f"[{stage}] {msg}"
        logger.log(self.level, line)
        if self._log_cb is not None:
            self._log_cb(line)
        self.events.append(TraceEvent(t_iso=datetime.now().isoformat(timespec="seconds"), stage=str(stage), message=msg))

    def save_text(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = self.as_lines()
        path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")

    def as_lines(self) -> List[str]:
        return [f"{e.t_iso} | [{e.stage}] {e.message}" for e in self.events]
