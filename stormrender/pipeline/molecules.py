from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np


class MoleculeListError(ValueError):
    """Raised when a molecule list (or its filter) has inconsistent shape."""


def _empty() -> np.ndarray:
    return np.zeros((0,), dtype=float)


@dataclass
class MoleculeList:
    """Localizations of one imaging channel.

    ``x, y, z`` are raw positions, ``xc, yc, zc`` their drift-corrected
    counterparts and ``a`` the fitted amplitude. Optional fields left as
    ``None`` fall back to the raw fields (or zeros for ``z``).
    """

    x: np.ndarray = field(default_factory=_empty)
    y: np.ndarray = field(default_factory=_empty)
    a: np.ndarray = field(default_factory=_empty)
    z: Optional[np.ndarray] = None
    xc: Optional[np.ndarray] = None
    yc: Optional[np.ndarray] = None
    zc: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=float).ravel()
        self.y = np.asarray(self.y, dtype=float).ravel()
        self.a = np.asarray(self.a, dtype=float).ravel()
        for name in ("z", "xc", "yc", "zc"):
            v = getattr(self, name)
            if v is not None:
                setattr(self, name, np.asarray(v, dtype=float).ravel())

    def __len__(self) -> int:
        return int(self.x.size)

    def validate(self) -> "MoleculeList":
        n = len(self)
        for name in ("y", "a", "z", "xc", "yc", "zc"):
            v = getattr(self, name)
            if v is not None and v.size != n:
                raise MoleculeListError(f"Molecule list field '{name}' has {v.size} entries, expected {n} (length of 'x')")
        return self

    def coordinates(self, correct_drift: bool = True) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the ``(x, y, z)`` arrays selected by the drift-correction flag."""
        z = self.z if self.z is not None else np.zeros_like(self.x)
        if not correct_drift:
            return self.x, self.y, z
        xc = self.xc if self.xc is not None else self.x
        yc = self.yc if self.yc is not None else self.y
        zc = self.zc if self.zc is not None else z
        return xc, yc, zc

    @staticmethod
    def from_mapping(d) -> "MoleculeList":
        """Build from a dict / DataFrame with columns ``x, y, a`` (+ optional ``z, xc, yc, zc``)."""
        cols = {}
        for name in ("x", "y", "a", "z", "xc", "yc", "zc"):
            if name in d:
                cols[name] = np.asarray(d[name], dtype=float)
        missing = [c for c in ("x", "y", "a") if c not in cols]
        if missing:
            raise MoleculeListError("Missing required molecule list fields: " + ", ".join(missing))
        return MoleculeList(**cols)


def active_channels(channels: Sequence[Optional[MoleculeList]]) -> List[int]:
    """Indices of channels that hold at least one molecule."""
    return [i for i, m in enumerate(channels) if m is not None and len(m) > 0]


def check_filter(mask: Optional[Iterable[bool]], n: int, channel: int) -> np.ndarray:
    if mask is None:
        return np.ones(n, dtype=bool)
    mask = np.asarray(mask, dtype=bool).ravel()
    if mask.size != n:
        raise MoleculeListError(f"Filter for channel {channel} has {mask.size} entries, expected {n}")
    return mask
