from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .utils import round_half_away


def precision_proxy(a: np.ndarray) -> np.ndarray:
    """Width proxy ``sigma = 4/sqrt(a)``, real branch only.

    Negative amplitudes give 0 (real part of the complex root), zero gives
    +inf and NaN stays NaN. Neither +inf nor NaN falls inside any width class.
    """
    a = np.asarray(a, dtype=np.float64)
    sig = np.full(a.shape, np.nan)
    ok = ~np.isnan(a)
    av = a[ok]
    s = np.full(av.shape, np.inf)
    pos = av > 0
    s[pos] = 4.0 / np.sqrt(av[pos])
    s[av < 0] = 0.0
    sig[ok] = s
    return sig


def sigma_range(sigma: np.ndarray) -> Tuple[float, float]:
    """1st / 99th percentile of the finite sigmas (one-based rounded index)."""
    sigs = np.sort(sigma[np.isfinite(sigma)])
    n = sigs.size
    if n == 0:
        return 0.0, 0.0
    i_lo = max(round_half_away(0.01 * n), 1) - 1
    i_hi = max(round_half_away(0.99 * n), 1) - 1
    return float(sigs[i_lo]), float(sigs[i_hi])


def width_edges(min_sig: float, max_sig: float, n_classes: int) -> np.ndarray:
    edges = np.linspace(min_sig, max_sig, int(n_classes) + 1)
    edges[-1] = np.inf
    return edges


def default_blur_radii(dotsize: float, n_classes: int, zm: float) -> np.ndarray:
    return np.linspace(0.01 * dotsize, 0.05 * dotsize, int(n_classes) + 1) * zm


def default_weights(n_classes: int) -> np.ndarray:
    # narrowest class first -> largest weight
    return (800.0 * np.linspace(0.5, 8.0, int(n_classes) + 1))[::-1].copy()


@dataclass(frozen=True)
class WidthClasses:
    """Per-channel width classes.

    ``edges`` has ``n + 1`` entries; class ``k`` is
    ``edges[k] <= sigma < edges[k+1]`` and is rendered with blur radius
    ``radii[k]`` and weight ``weights[k]``.
    """

    edges: np.ndarray
    radii: np.ndarray
    weights: np.ndarray

    @property
    def n(self) -> int:
        return int(self.edges.size - 1)

    def member(self, sigma: np.ndarray, k: int) -> np.ndarray:
        return (sigma >= self.edges[k]) & (sigma < self.edges[k + 1])

    def labels(self, sigma: np.ndarray) -> np.ndarray:
        """Class index per molecule, -1 where it falls in no class."""
        out = np.full(np.shape(sigma), -1, dtype=np.int64)
        for k in range(self.n):
            out[self.member(sigma, k)] = k
        return out


def build_width_classes(
    sigma: np.ndarray,
    n_classes: int,
    dotsize: float,
    zm: float,
    blur_radii: Optional[Sequence[float]] = None,
    weights: Optional[Sequence[float]] = None,
) -> WidthClasses:
    if blur_radii is not None:
        radii = np.asarray(blur_radii, dtype=np.float64).ravel()
        n_classes = radii.size
    else:
        radii = default_blur_radii(dotsize, n_classes, zm)

    gc = default_weights(n_classes) if weights is None else np.asarray(weights, dtype=np.float64).ravel()
    if gc.size < n_classes:
        raise ValueError(f"Need at least {n_classes} weights, got {gc.size}")

    min_sig, max_sig = sigma_range(sigma)
    return WidthClasses(edges=width_edges(min_sig, max_sig, n_classes), radii=radii, weights=gc)
