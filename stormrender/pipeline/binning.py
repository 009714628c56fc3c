from __future__ import annotations

from typing import Tuple

import numpy as np

from .axes import ImageAxes


def in_window(x: np.ndarray, y: np.ndarray, axes: ImageAxes) -> np.ndarray:
    """Molecules inside ``[xmin, xmax) x [ymin, ymax)``."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    return (x >= axes.xmin) & (x < axes.xmax) & (y >= axes.ymin) & (y < axes.ymax)


def to_pixel(x: np.ndarray, y: np.ndarray, axes: ImageAxes) -> Tuple[np.ndarray, np.ndarray]:
    """Map positions to (sub)pixel coordinates ``(xi, yi)``."""
    zm = axes.zoom
    xi = np.asarray(x, dtype=float) * zm - axes.xmin * zm
    yi = np.asarray(y, dtype=float) * zm - axes.ymin * zm
    return xi, yi


def _bin_index(p: np.ndarray, n: int) -> Tuple[np.ndarray, np.ndarray]:
    # fixed edges 0..n-1: [k, k+1) for k < n-1, final bin holds p == n-1 exactly
    keep = np.isfinite(p) & (p >= 0) & (p <= n - 1)
    idx = np.floor(p[keep]).astype(np.int64)
    return keep, np.minimum(idx, n - 1)


def bin_counts(yi: np.ndarray, xi: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    """2D count histogram of pixel coordinates on an ``H x W`` grid.

    Coordinates outside ``[0, H-1] x [0, W-1]`` are dropped.
    """
    H, W = int(shape[0]), int(shape[1])
    yi = np.asarray(yi, dtype=float).ravel()
    xi = np.asarray(xi, dtype=float).ravel()

    keep_y, _ = _bin_index(yi, H)
    keep_x, _ = _bin_index(xi, W)
    keep = keep_y & keep_x
    _, iy = _bin_index(yi[keep], H)
    _, ix = _bin_index(xi[keep], W)

    flat = np.bincount(iy * W + ix, minlength=H * W)
    return flat.reshape(H, W).astype(np.float64)


def z_slice_edges(z_range: Tuple[float, float], z_steps: int) -> np.ndarray:
    """``z_steps + 1`` slice edges over ``z_range`` with open outer ends."""
    edges = np.linspace(float(z_range[0]), float(z_range[1]), int(z_steps) + 1)
    edges[0] = -np.inf
    edges[-1] = np.inf
    return edges


def in_slice(z: np.ndarray, edges: np.ndarray, k: int) -> np.ndarray:
    z = np.asarray(z, dtype=float)
    return (z >= edges[k]) & (z < edges[k + 1])
