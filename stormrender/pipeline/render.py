from __future__ import annotations

from typing import Dict, Optional, Tuple

import numpy as np
from scipy.ndimage import correlate

from .axes import ImageAxes
from .binning import bin_counts, in_slice, in_window, to_pixel
from .classes import WidthClasses

KERNEL_SIZE = 250


def gaussian_kernel(sigma: float, size: int = KERNEL_SIZE) -> np.ndarray:
    """Rotationally symmetric Gaussian sampled on a ``size x size`` grid.

    Samples sit at offsets ``-(size-1)/2 .. (size-1)/2``; values below
    ``eps * max`` are zeroed and the kernel is normalized to unit sum.
    """
    half = (size - 1) / 2.0
    t = np.arange(size, dtype=np.float64) - half
    r2 = t[:, None] ** 2 + t[None, :] ** 2
    # shift by the smallest radius so the peak is 1 and tiny sigmas do not underflow
    h = np.exp(-(r2 - r2.min()) / (2.0 * float(sigma) ** 2))
    h[h < np.finfo(np.float64).eps * h.max()] = 0.0
    s = h.sum()
    if s != 0:
        h /= s
    return h


def _trim(kernel: np.ndarray) -> Tuple[np.ndarray, Tuple[int, int]]:
    """Crop zero border; return the cropped kernel and its anchor offset."""
    size = kernel.shape[0]
    anchor = (size + 1) // 2 - 1
    rows = np.flatnonzero(kernel.any(axis=1))
    cols = np.flatnonzero(kernel.any(axis=0))
    r0, r1 = int(rows[0]), int(rows[-1])
    c0, c1 = int(cols[0]), int(cols[-1])
    k = kernel[r0 : r1 + 1, c0 : c1 + 1]
    origin = (anchor - r0 - k.shape[0] // 2, anchor - c0 - k.shape[1] // 2)
    return k, origin


class KernelCache:
    """Trimmed Gaussian kernels keyed by radius, for the span of one render call."""

    def __init__(self, size: int = KERNEL_SIZE):
        self.size = int(size)
        self._kernels: Dict[float, Tuple[np.ndarray, Tuple[int, int]]] = {}

    def __len__(self) -> int:
        return len(self._kernels)

    def get(self, radius: float) -> Tuple[np.ndarray, Tuple[int, int]]:
        key = float(radius)
        if key not in self._kernels:
            self._kernels[key] = _trim(gaussian_kernel(key, self.size))
        return self._kernels[key]


def blur(img: np.ndarray, radius: float, kernels: Optional[KernelCache] = None) -> np.ndarray:
    """Zero-padded same-size filtering of ``img`` with a Gaussian of ``radius``.

    A non-positive radius leaves the image unchanged.
    """
    if not radius > 0:
        return img
    kernels = kernels if kernels is not None else KernelCache()
    k, origin = kernels.get(radius)
    return correlate(img, k, mode="constant", cval=0.0, origin=origin)


def accumulate_slice(
    x: np.ndarray,
    y: np.ndarray,
    z: np.ndarray,
    sigma: np.ndarray,
    keep: np.ndarray,
    axes: ImageAxes,
    classes: WidthClasses,
    z_edges: np.ndarray,
    k_slice: int,
    fast: bool = False,
    kernels: Optional[KernelCache] = None,
) -> np.ndarray:
    """Sum of per-class weighted (and blurred) count histograms for one z-slice."""
    H, W = axes.shape
    img = np.zeros((H, W), dtype=np.float64)

    base = keep & in_window(x, y, axes) & in_slice(z, z_edges, k_slice)
    if not base.any():
        return img

    xi, yi = to_pixel(x, y, axes)
    for n in range(classes.n):
        sel = base & classes.member(sigma, n)
        if not sel.any():
            continue
        It = classes.weights[n] * bin_counts(yi[sel], xi[sel], (H, W))
        if not fast:
            It = blur(It, classes.radii[n], kernels)
        img += It
    return img
