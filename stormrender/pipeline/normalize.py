from __future__ import annotations

import numpy as np

from .utils import round_half_away

UINT16_MAX = np.iinfo(np.uint16).max


def _quantize(values: np.ndarray, dtype) -> np.ndarray:
    info = np.iinfo(dtype)
    v = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0, posinf=info.max, neginf=0.0)
    return np.clip(round_half_away(v), info.min, info.max).astype(dtype)


def normalize_stack(stack: np.ndarray, autocontrast: bool = True) -> np.ndarray:
    """Quantize an accumulated ``H x W x Zs`` stack for display.

    With ``autocontrast`` the stack is rescaled by its global maximum to
    ``0..65535`` (uint16); an all-zero stack stays zero. Without it the raw
    values are rounded and saturated to uint8.
    """
    stack = np.asarray(stack, dtype=np.float64)
    if not autocontrast:
        return _quantize(stack, np.uint8)

    maxint = float(stack.max()) if stack.size else 0.0
    if not maxint > 0:
        return np.zeros(stack.shape, dtype=np.uint16)
    return _quantize(UINT16_MAX * stack / maxint, np.uint16)


def scalebar_length_px(scalebar_nm: float, nm_per_pixel: float, zm: float) -> int:
    return round_half_away(float(scalebar_nm) / float(nm_per_pixel) * float(zm))


def draw_scalebar(
    img: np.ndarray,
    scalebar_nm: float,
    nm_per_pixel: float,
    zm: float,
    width: int = 1,
    col0: int = 10,
) -> np.ndarray:
    """Overwrite a solid bar at the dtype's maximum value in every z-slice.

    The bar is ``1 + 2*width`` rows tall starting at zero-based row
    ``round(0.9*H)`` and spans ``round(scalebar_nm / nm_per_pixel * zm)``
    columns from zero-based column ``col0``. The row is one pixel lower than
    the one-based MATLAB ``list2img`` placement; the column matches it. The patch is
    clipped to the image. ``scalebar_nm < 1`` draws nothing.
    """
    if scalebar_nm < 1:
        return img
    H, W = img.shape[:2]
    length = scalebar_length_px(scalebar_nm, nm_per_pixel, zm)
    row0 = round_half_away(0.9 * H)
    r1 = min(row0 + 2 * int(width) + 1, H)
    c1 = min(col0 + length, W)
    if length < 1 or row0 >= H or col0 >= W:
        return img

    value = np.iinfo(img.dtype).max if np.issubdtype(img.dtype, np.integer) else UINT16_MAX
    img[row0:r1, col0:c1, ...] = value
    return img
