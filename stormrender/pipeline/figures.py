from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np

import matplotlib

matplotlib.use("Agg")  # headless-safe
import matplotlib.pyplot as plt


# -----------------------------
# Styling knobs (edit here)
# -----------------------------
PREVIEW_CMAP = "hot"
PREVIEW_DPI = 150


def max_projection(stack: np.ndarray) -> np.ndarray:
    """Collapse an ``H x W x Zs`` stack along z (2D input is returned as is)."""
    stack = np.asarray(stack)
    if stack.ndim == 3:
        return stack.max(axis=2)
    return stack


def save_preview_png(
    path: str | Path,
    stack: np.ndarray,
    *,
    title: str = "",
    vmax: Optional[float] = None,
) -> Path:
    """Save a z max-projection of a rendered channel as PNG."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    img = max_projection(stack)
    if vmax is None:
        vmax = float(img.max()) if img.size and img.max() > 0 else 1.0

    fig = plt.figure(figsize=(6, 6), dpi=PREVIEW_DPI)
    ax = fig.add_subplot(111)
    ax.imshow(img, cmap=PREVIEW_CMAP, vmin=0.0, vmax=vmax, interpolation="nearest")
    ax.set_title(title)
    ax.set_axis_off()
    fig.tight_layout()
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    return path
