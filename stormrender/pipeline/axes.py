from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence

import math
import numpy as np

from .config import ParameterError, RenderConfig
from .molecules import MoleculeList, active_channels
from .utils import round_half_away


@dataclass(frozen=True)
class ImageAxes:
    """Spatial rendering window.

    ``xmin..ymax`` are in molecule-list units, ``zm`` is output pixels per
    unit and ``scale`` an extra uniform multiplier. ``H``/``W`` are the output
    size in pixels. Any field may be left ``None`` and is filled in by
    :func:`resolve_image_axes`.
    """

    xmin: Optional[float] = None
    xmax: Optional[float] = None
    ymin: Optional[float] = None
    ymax: Optional[float] = None
    zm: Optional[float] = None
    scale: float = 1.0
    H: Optional[int] = None
    W: Optional[int] = None

    @property
    def zoom(self) -> float:
        """Effective magnification (pixels per input unit)."""
        return float(self.zm) * float(self.scale)

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.H), int(self.W)

    def has_bbox(self) -> bool:
        return None not in (self.xmin, self.xmax, self.ymin, self.ymax)


def data_bbox(channels: Sequence[Optional[MoleculeList]], correct_drift: bool = True) -> tuple[float, float, float, float]:
    """floor/ceil of the observed x/y range over all non-empty channels."""
    chns = active_channels(channels)
    if not chns:
        raise ParameterError("Cannot infer image axes without any molecules")
    xs, ys = [], []
    for c in chns:
        x, y, _ = channels[c].coordinates(correct_drift)
        xs.append(x[np.isfinite(x)])
        ys.append(y[np.isfinite(y)])
    allx = np.concatenate(xs)
    ally = np.concatenate(ys)
    if allx.size == 0 or ally.size == 0:
        raise ParameterError("Cannot infer image axes: no finite x/y coordinates")
    return (
        float(math.floor(allx.min())),
        float(math.ceil(allx.max())),
        float(math.floor(ally.min())),
        float(math.ceil(ally.max())),
    )


def resolve_image_axes(
    channels: Sequence[Optional[MoleculeList]],
    config: RenderConfig,
    axes: Optional[ImageAxes] = None,
) -> ImageAxes:
    """Fill in every missing field of ``axes`` from the data and the config.

    An inferred bounding box is floor/ceil of the observed positions, so data
    whose x (or y) values are all one integer gives a zero-width window and
    raises :class:`ParameterError`. Pass an explicit window in that case.
    """
    ax = axes if axes is not None else ImageAxes()

    if ax.zm is None:
        ax = replace(ax, zm=float(config.zoom))
    if not (ax.zm > 0 and ax.scale > 0):
        raise ParameterError(f"Image axes need positive zm and scale (got zm={ax.zm!r}, scale={ax.scale!r})")

    zoom = ax.zoom
    if not ax.has_bbox():
        if ax.H is not None and ax.W is not None:
            ax = replace(ax, xmin=0.0, ymin=0.0, xmax=float(ax.W) / zoom, ymax=float(ax.H) / zoom)
        else:
            xmin, xmax, ymin, ymax = data_bbox(channels, config.correct_drift)
            ax = replace(ax, xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)

    H = ax.H if ax.H is not None else round_half_away((ax.ymax - ax.ymin) * zoom)
    W = ax.W if ax.W is not None else round_half_away((ax.xmax - ax.xmin) * zoom)
    if int(H) != H or int(W) != W or H < 1 or W < 1:
        raise ParameterError(f"Image size must be positive integers (got H={H!r}, W={W!r})")
    return replace(ax, H=int(H), W=int(W))
