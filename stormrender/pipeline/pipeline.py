from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Union

import logging
import time

import numpy as np

from .. import __version__ as STORMRENDER_VERSION

from .axes import ImageAxes, resolve_image_axes
from .binning import z_slice_edges
from .classes import WidthClasses, build_width_classes, precision_proxy
from .config import RenderConfig
from .debug import RenderTrace
from .molecules import MoleculeList, active_channels, check_filter
from .normalize import draw_scalebar, normalize_stack
from .render import KernelCache, accumulate_slice


@dataclass
class RenderResult:
    config: RenderConfig
    # resolved window; None only when there was nothing to render and no axes were given
    axes: Optional[ImageAxes]

    # channel index -> H x W x Zs (uint16 with autocontrast, else uint8)
    images: Dict[int, np.ndarray] = field(default_factory=dict)
    classes: Dict[int, WidthClasses] = field(default_factory=dict)

    elapsed_s: float = 0.0
    trace: List[str] = field(default_factory=list)


def render_channel(
    mlist: MoleculeList,
    channel: int,
    config: RenderConfig,
    axes: ImageAxes,
    kernels: Optional[KernelCache] = None,
    trace: Optional[RenderTrace] = None,
) -> tuple[np.ndarray, WidthClasses]:
    """Render one channel into a quantized ``H x W x Zs`` stack."""
    kernels = kernels if kernels is not None else KernelCache()
    x, y, z = mlist.coordinates(config.correct_drift)
    keep = check_filter(config.filter_for(channel), len(mlist), channel)

    sigma = precision_proxy(mlist.a)
    classes = build_width_classes(
        sigma,
        n_classes=config.n_classes,
        dotsize=config.dotsize_for(channel),
        zm=axes.zoom,
        blur_radii=config.blur_radii,
        weights=config.weights,
    )
    if trace is not None and config.very_verbose:
        trace.log(f"ch{channel}", f"width edges: {np.array2string(classes.edges, precision=4)}")
        trace.log(f"ch{channel}", f"blur radii: {np.array2string(classes.radii, precision=4)}")
        trace.log(f"ch{channel}", f"weights: {np.array2string(classes.weights, precision=1)}")

    H, W = axes.shape
    z_edges = z_slice_edges(config.z_range, config.z_steps)
    stack = np.zeros((H, W, config.z_steps), dtype=np.float64)
    for k in range(config.z_steps):
        stack[:, :, k] = accumulate_slice(
            x, y, z, sigma, keep, axes, classes, z_edges, k,
            fast=config.fast,
            kernels=kernels,
        )

    img = normalize_stack(stack, autocontrast=config.autocontrast)
    if config.scalebar >= 1:
        draw_scalebar(img, config.scalebar, config.nm_per_pixel, axes.zoom, width=config.scalebar_width)
    return img, classes


def render_molecule_lists(
    channels: Union[MoleculeList, Sequence[Optional[MoleculeList]]],
    config: Optional[RenderConfig] = None,
    axes: Optional[ImageAxes] = None,
    log_cb: Optional[Callable[[str], None]] = None,
) -> RenderResult:
    """Render per-channel molecule lists into STORM images.

    Parameters
    ----------
    channels : MoleculeList or sequence of (MoleculeList | None)
        One entry per channel. ``None`` / empty channels are skipped and are
        absent from ``RenderResult.images``.
    config : RenderConfig, optional
        Render options; validated (on a copy) before any work is done.
    axes : ImageAxes, optional
        Pre-resolved window, e.g. ``RenderResult.axes`` of an earlier call.
        Missing fields are inferred from the data.
    """
    t0 = time.perf_counter()
    cfg = replace(config) if config is not None else RenderConfig()
    cfg.validate()

    if isinstance(channels, MoleculeList):
        channels = [channels]
    channels = list(channels)

    trace = RenderTrace(log_cb=log_cb, level=logging.INFO if cfg.verbose else logging.DEBUG)

    chns = active_channels(channels)
    for c in chns:
        cfg.dotsize_for(c)
        channels[c].validate()
        check_filter(cfg.filter_for(c), len(channels[c]), c)

    if not chns:
        trace.log("setup", "no molecules in any channel, nothing to render")
        return RenderResult(config=cfg, axes=axes, elapsed_s=time.perf_counter() - t0, trace=trace.as_lines())

    ax = resolve_image_axes(channels, cfg, axes)
    trace.log("setup", f"stormrender {STORMRENDER_VERSION} | channels {chns}")
    if cfg.very_verbose:
        trace.log("setup", f"axes: {ax}")

    result = RenderResult(config=cfg, axes=ax)
    kernels = KernelCache()
    for c in chns:
        tc = time.perf_counter()
        img, classes = render_channel(channels[c], c, cfg, ax, kernels=kernels, trace=trace)
        result.images[c] = img
        result.classes[c] = classes
        trace.log(f"ch{c}", f"{len(channels[c])} molecules rendered in {time.perf_counter() - tc:.3f} s")

    result.elapsed_s = time.perf_counter() - t0
    trace.log("done", f"render took {result.elapsed_s:.4g} s")
    result.trace = trace.as_lines()
    return result
