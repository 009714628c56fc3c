from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple, Union
import json
import pathlib
import numbers

import numpy as np

ParameterKind = Literal["positive", "nonnegative", "integer", "boolean", "array"]

_KIND_TEXT = {
    "positive": "a positive number",
    "nonnegative": "a nonnegative number",
    "integer": "a positive integer",
    "boolean": "a boolean",
    "array": "an array",
}


class ParameterError(ValueError):
    """Raised when a render option is unknown or fails its constraint."""


def _fail(name: str, kind: str, value: Any) -> None:
    raise ParameterError(f"Parameter '{name}' must be {_KIND_TEXT[kind]} (got {value!r})")


def check_parameter(value: Any, kind: ParameterKind, name: str) -> Any:
    """Validate ``value`` against ``kind`` and return it in canonical form.

    Numeric kinds accept scalars or array-likes (checked element-wise); the
    array-like case is returned as a float ndarray.
    """
    if kind not in _KIND_TEXT:
        raise ValueError(f"Unknown parameter kind: {kind}")

    if kind == "boolean":
        if isinstance(value, (bool, np.bool_)):
            return bool(value)
        if isinstance(value, numbers.Integral) and int(value) in (0, 1):
            return bool(value)
        _fail(name, kind, value)

    if kind == "array":
        if isinstance(value, (str, bytes, Mapping)) or value is None:
            _fail(name, kind, value)
        try:
            return np.asarray(value)
        except (TypeError, ValueError):
            _fail(name, kind, value)

    # numeric kinds
    if isinstance(value, (bool, np.bool_, str, bytes)) or value is None:
        _fail(name, kind, value)
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        _fail(name, kind, value)
    if arr.size == 0 or not np.all(np.isfinite(arr)):
        _fail(name, kind, value)

    if kind == "positive" and not np.all(arr > 0):
        _fail(name, kind, value)
    if kind == "nonnegative" and not np.all(arr >= 0):
        _fail(name, kind, value)
    if kind == "integer":
        if arr.ndim != 0 or arr <= 0 or float(arr) != float(np.floor(arr)):
            _fail(name, kind, value)
        return int(arr)

    if arr.ndim == 0:
        return float(arr)
    return arr


# legacy option names -> field names
LEGACY_NAMES: Dict[str, str] = {
    "N": "n_classes",
    "dotsize": "dotsize",
    "Zsteps": "z_steps",
    "Zrange": "z_range",
    "nm per pixel": "nm_per_pixel",
    "scalebar": "scalebar",
    "scalebarWidth": "scalebar_width",
    "zoom": "zoom",
    "correct drift": "correct_drift",
    "Fast": "fast",
    "autocontrast": "autocontrast",
    "filter": "filters",
    "wc": "blur_radii",
    "gc": "weights",
    "verbose": "verbose",
    "very verbose": "very_verbose",
}


@dataclass
class RenderConfig:
    # -------------------------
    # Width classes
    # -------------------------
    n_classes: int = 6
    dotsize: Union[float, Sequence[float]] = 4.0  # scalar or one value per channel
    blur_radii: Optional[Sequence[float]] = None  # explicit wc; redefines n_classes
    weights: Optional[Sequence[float]] = None  # explicit gc

    # -------------------------
    # Z slicing
    # -------------------------
    z_steps: int = 1
    z_range: Tuple[float, float] = (-500.0, 500.0)

    # -------------------------
    # Rasterization
    # -------------------------
    zoom: float = 10.0
    correct_drift: bool = True
    fast: bool = False
    autocontrast: bool = True
    filters: Optional[Sequence[Optional[Sequence[bool]]]] = None  # one mask per channel

    # -------------------------
    # Scale bar
    # -------------------------
    nm_per_pixel: float = 160.0
    scalebar: float = 500.0  # nm, 0 disables
    scalebar_width: int = 1

    # -------------------------
    # Diagnostics
    # -------------------------
    verbose: bool = False
    very_verbose: bool = False

    def validate(self) -> "RenderConfig":
        """Check every option and normalize it in place; returns ``self``."""
        self.n_classes = check_parameter(self.n_classes, "integer", "n_classes")
        self.dotsize = check_parameter(self.dotsize, "positive", "dotsize")
        self.z_steps = check_parameter(self.z_steps, "integer", "z_steps")
        self.zoom = check_parameter(self.zoom, "positive", "zoom")
        self.nm_per_pixel = check_parameter(self.nm_per_pixel, "positive", "nm_per_pixel")
        self.scalebar = check_parameter(self.scalebar, "nonnegative", "scalebar")
        self.scalebar_width = check_parameter(self.scalebar_width, "integer", "scalebar_width")
        self.correct_drift = check_parameter(self.correct_drift, "boolean", "correct_drift")
        self.fast = check_parameter(self.fast, "boolean", "fast")
        self.autocontrast = check_parameter(self.autocontrast, "boolean", "autocontrast")
        self.verbose = check_parameter(self.verbose, "boolean", "verbose")
        self.very_verbose = check_parameter(self.very_verbose, "boolean", "very_verbose")

        zr = check_parameter(self.z_range, "array", "z_range").astype(np.float64).ravel()
        if zr.size != 2 or not np.all(np.isfinite(zr)) or zr[0] > zr[1]:
            raise ParameterError(f"Parameter 'z_range' must be an array [zmin, zmax] with zmin <= zmax (got {self.z_range!r})")
        self.z_range = (float(zr[0]), float(zr[1]))

        if self.blur_radii is not None:
            wc = check_parameter(self.blur_radii, "array", "blur_radii").astype(np.float64).ravel()
            if wc.size == 0 or not np.all(np.isfinite(wc)) or np.any(wc < 0):
                raise ParameterError(f"Parameter 'blur_radii' must be a non-empty array of nonnegative radii (got {self.blur_radii!r})")
            self.blur_radii = wc
            self.n_classes = int(wc.size)

        if self.weights is not None:
            gc = check_parameter(self.weights, "array", "weights").astype(np.float64).ravel()
            if not np.all(np.isfinite(gc)) or np.any(gc < 0):
                raise ParameterError(f"Parameter 'weights' must be an array of nonnegative weights (got {self.weights!r})")
            if gc.size < self.n_classes:
                raise ParameterError(
                    f"Parameter 'weights' needs at least {self.n_classes} entries (one per width class), got {gc.size}"
                )
            self.weights = gc

        if self.filters is not None:
            if isinstance(self.filters, (str, bytes, Mapping)):
                _fail("filters", "array", self.filters)
            self.filters = [
                None if f is None else check_parameter(f, "array", f"filters[{i}]").astype(bool).ravel()
                for i, f in enumerate(self.filters)
            ]
        return self

    def dotsize_for(self, channel: int) -> float:
        ds = np.atleast_1d(np.asarray(self.dotsize, dtype=np.float64))
        if ds.size == 1:
            return float(ds[0])
        if channel >= ds.size:
            raise ParameterError(f"Parameter 'dotsize' has {ds.size} entries but channel {channel} was requested")
        return float(ds[channel])

    def filter_for(self, channel: int) -> Optional[np.ndarray]:
        if self.filters is None or channel >= len(self.filters):
            return None
        return self.filters[channel]

    @staticmethod
    def from_dict(options: Mapping[str, Any]) -> "RenderConfig":
        """Build a validated config from field names or legacy option names."""
        known = {f.name for f in fields(RenderConfig)}
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            name = LEGACY_NAMES.get(key, key)
            if name not in known:
                raise ParameterError(f"The parameter '{key}' is not recognized by the renderer.")
            kwargs[name] = value
        return RenderConfig(**kwargs).validate()

    @staticmethod
    def from_pairs(pairs: Sequence[Any]) -> "RenderConfig":
        """Build a config from a flat ``[name, value, name, value, ...]`` list."""
        pairs = list(pairs)
        if len(pairs) % 2 != 0:
            raise ParameterError("Extra parameters passed to the renderer must be passed in name/value pairs.")
        options: Dict[str, Any] = {}
        for name, value in zip(pairs[0::2], pairs[1::2]):
            if not isinstance(name, str):
                raise ParameterError(f"Parameter names must be strings (got {name!r})")
            options[name] = value
        return RenderConfig.from_dict(options)

    def to_json(self, path: str | pathlib.Path) -> None:
        """Write config to JSON."""
        from .utils import to_jsonable
        path = pathlib.Path(path)
        path.write_text(json.dumps(to_jsonable(self), indent=2))

    @staticmethod
    def from_json(path: str | pathlib.Path) -> "RenderConfig":
        d = json.loads(pathlib.Path(path).read_text())
        if d.get("z_range") is not None:
            d["z_range"] = tuple(d["z_range"])
        return RenderConfig.from_dict(d)


def preset_reference() -> RenderConfig:
    """Full-quality rendering with the documented defaults."""
    return RenderConfig().validate()


def preset_preview() -> RenderConfig:
    """Quick look: no Gaussian blur and fewer width classes."""
    return RenderConfig(fast=True, n_classes=3).validate()
