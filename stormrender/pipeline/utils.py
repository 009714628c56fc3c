from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any
import math
import pathlib

import numpy as np


def round_half_away(x):
    """Round half away from zero (numpy's rint rounds half to even)."""
    arr = np.asarray(x, dtype=np.float64)
    out = np.sign(arr) * np.floor(np.abs(arr) + 0.5)
    if out.ndim == 0:
        return int(out)
    return out


def to_jsonable(obj: Any) -> Any:
    """JSON-safe copy of render objects.

    Dataclasses (``RenderConfig``, ``ImageAxes``) become dicts of their
    fields, arrays become lists and non-finite floats (open class or slice
    edges) become ``None``.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, np.ndarray):
        return to_jsonable(obj.tolist())
    if isinstance(obj, np.generic):
        return to_jsonable(obj.item())
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, pathlib.PurePath):
        return str(obj)
    if obj is None or isinstance(obj, (str, int, bool)):
        return obj
    raise TypeError(f"Cannot serialize {type(obj).__name__} to JSON")
