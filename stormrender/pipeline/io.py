from __future__ import annotations

from typing import Dict, Optional
import pathlib
import json
import pandas as pd
import numpy as np
import tifffile

from .molecules import MoleculeList, MoleculeListError

# -----------------------------
# Column mapping helpers
# -----------------------------

# Common export spellings (Insight3 / DAOSTORM / custom tables)
_ALIASES = {
    "x": ["x", "x [px]", "x (px)", "x_px", "x [pix]"],
    "y": ["y", "y [px]", "y (px)", "y_px", "y [pix]"],
    "z": ["z", "z [nm]", "z (nm)", "z_nm"],
    "xc": ["xc", "xc [px]", "x_corrected", "x_drift_corrected", "x_c"],
    "yc": ["yc", "yc [px]", "y_corrected", "y_drift_corrected", "y_c"],
    "zc": ["zc", "zc [nm]", "z_corrected", "z_drift_corrected", "z_c"],
    "a": ["a", "amplitude", "height", "peak_height", "intensity [photon]", "intensity_photon_", "photons"],
}

REQUIRED = ["x", "y", "a"]


def _normalize_colname(name: str) -> str:
    return (
        str(name).strip()
        .lower()
        .replace("µ", "u")
        .replace("  ", " ")
    )


def _find_column(df: pd.DataFrame, canonical: str) -> Optional[str]:
    cols_norm = {_normalize_colname(c): c for c in df.columns}
    for alias in _ALIASES.get(canonical, []):
        a = _normalize_colname(alias)
        if a in cols_norm:
            return cols_norm[a]
    return None


def load_molecule_table(path: str | pathlib.Path) -> pd.DataFrame:
    """Load a localization table from CSV/TSV and map it to canonical columns.

    Returns a DataFrame with at least ``x, y, a`` and any of
    ``z, xc, yc, zc`` that were found. Rows with non-numeric required
    fields are dropped.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    head = path.read_text(errors="ignore", encoding="utf-8")[:20000]
    sep = "," if head.count(",") >= head.count("\t") else "\t"

    df = pd.read_csv(path, sep=sep, engine="python")

    colmap: Dict[str, str] = {}
    for canonical in _ALIASES:
        found = _find_column(df, canonical)
        if found is not None:
            colmap[found] = canonical
    df = df.rename(columns=colmap)

    missing = [c for c in REQUIRED if c not in df.columns]
    if missing:
        raise MoleculeListError(
            "Missing required columns in molecule table: "
            + ", ".join(missing)
            + f"\nAvailable columns: {list(df.columns)}"
        )

    present = [c for c in _ALIASES if c in df.columns]
    df = df[present].copy()
    for c in present:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df.dropna(subset=REQUIRED).reset_index(drop=True)


def load_molecule_list(path: str | pathlib.Path) -> MoleculeList:
    return MoleculeList.from_mapping(load_molecule_table(path)).validate()


def save_render_tiff(
    out_path: str | pathlib.Path,
    stack: np.ndarray,
    *,
    nm_per_pixel: float,
    zm: float,
    meta: dict,
) -> None:
    """Write one channel's ``H x W x Zs`` stack as a ZYX OME-TIFF plus JSON sidecar."""
    out_path = pathlib.Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    data = np.moveaxis(np.asarray(stack), -1, 0)

    # rendered pixel size in µm
    px_um = float(nm_per_pixel) / float(zm) / 1000.0
    ome_meta = {
        "axes": "ZYX",
        "PhysicalSizeX": px_um,
        "PhysicalSizeXUnit": "µm",
        "PhysicalSizeY": px_um,
        "PhysicalSizeYUnit": "µm",
    }

    # pixels per cm for the classic TIFF resolution tags
    px_cm = px_um * 1e-4
    ppcm = (1.0 / px_cm) if px_cm > 0 else 1.0

    tifffile.imwrite(
        out_path,
        data,
        ome=True,
        metadata=ome_meta,
        resolution=(ppcm, ppcm),
        resolutionunit="CENTIMETER",
    )

    out_path.with_suffix(out_path.suffix + ".json").write_text(json.dumps(meta, indent=2), encoding="utf-8")


def save_summary(summary: dict, out_json: str | pathlib.Path) -> None:
    out_json = pathlib.Path(out_json)
    out_json.parent.mkdir(parents=True, exist_ok=True)
    out_json.write_text(json.dumps(summary, indent=2))
