from __future__ import annotations

import argparse
import sys
import logging
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .pipeline.axes import ImageAxes
from .pipeline.config import ParameterError, RenderConfig
from .pipeline.figures import save_preview_png
from .pipeline.io import load_molecule_list, save_render_tiff, save_summary
from .pipeline.molecules import MoleculeListError
from .pipeline.pipeline import render_molecule_lists
from .pipeline.utils import to_jsonable
from .utils import run_log_path


def _setup_logging(verbose: bool = False, log_dir: Optional[str] = None) -> tuple[logging.Logger, Path]:
    log_path = run_log_path(log_dir)

    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger("stormrender")
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate handlers if main() called twice
    if not any(isinstance(h, logging.FileHandler) and Path(getattr(h, "baseFilename", "")) == log_path for h in logger.handlers):
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(level)
        sh.setFormatter(fmt)
        logger.addHandler(sh)

    return logger, log_path


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="stormrender",
        description="Render STORM molecule lists (one CSV/TSV per channel) into Gaussian-dot images saved as TIFF.",
    )
    ap.add_argument("--input", "-i", action="append", required=True, help="Molecule table (.csv/.tsv); repeat once per channel")
    ap.add_argument("--output-dir", "-o", required=True, help="Directory for channel TIFFs and metadata")
    ap.add_argument("--config", help="RenderConfig JSON; explicit flags override it")
    ap.add_argument("--n-classes", type=int, help="Number of width classes (N)")
    ap.add_argument("--dotsize", type=float, nargs="+", help="Dot size factor (one value, or one per channel)")
    ap.add_argument("--z-steps", type=int, help="Number of z slices")
    ap.add_argument("--z-range", type=float, nargs=2, metavar=("ZMIN", "ZMAX"), help="z range covered by the slices")
    ap.add_argument("--nm-per-pixel", type=float, help="Camera pixel size in nm (scale bar)")
    ap.add_argument("--scalebar", type=float, help="Scale bar length in nm, 0 disables")
    ap.add_argument("--scalebar-width", type=int, help="Scale bar half thickness in pixels")
    ap.add_argument("--zoom", type=float, help="Output pixels per camera pixel")
    ap.add_argument("--bbox", type=float, nargs=4, metavar=("XMIN", "XMAX", "YMIN", "YMAX"), help="Render window")
    ap.add_argument("--no-correct-drift", dest="correct_drift", action="store_false", default=None, help="Use raw x/y/z")
    ap.add_argument("--fast", action="store_true", default=None, help="Skip the Gaussian blur")
    ap.add_argument("--no-autocontrast", dest="autocontrast", action="store_false", default=None, help="Save raw 8-bit values")
    ap.add_argument("--preview", action="store_true", help="Also write a PNG max projection per channel")
    ap.add_argument("--verbose", "-v", action="store_true", default=None, help="Log render timings")
    ap.add_argument("--very-verbose", action="store_true", default=None, help="Also log axes and class tables")
    ap.add_argument("--log-dir", help="Directory for the run log (default: $STORMRENDER_LOG_DIR or the per-user log folder)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


_FLAG_FIELDS = (
    "n_classes",
    "dotsize",
    "z_steps",
    "z_range",
    "nm_per_pixel",
    "scalebar",
    "scalebar_width",
    "zoom",
    "correct_drift",
    "fast",
    "autocontrast",
    "verbose",
    "very_verbose",
)


def config_from_args(args: argparse.Namespace) -> RenderConfig:
    base = RenderConfig.from_json(args.config) if args.config else RenderConfig()
    options = {k: v for k, v in vars(base).items()}
    for name in _FLAG_FIELDS:
        v = getattr(args, name)
        if v is None:
            continue
        if name == "dotsize" and len(v) == 1:
            v = v[0]
        options[name] = v
    return RenderConfig.from_dict(options)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger, log_path = _setup_logging(verbose=bool(args.very_verbose), log_dir=args.log_dir)
    logger.info(f"[stormrender] {__version__} | log file: {log_path}")

    try:
        cfg = config_from_args(args)
        channels = []
        for p in args.input:
            ml = load_molecule_list(p)
            logger.info(f"Loaded {len(ml)} molecules from {p}")
            channels.append(ml)

        axes = None
        if args.bbox is not None:
            xmin, xmax, ymin, ymax = args.bbox
            axes = ImageAxes(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax)

        result = render_molecule_lists(channels, cfg, axes=axes)
    except (ParameterError, MoleculeListError, FileNotFoundError) as e:
        logger.error(f"[stormrender] {e}")
        return 2

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    outputs = {}
    for c, img in result.images.items():
        tif = out_dir / f"channel_{c}.tif"
        meta = {
            "input": str(Path(args.input[c]).resolve()),
            "channel": c,
            "dtype": str(img.dtype),
            "image_shape": [int(s) for s in img.shape],
        }
        save_render_tiff(tif, img, nm_per_pixel=cfg.nm_per_pixel, zm=result.axes.zoom, meta=meta)
        outputs[c] = str(tif)
        if args.preview:
            save_preview_png(out_dir / f"channel_{c}.png", img, title=f"channel {c}")
        logger.info(f"Saved: {tif}")

    config_meta = to_jsonable(cfg)
    config_meta.pop("filters", None)
    save_summary(
        {
            "version": __version__,
            "axes": to_jsonable(result.axes),
            "config": config_meta,
            "outputs": outputs,
            "elapsed_s": result.elapsed_s,
        },
        out_dir / "render_meta.json",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
