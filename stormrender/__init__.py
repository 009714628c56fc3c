"""stormrender: render single-molecule localization lists into STORM images."""

__version__ = "0.1.0"

from .pipeline.axes import ImageAxes  # noqa: E402
from .pipeline.config import ParameterError, RenderConfig  # noqa: E402
from .pipeline.molecules import MoleculeList, MoleculeListError  # noqa: E402
from .pipeline.pipeline import RenderResult, render_molecule_lists  # noqa: E402

__all__ = [
    "__version__",
    "ImageAxes",
    "MoleculeList",
    "MoleculeListError",
    "ParameterError",
    "RenderConfig",
    "RenderResult",
    "render_molecule_lists",
]
