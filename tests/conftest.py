"""Shared fixtures for the render tests."""

import numpy as np
import pytest

from stormrender.pipeline.axes import ImageAxes
from stormrender.pipeline.molecules import MoleculeList


@pytest.fixture
def diagonal_mlist():
    """Three molecules on the diagonal, amplitude 4 (sigma 2)."""
    return MoleculeList(x=[1.0, 2.0, 3.0], y=[1.0, 2.0, 3.0], a=[4.0, 4.0, 4.0])


@pytest.fixture
def window10():
    return ImageAxes(xmin=0.0, xmax=10.0, ymin=0.0, ymax=10.0, zm=1.0)


@pytest.fixture
def random_mlist():
    rng = np.random.default_rng(0)
    n = 500
    return MoleculeList(
        x=rng.uniform(2, 8, n),
        y=rng.uniform(2, 8, n),
        z=rng.uniform(-400, 400, n),
        a=rng.uniform(50, 5000, n),
    )
