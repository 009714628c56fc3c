import numpy as np

from stormrender.pipeline.axes import ImageAxes
from stormrender.pipeline.binning import bin_counts, in_slice, in_window, to_pixel, z_slice_edges


def test_in_window_half_open():
    axes = ImageAxes(xmin=0.0, xmax=10.0, ymin=0.0, ymax=10.0, zm=1.0, H=10, W=10)
    x = np.array([0.0, 10.0, 9.99, 5.0, -0.01])
    y = np.array([0.0, 5.0, 9.99, 10.0, 5.0])
    assert in_window(x, y, axes).tolist() == [True, False, True, False, False]


def test_to_pixel_uses_effective_zoom():
    axes = ImageAxes(xmin=2.0, xmax=4.0, ymin=1.0, ymax=3.0, zm=5.0, scale=2.0, H=20, W=20)
    xi, yi = to_pixel(np.array([2.0, 3.5]), np.array([1.0, 1.25]), axes)
    assert np.allclose(xi, [0.0, 15.0])
    assert np.allclose(yi, [0.0, 2.5])


def test_bin_counts_edges():
    yi = np.array([0.0, 2.5, 9.0, 9.5, -0.1, 10.0, 8.999])
    xi = np.array([0.0, 3.7, 9.0, 1.0, 1.0, 1.0, 4.0])
    counts = bin_counts(yi, xi, (10, 10))
    assert counts.shape == (10, 10)
    assert counts.sum() == 4
    assert counts[0, 0] == 1
    assert counts[2, 3] == 1
    assert counts[9, 9] == 1
    assert counts[8, 4] == 1


def test_bin_counts_accumulates_duplicates():
    counts = bin_counts(np.array([1.2, 1.7, 1.0]), np.array([3.1, 3.9, 3.0]), (5, 6))
    assert counts[1, 3] == 3
    assert counts.sum() == 3


def test_bin_counts_ignores_non_finite():
    counts = bin_counts(np.array([np.nan, 1.0, np.inf]), np.array([1.0, 1.0, 1.0]), (4, 4))
    assert counts.sum() == 1


def test_bin_counts_empty():
    counts = bin_counts(np.array([]), np.array([]), (3, 4))
    assert counts.shape == (3, 4)
    assert counts.sum() == 0


def test_z_slice_edges():
    assert z_slice_edges((-500, 500), 1).tolist() == [-np.inf, np.inf]
    assert z_slice_edges((-500, 500), 2).tolist() == [-np.inf, 0.0, np.inf]
    edges = z_slice_edges((-300, 300), 3)
    assert np.allclose(edges[1:-1], [-100.0, 100.0])


def test_in_slice_boundaries():
    edges = z_slice_edges((-500, 500), 2)
    z = np.array([-1e6, -1.0, 0.0, 1e6])
    assert in_slice(z, edges, 0).tolist() == [True, True, False, False]
    assert in_slice(z, edges, 1).tolist() == [False, False, True, True]
