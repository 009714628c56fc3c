import numpy as np

from stormrender.pipeline.axes import ImageAxes
from stormrender.pipeline.binning import z_slice_edges
from stormrender.pipeline.classes import WidthClasses
from stormrender.pipeline.render import KERNEL_SIZE, KernelCache, accumulate_slice, blur, gaussian_kernel


def _classes():
    return WidthClasses(
        edges=np.array([0.0, 1.0, np.inf]),
        radii=np.array([1.0, 2.0]),
        weights=np.array([10.0, 5.0]),
    )


def test_gaussian_kernel_normalized_and_symmetric():
    k = gaussian_kernel(3.0)
    assert k.shape == (KERNEL_SIZE, KERNEL_SIZE)
    assert np.isclose(k.sum(), 1.0)
    assert np.allclose(k, k.T)
    assert np.allclose(k, k[::-1, ::-1])
    # even support: the peak is shared by the four central samples
    c = KERNEL_SIZE // 2
    assert np.isclose(k[c - 1, c - 1], k.max())
    assert np.isclose(k[c, c], k.max())


def test_tiny_sigma_kernel_splits_between_center_samples():
    k = gaussian_kernel(1e-6)
    c = KERNEL_SIZE // 2
    assert np.allclose(k[c - 1 : c + 1, c - 1 : c + 1], 0.25)
    assert np.count_nonzero(k) == 4


def test_kernel_cache_memoizes():
    cache = KernelCache()
    a = cache.get(1.5)
    b = cache.get(1.5)
    assert a is b
    cache.get(2.0)
    assert len(cache) == 2


def test_blur_preserves_mass_and_spreads():
    img = np.zeros((60, 60))
    img[30, 30] = 1.0
    out = blur(img, 1.0)
    assert out.shape == img.shape
    assert np.isclose(out.sum(), 1.0)
    assert np.count_nonzero(out) > 1
    # anchor matches an even-sized same-size filter: mass centered between pixels 29 and 30
    peak = out.max()
    for r, c in [(29, 29), (29, 30), (30, 29), (30, 30)]:
        assert np.isclose(out[r, c], peak)


def test_blur_non_positive_radius_is_identity():
    img = np.zeros((5, 5))
    img[2, 2] = 3.0
    assert blur(img, 0.0) is img


def test_blur_zero_padded_boundary_loses_mass():
    img = np.zeros((20, 20))
    img[0, 0] = 1.0
    out = blur(img, 2.0)
    assert 0.0 < out.sum() < 1.0


def test_accumulate_slice_fast_and_blurred():
    axes = ImageAxes(xmin=0.0, xmax=30.0, ymin=0.0, ymax=30.0, zm=1.0, H=30, W=30)
    x = np.array([10.0, 15.0, 35.0])
    y = np.array([11.0, 15.0, 5.0])
    z = np.zeros(3)
    sigma = np.array([0.5, 3.0, 0.5])
    keep = np.ones(3, dtype=bool)
    edges = z_slice_edges((-500, 500), 1)

    fast = accumulate_slice(x, y, z, sigma, keep, axes, _classes(), edges, 0, fast=True)
    assert fast[11, 10] == 10.0
    assert fast[15, 15] == 5.0
    assert np.count_nonzero(fast) == 2

    slow = accumulate_slice(x, y, z, sigma, keep, axes, _classes(), edges, 0, fast=False)
    assert np.isclose(slow.sum(), fast.sum())
    assert np.count_nonzero(slow) > np.count_nonzero(fast)
    assert np.any((slow > 0) & (fast == 0))


def test_accumulate_slice_respects_filter_and_slice():
    axes = ImageAxes(xmin=0.0, xmax=10.0, ymin=0.0, ymax=10.0, zm=1.0, H=10, W=10)
    x = np.array([2.0, 4.0])
    y = np.array([2.0, 4.0])
    z = np.array([-100.0, 100.0])
    sigma = np.array([0.5, 0.5])
    edges = z_slice_edges((-500, 500), 2)

    img = accumulate_slice(x, y, z, sigma, np.array([True, True]), axes, _classes(), edges, 1, fast=True)
    assert img[4, 4] == 10.0
    assert img[2, 2] == 0.0

    img = accumulate_slice(x, y, z, sigma, np.array([True, False]), axes, _classes(), edges, 1, fast=True)
    assert not img.any()
