import numpy as np

from stormrender.pipeline.normalize import draw_scalebar, normalize_stack, scalebar_length_px


def test_autocontrast_scales_to_uint16_max():
    stack = np.zeros((4, 4, 2))
    stack[1, 1, 0] = 2.0
    stack[2, 2, 1] = 1.0
    out = normalize_stack(stack, autocontrast=True)
    assert out.dtype == np.uint16
    assert out.max() == 65535
    assert out[1, 1, 0] == 65535
    assert out[2, 2, 1] == 32768  # 32767.5 rounds half away from zero


def test_autocontrast_all_zero():
    with np.errstate(all="raise"):
        out = normalize_stack(np.zeros((3, 3, 1)), autocontrast=True)
    assert out.dtype == np.uint16
    assert not out.any()


def test_raw_uint8_saturates():
    stack = np.array([0.4, 0.5, 254.6, 300.0, -3.0]).reshape(1, 5, 1)
    out = normalize_stack(stack, autocontrast=False)
    assert out.dtype == np.uint8
    assert out.ravel().tolist() == [0, 1, 255, 255, 0]


def test_scalebar_length():
    assert scalebar_length_px(500, 160, 10) == 31


def test_draw_scalebar_every_slice():
    img = np.zeros((100, 100, 2), dtype=np.uint16)
    img[90, 10, 0] = 7
    draw_scalebar(img, 500, 160, 10, width=1)
    bar = img[90:93, 10:41, :]
    assert np.all(bar == 65535)
    assert np.count_nonzero(img) == bar.size
    assert img[89, 10, 0] == 0
    assert img[90, 41, 1] == 0


def test_draw_scalebar_uint8():
    img = np.zeros((50, 50, 1), dtype=np.uint8)
    draw_scalebar(img, 160, 160, 10, width=2)
    assert np.all(img[45:50, 10:20, 0] == 255)
    assert np.count_nonzero(img) == 5 * 10


def test_draw_scalebar_disabled_and_clipped():
    img = np.zeros((10, 10, 1), dtype=np.uint16)
    draw_scalebar(img, 0, 160, 10)
    assert not img.any()
    # bar starts right of the image: nothing drawn, no error
    draw_scalebar(img, 500, 160, 10)
    assert not img.any()
    wide = np.zeros((10, 20, 1), dtype=np.uint16)
    draw_scalebar(wide, 500, 160, 10, width=3)
    assert np.all(wide[9:10, 10:20, 0] == 65535)
    assert np.count_nonzero(wide) == 10
