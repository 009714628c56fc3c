import math
from datetime import datetime

import numpy as np
import pytest

from stormrender.pipeline.axes import ImageAxes
from stormrender.pipeline.config import RenderConfig
from stormrender.pipeline.utils import round_half_away, to_jsonable
from stormrender.utils import LOG_DIR_ENV, default_log_dir, resolve_log_dir, run_log_path


def test_round_half_away():
    assert round_half_away(2.5) == 3
    assert round_half_away(-2.5) == -3
    assert isinstance(round_half_away(0.4), int)
    assert np.array_equal(round_half_away([0.5, 1.5, -0.5]), [1.0, 2.0, -1.0])


def test_to_jsonable_image_axes():
    ax = ImageAxes(xmin=0, xmax=np.float64(2.5), ymin=0, ymax=1, zm=4.0, H=np.int64(4), W=10)
    d = to_jsonable(ax)
    assert d == {"xmin": 0, "xmax": 2.5, "ymin": 0, "ymax": 1, "zm": 4.0, "scale": 1.0, "H": 4, "W": 10}
    assert type(d["H"]) is int


def test_to_jsonable_render_config_arrays_and_inf():
    cfg = RenderConfig(weights=np.array([3.0, 2.0, 1.0]), filters=[np.array([True, False])])
    d = to_jsonable(cfg)
    assert d["weights"] == [3.0, 2.0, 1.0]
    assert d["filters"] == [[True, False]]
    assert d["z_range"] == [-500.0, 500.0]
    assert to_jsonable({"edges": np.array([0.0, 1.0, np.inf]), "nan": math.nan}) == {"edges": [0.0, 1.0, None], "nan": None}


def test_to_jsonable_rejects_unknown_types():
    with pytest.raises(TypeError, match="object"):
        to_jsonable(object())


def test_resolve_log_dir_precedence(tmp_path, monkeypatch):
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path / "env"))
    assert resolve_log_dir(tmp_path / "arg") == tmp_path / "arg"
    assert (tmp_path / "arg").is_dir()
    assert resolve_log_dir() == tmp_path / "env"

    monkeypatch.delenv(LOG_DIR_ENV)
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setattr("platform.system", lambda: "Linux")
    assert default_log_dir() == tmp_path / "state" / "stormrender" / "logs"


def test_run_log_path_is_timestamped(tmp_path):
    p = run_log_path(tmp_path, when=datetime(2024, 1, 2, 3, 4, 5))
    assert p == tmp_path / "stormrender_20240102_030405.log"
