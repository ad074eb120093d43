import roi_annotation.utils.i18n  # noqa:F401

from easydict import EasyDict as edict

from .env import load_cfg_from_env


def test_load_cfg_from_env():
    input_dict = {"ROI_a": 2, "ROI_eoq__trabson": 3, "OTHER_b": 4}
    loaded = load_cfg_from_env(edict(), input_dict)
    assert loaded.a == 2
    assert loaded.eoq.trabson == 3
    assert "b" not in loaded


def test_load_cfg_from_env_lowercases_keys():
    loaded = load_cfg_from_env(edict(), {"ROI_MAX_HISTORY_SIZE": "10"})
    assert loaded.max_history_size == "10"
