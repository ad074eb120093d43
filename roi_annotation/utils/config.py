"""
Editor configuration.

Defaults live in ``get_default_cfg``; ``load_cfg`` layers ``ROI_*``
environment variables on top and converts them back to the type of the
default they replace.
"""

import os
from gettext import gettext as _
from typing import Mapping, Optional

from easydict import EasyDict as edict

from ..core.annotation.engine import DEFAULT_PALETTE
from ..core.annotation.state import ROI_VERSION, is_hex_color
from .env import load_cfg_from_env

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def get_default_cfg() -> edict:
    cfg = edict()
    cfg.max_history_size = 50
    cfg.roi_version = ROI_VERSION
    cfg.palette = list(DEFAULT_PALETTE)

    cfg.interaction = edict()
    cfg.interaction.vertex_radius = 6
    cfg.interaction.hit_margin = 3
    cfg.interaction.click_suppress_ms = 100
    cfg.interaction.double_click_ms = 300
    cfg.interaction.double_click_px = 5

    cfg.render = edict()
    cfg.render.fill_alpha = 0.2
    cfg.render.selected_fill_alpha = 0.3
    cfg.render.stroke_alpha = 0.8
    cfg.render.selected_stroke_alpha = 1.0
    cfg.render.line_width = 2
    return cfg


def _coerce(default, value):
    if not isinstance(value, str) or isinstance(default, str):
        return value
    if isinstance(default, bool):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(_("Not a boolean: {value}").format(value=value))
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _coerce_tree(defaults: edict, cfg: edict):
    for key, value in cfg.items():
        if key not in defaults:
            continue
        default = defaults[key]
        if isinstance(default, dict):
            if isinstance(value, dict):
                _coerce_tree(default, value)
            continue
        cfg[key] = _coerce(default, value)


def load_cfg(env: Optional[Mapping[str, str]] = None) -> edict:
    """
    Build the configuration, applying ``ROI_*`` environment overrides.

    Raises:
        ValueError: If an override cannot be converted to the default's type
    """
    if env is None:
        env = os.environ
    cfg = load_cfg_from_env(get_default_cfg(), env)
    _coerce_tree(get_default_cfg(), cfg)
    bad = [c for c in cfg.palette if not is_hex_color(c)]
    if not cfg.palette or bad:
        raise ValueError(
            _("Palette must hold #RRGGBB colors: {colors}").format(colors=cfg.palette)
        )
    return cfg
