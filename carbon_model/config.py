from __future__ import annotations

from typing import Any, Dict, Tuple
import io
import json
import os

import yaml

from .schema import NEGATIVE_LINES, RATE_FIELDS, SERIES_FIELDS
from .validate import normalize_flag, normalize_outflow, normalize_rate, parse_number_loose

# Top-level keys that describe the scenario rather than the model.
META_KEYS = ("name", "description", "normalize")


class ConfigError(ValueError):
    """Config file missing, unreadable or not a mapping."""


def _flatten_grouped(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten shallow groups like {'operations': {...}, 'financing': {...}} into one level.
    A key defined twice (top level or across groups) is an error.
    """
    flat: Dict[str, Any] = {}
    origin: Dict[str, str] = {}
    for k, v in cfg.items():
        items = v.items() if isinstance(v, dict) else [(k, v)]
        for sk, sv in items:
            sk = str(sk)
            if sk in flat:
                raise ConfigError(f"key '{sk}' defined twice ({origin[sk]} and {k})")
            flat[sk] = sv
            origin[sk] = k
    return flat


def load_model_config(source: str | os.PathLike | io.StringIO) -> Dict[str, Any]:
    """
    Load YAML or JSON from a path or text stream and flatten one level of groups.
    Meta keys (name, description, normalize) stay in the returned mapping;
    use split_meta() to separate them from model inputs.
    """
    text: str
    is_json = False
    if hasattr(source, "read"):
        text = str(source.read())
    else:
        p = os.fspath(source)
        is_json = p.lower().endswith(".json")
        try:
            with open(p, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ConfigError(f"cannot read {p}: {e}") from e

    try:
        cfg = json.loads(text or "{}") if is_json else (yaml.safe_load(text) or {})
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse config: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"config must be a mapping, got {type(cfg).__name__}")
    return _flatten_grouped(cfg)


def normalize_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Apply the form-style normalisers (percent rates, positive costs, boolean flags)."""
    out = dict(params)
    for k in RATE_FIELDS:
        if k in out:
            out[k] = normalize_rate(out[k])
    for k in SERIES_FIELDS:
        if k not in out or not isinstance(out[k], (list, tuple)):
            continue
        if k in NEGATIVE_LINES:
            out[k] = [normalize_outflow(v) for v in out[k]]
        elif k == "issuance_flag":
            out[k] = [normalize_flag(v) for v in out[k]]
        elif k != "years":
            out[k] = [parse_number_loose(v) for v in out[k]]
    if "debt_duration_years" in out:
        # left as a float: the validator decides whether it is a whole number
        out["debt_duration_years"] = parse_number_loose(out["debt_duration_years"])
    for k in ("initial_equity_t0", "opening_cash_y1", "initial_ppe"):
        if k in out:
            out[k] = parse_number_loose(out[k])
    return out


def split_meta(cfg: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Return (meta, model_params); normalises params when meta['normalize'] is true."""
    params = dict(cfg)
    meta = {k: params.pop(k) for k in META_KEYS if k in params}
    if meta.get("normalize"):
        params = normalize_params(params)
    return meta, params
