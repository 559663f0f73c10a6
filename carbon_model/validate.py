# carbon_model/validate.py
from __future__ import annotations

import logging
import math
import sys
import warnings
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from .schema import COMPOSITE_CONSTRAINTS, SCHEMA
from .types import ModelInputs, NonPositiveSeries

logger = logging.getLogger("carbon_model.validate")

CENT = 0.01


class InputValidationError(ValueError):
    """Raised for any input violation, before any computation happens."""


class OpeningBalanceWarning(UserWarning):
    """Opening cash does not match the opening equity/PP&E position."""


# ------------------------------
# Loose normalisers (form-style input)
# ------------------------------
def parse_number_loose(v: Any) -> float:
    """Accept 1234, "1,234", "$1,234" -> 1234.0. None and "" are 0."""
    if v is None:
        return 0.0
    if isinstance(v, bool):
        return float(v)
    if isinstance(v, (int, float)):
        return float(v)
    cleaned = str(v).replace(",", "").replace("$", "").replace(" ", "")
    if cleaned == "":
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        raise InputValidationError(f"invalid number: {v!r}") from None


def normalize_rate(v: Any) -> float:
    """5, "5", "5%" and 0.05 all mean 0.05. Result must sit in [0, 1]."""
    if isinstance(v, str) and v.strip().endswith("%"):
        raw = parse_number_loose(v.strip()[:-1])
    else:
        raw = parse_number_loose(v)
    rate = raw / 100.0 if raw > 1 else raw
    if not (0.0 <= rate <= 1.0):
        raise InputValidationError(f"rate must be between 0 and 1, got {v!r}")
    return rate


def normalize_outflow(v: Any) -> float:
    """Costs are entered as positive amounts on forms; the engine wants them negative."""
    return -abs(parse_number_loose(v))


def normalize_flag(v: Any) -> int:
    if isinstance(v, bool):
        return 1 if v else 0
    if v == 1 or str(v).strip().lower() in ("1", "true", "yes"):
        return 1
    return 0


# ------------------------------
# Strict validation
# ------------------------------
def _number(v: Any, where: str) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise InputValidationError(f"{where} must be a number, got {v!r}")
    x = float(v)
    if not math.isfinite(x):
        raise InputValidationError(f"{where} must be finite, got {v!r}")
    return x


def _integer(v: Any, where: str) -> int:
    x = _number(v, where)
    if not x.is_integer():
        raise InputValidationError(f"{where} must be an integer, got {v!r}")
    return int(x)


def _series(data: Mapping[str, Any], key: str, years: Sequence[int]) -> List[float]:
    raw = data[key]
    if not isinstance(raw, (list, tuple)):
        raise InputValidationError(f"{key} must be a list with one value per year")
    if len(raw) != len(years):
        raise InputValidationError(
            f"length of {key} must equal years length ({len(years)}), got {len(raw)}"
        )
    return [_number(v, f"{key}[{years[i]}]") for i, v in enumerate(raw)]


def _years(raw: Any) -> List[int]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise InputValidationError("years must be a non-empty list")
    years = [_integer(y, f"years[{i}]") for i, y in enumerate(raw)]
    for prev, cur in zip(years, years[1:]):
        if cur <= prev:
            raise InputValidationError(f"years must be strictly increasing ({prev} then {cur})")
    return years


def validate_inputs(data: Mapping[str, Any]) -> ModelInputs:
    """
    Fail-closed validation of a raw (flat) input mapping.

      - unknown keys are rejected, required keys must be present
      - every per-year list has exactly len(years) entries
      - rates in [0, 1], debt_duration_years a positive integer
      - issuance_flag strictly 0/1
      - negative-convention lines <= 0, quantity/inflow lines >= 0
      - at most one purchase year and one debt-draw year
      - purchase_share > 0 whenever a purchase is set

    The first violation raises InputValidationError. On success the
    opening-balance advisory runs (warning only).
    """
    if not isinstance(data, Mapping):
        raise InputValidationError(f"inputs must be a mapping, got {type(data).__name__}")

    unknown = sorted(k for k in data.keys() if k not in SCHEMA)
    if unknown:
        raise InputValidationError(f"unknown input keys: {unknown}")
    missing = [k for k, meta in SCHEMA.items() if meta.get("required") and k not in data]
    if missing:
        raise InputValidationError(f"missing required keys: {missing}")

    years = _years(data["years"])
    p: Dict[str, Any] = {"years": years}

    for key, meta in SCHEMA.items():
        if key == "years":
            continue
        kind = meta["type"]
        if kind == "series":
            vals = _series(data, key, years)
            sign = meta.get("sign")
            for i, v in enumerate(vals):
                if sign == "-" and v > 0:
                    raise InputValidationError(
                        f"{key}[{years[i]}] must be <= 0 (negative convention), got {v}"
                    )
                if sign == "+" and v < 0:
                    raise InputValidationError(f"{key}[{years[i]}] must be >= 0, got {v}")
            p[key] = vals
        elif kind == "int":
            v = _integer(data[key], key)
            if v < int(meta.get("min", 1)):
                raise InputValidationError(f"{key} must be a positive integer, got {data[key]!r}")
            p[key] = v
        else:
            v = _number(data.get(key, meta.get("default", 0.0)), key)
            lo = meta.get("min")
            hi = meta.get("max")
            if lo is not None and hi is not None and not (lo <= v <= hi):
                raise InputValidationError(f"{key} outside allowed range [{lo}, {hi}]: {v}")
            p[key] = v

    for i, flag in enumerate(p["issuance_flag"]):
        if flag not in (0.0, 1.0):
            raise InputValidationError(f"issuance_flag[{years[i]}] must be 0 or 1, got {flag}")

    for rule in COMPOSITE_CONSTRAINTS:
        if not rule["check"](p):
            raise InputValidationError(rule["message"])

    inputs = ModelInputs(
        years=tuple(years),
        credits_generated=tuple(p["credits_generated"]),
        price_per_credit=tuple(p["price_per_credit"]),
        issuance_flag=tuple(int(f) for f in p["issuance_flag"]),
        feasibility_costs=NonPositiveSeries(p["feasibility_costs"], "feasibility_costs"),
        pdd_costs=NonPositiveSeries(p["pdd_costs"], "pdd_costs"),
        mrv_costs=NonPositiveSeries(p["mrv_costs"], "mrv_costs"),
        staff_costs=NonPositiveSeries(p["staff_costs"], "staff_costs"),
        depreciation=NonPositiveSeries(p["depreciation"], "depreciation"),
        capex=NonPositiveSeries(p["capex"], "capex"),
        equity_injection=tuple(p["equity_injection"]),
        debt_draw=tuple(p["debt_draw"]),
        purchase_amount=tuple(p["purchase_amount"]),
        cogs_rate=p["cogs_rate"],
        income_tax_rate=p["income_tax_rate"],
        ar_rate=p["ar_rate"],
        ap_rate=p["ap_rate"],
        interest_rate=p["interest_rate"],
        purchase_share=p["purchase_share"],
        discount_rate=p["discount_rate"],
        debt_duration_years=p["debt_duration_years"],
        initial_equity_t0=p["initial_equity_t0"],
        opening_cash_y1=p["opening_cash_y1"],
        initial_ppe=p["initial_ppe"],
    )
    check_opening_balance(inputs)
    return inputs


def required_opening_cash(inputs: ModelInputs) -> float:
    """Cash needed at the start of year 1 for the opening position to balance."""
    return inputs.initial_equity_t0 - inputs.initial_ppe


def check_opening_balance(inputs: ModelInputs) -> float:
    """
    Advisory only. Returns the gap between configured and required opening
    cash; a gap above one cent predicts a non-zero balance_check later.
    """
    gap = inputs.opening_cash_y1 - required_opening_cash(inputs)
    if abs(gap) > CENT:
        msg = (
            f"opening_cash_y1={inputs.opening_cash_y1:,.2f} but the opening position needs "
            f"{required_opening_cash(inputs):,.2f} (initial_equity_t0 - initial_ppe); "
            f"expect balance_check of {gap:,.2f} every year"
        )
        logger.warning(msg)
        warnings.warn(msg, OpeningBalanceWarning, stacklevel=3)
    return gap


# ------------------------------
# File helpers
# ------------------------------
def load_params_from_file(path: Path) -> Dict[str, Any]:
    from .config import load_model_config

    p = Path(path)
    if p.is_dir():
        # scenario_runner handles directories; keep this function file-only
        raise InputValidationError(f"{p} is a directory (expected a file)")
    return load_model_config(p)


def iter_input_files(p: Path) -> Iterable[Path]:
    if p.is_file():
        yield p
    elif p.is_dir():
        for ext in ("*.yaml", "*.yml", "*.json"):
            yield from sorted(p.glob(ext))


def validate_files(paths: Iterable[str | Path]) -> int:
    """Validate each file (or directory of files); 0 if all pass, 1 otherwise."""
    from .config import ConfigError, split_meta

    had_error = False
    for raw in paths:
        target = Path(raw)
        any_seen = False
        for f in iter_input_files(target):
            any_seen = True
            try:
                _, params = split_meta(load_params_from_file(f))
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", OpeningBalanceWarning)
                    validate_inputs(params)
                print(f"OK: {f}")
            except (InputValidationError, ConfigError) as e:
                print(f"{f}: {e}", file=sys.stderr)
                had_error = True
        if not any_seen:
            print(f"{target}: no YAML/JSON files found", file=sys.stderr)
            had_error = True
    return 1 if had_error else 0


__all__ = [
    "InputValidationError",
    "OpeningBalanceWarning",
    "parse_number_loose",
    "normalize_rate",
    "normalize_outflow",
    "normalize_flag",
    "validate_inputs",
    "required_opening_cash",
    "check_opening_balance",
    "load_params_from_file",
    "iter_input_files",
    "validate_files",
]
