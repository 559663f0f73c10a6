# carbon_model/finance/irr.py
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

import numpy_financial as npf

IRR_LO, IRR_HI = -0.9999, 10.0


# ---------- NPV ----------
def npv(rate: float, cashflows: Iterable[float]) -> float:
    """
    Classic discounted cash flow, t0 at index 0:
        NPV(r) = sum_{t=0..N} CF[t] / (1+r)^t
    """
    r = float(rate)
    if r <= -1.0:
        # Avoid division by zero / negatives beyond -100%
        r = -0.999999
    total = 0.0
    for t, cf in enumerate(cashflows):
        total += float(cf) / ((1.0 + r) ** t)
    return total


# ---------- IRR (periodic) ----------
def _irr_bisection(cashflows: List[float]) -> Optional[float]:
    """
    Bracketed bisection on NPV(r)=0. Returns None if sign never changes.
    Search domain: [-0.9999, 10.0] (i.e., -99.99% to 1000%).
    """
    lo, hi = IRR_LO, IRR_HI
    f_lo = npv(lo, cashflows)
    f_hi = npv(hi, cashflows)

    if f_lo == 0.0:
        return lo
    if f_hi == 0.0:
        return hi
    if (f_lo > 0 and f_hi > 0) or (f_lo < 0 and f_hi < 0):
        return None

    for _ in range(200):
        mid = (lo + hi) / 2.0
        f_mid = npv(mid, cashflows)
        if abs(f_mid) < 1e-10:
            return mid
        # keep the sub-interval where sign changes
        if (f_lo < 0 and f_mid > 0) or (f_lo > 0 and f_mid < 0):
            hi, f_hi = mid, f_mid
        else:
            lo, f_lo = mid, f_mid
    return (lo + hi) / 2.0


def irr(cashflows: Iterable[float]) -> Optional[float]:
    """
    Periodic IRR as a decimal rate (0.18 = 18%).

    None ("no IRR") when the series has no sign change or no root is found
    in [-99.99%, 1000%]. numpy-financial is tried first; its result is kept
    only if finite and inside the search domain, otherwise bisection decides.
    """
    cfs = [float(x) for x in cashflows]
    if not any(cf > 0 for cf in cfs) or not any(cf < 0 for cf in cfs):
        return None
    val = float(npf.irr(cfs))
    if math.isfinite(val) and IRR_LO <= val <= IRR_HI:
        return val
    return _irr_bisection(cfs)


# ---------- Payback ----------
def payback_period(cashflows: Sequence[float]) -> Optional[float]:
    """
    Years after t0 until the running cumulative sum turns non-negative, with
    linear interpolation inside the crossing period. 0.0 if the cumulative
    never goes negative, None if it never recovers.
    """
    cum = 0.0
    went_negative = False
    for i, cf in enumerate(cashflows):
        prev = cum
        cum += float(cf)
        if cum < 0:
            went_negative = True
        elif went_negative:
            frac = -prev / float(cf) if cf else 0.0
            return (i - 1) + frac
    return None if went_negative else 0.0


# ---------- Helpers to assemble CF series ----------
def build_equity_cashflows(initial_equity_t0: float, fcf_to_equity: Iterable[float]) -> List[float]:
    """Equity CF: [-initial equity at t0] + [FCFE each year]."""
    out: List[float] = [-float(initial_equity_t0)]
    out.extend(float(x) for x in fcf_to_equity)
    return out


__all__ = ["npv", "irr", "payback_period", "build_equity_cashflows"]
