# carbon_model/finance/debt.py
"""
Single-facility debt helpers:
 - annuity_payment(rate, nper, pv)
 - amortization_schedule(principal, annual_rate, tenor_years, periods=None)
 - build_debt_schedule(inputs)
 - apply_dscr(schedule, ebitda)

Numbers are annual. The facility is drawn once; repayment starts in the
draw year with a constant (annuity) payment split into interest on the
outstanding balance and principal. Interest expense booked for a year is
charged on that year's beginning balance only.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from carbon_model.types import DebtScheduleRow, ModelInputs

logger = logging.getLogger("carbon_model.finance.debt")


def annuity_payment(rate: float, nper: int, pv: float) -> float:
    """Constant payment per period (Excel PMT, sign flipped to positive)."""
    if nper <= 0:
        raise ValueError("nper must be positive")
    if abs(rate) < 1e-12:
        return pv / nper
    return pv * rate / (1.0 - (1.0 + rate) ** (-nper))


def amortization_schedule(
    principal: float, annual_rate: float, tenor_years: int, periods: Optional[int] = None
) -> List[Dict[str, float]]:
    """
    Level (annuity) schedule with: period, opening, interest, principal, payment, balance.
    Principal is clamped to the outstanding balance so the last period lands on zero.
    `periods` stops the schedule early; the payment is still sized on the full tenor.
    """
    P = float(principal)
    r = float(annual_rate)
    n = int(tenor_years)
    A = annuity_payment(r, n, P)

    out: List[Dict[str, float]] = []
    bal = P
    stop = n if periods is None else max(0, min(n, int(periods)))
    for k in range(1, stop + 1):
        interest = bal * r
        paid = max(0.0, min(bal, A - interest))
        out.append({"period": float(k), "opening": bal, "interest": interest, "principal": paid,
                    "payment": interest + paid, "balance": max(0.0, bal - paid)})
        bal = max(0.0, bal - paid)
    return out


def build_debt_schedule(inputs: ModelInputs) -> List[DebtScheduleRow]:
    """
    One row per model year. Before the draw everything is zero; from the draw
    year on, principal follows the annuity schedule of the drawn amount and
    interest_expense = beginning_balance * interest_rate. DSCR starts at 0 and
    is filled by apply_dscr once EBITDA is known.
    """
    d = inputs.draw_index
    rate = inputs.interest_rate
    amort: List[Dict[str, float]] = []
    if d is not None:
        # only the periods that fall inside the model horizon are needed
        amort = amortization_schedule(inputs.debt_draw[d], rate, inputs.debt_duration_years,
                                      periods=inputs.horizon - d)
        logger.debug("facility %.2f drawn %s, payment %.6f over %d years",
                     inputs.debt_draw[d], inputs.years[d],
                     annuity_payment(rate, inputs.debt_duration_years, inputs.debt_draw[d]),
                     inputs.debt_duration_years)

    rows: List[DebtScheduleRow] = []
    beginning = 0.0
    for t, year in enumerate(inputs.years):
        draw = inputs.debt_draw[t]
        interest = beginning * rate
        principal = 0.0
        if d is not None and 0 <= t - d < len(amort):
            outstanding = beginning + draw
            paid = max(0.0, min(outstanding, amort[t - d]["principal"]))
            if outstanding - paid < 1e-9:
                paid = outstanding  # float dust in the final period
            principal = -paid
        ending = max(0.0, beginning + draw + principal)
        rows.append(DebtScheduleRow(
            year=year,
            beginning_balance=beginning,
            draw=draw,
            principal_payment=principal,
            ending_balance=ending,
            interest_expense=interest,
        ))
        beginning = ending
    return rows


def apply_dscr(schedule: Sequence[DebtScheduleRow], ebitda: Sequence[float]) -> None:
    """Back-fill DSCR = EBITDA / (|principal| + interest); 0 when there is no debt service."""
    for row, e in zip(schedule, ebitda):
        ds = row.debt_service
        row.dscr = e / ds if ds > 0 else 0.0


__all__ = ["annuity_payment", "amortization_schedule", "build_debt_schedule", "apply_dscr"]
