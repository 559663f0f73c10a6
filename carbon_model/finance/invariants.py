# carbon_model/finance/invariants.py
"""Accounting identities every model run must satisfy, checked on the output mapping."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

CENT = 0.01


@dataclass
class InvariantResult:
    name: str
    description: str
    passed: bool
    details: Optional[str] = None


def _check(out: List[InvariantResult], name: str, desc: str, expected: float, actual: float,
           tol: float = CENT) -> None:
    delta = abs(expected - actual)
    out.append(InvariantResult(
        name=name,
        description=desc,
        passed=delta < tol,
        details=None if delta < tol else f"expected {expected:.6f}, got {actual:.6f} (delta {delta:.6f})",
    ))


def check_invariants(result: Dict[str, Any]) -> List[InvariantResult]:
    """Run every identity on a ModelResult.to_dict() mapping."""
    res: List[InvariantResult] = []
    inc = result.get("incomeStatements", [])
    bs = result.get("balanceSheets", [])
    cf = result.get("cashFlowStatements", [])
    debt = result.get("debtSchedule", [])
    opening_cash = float(result.get("inputs", {}).get("opening_cash_y1", 0.0))

    for i, r in enumerate(inc):
        y = r["year"]
        _check(res, f"revenue_identity_{y}", "total_revenue = spot_revenue + pre_purchase_revenue",
               r["spot_revenue"] + r["pre_purchase_revenue"], r["total_revenue"])
        _check(res, f"opex_total_{y}", "opex_total = feasibility + pdd + mrv + staff",
               r["feasibility_costs"] + r["pdd_costs"] + r["mrv_costs"] + r["staff_costs"], r["opex_total"])
        if i < len(debt):
            _check(res, f"interest_sign_{y}", "income-statement interest = -schedule interest",
                   -debt[i]["interest_expense"], r["interest_expense"])
            ds = abs(debt[i]["principal_payment"]) + debt[i]["interest_expense"]
            expected = r["ebitda"] / ds if ds > 0 else 0.0
            _check(res, f"dscr_{y}", "dscr = ebitda / (|principal| + interest)",
                   expected, debt[i]["dscr"], tol=1e-6)

    for r in bs:
        y = r["year"]
        _check(res, f"balance_check_{y}", "total_assets = total_liabilities + total_equity",
               r["total_liabilities"] + r["total_equity"], r["total_assets"])

    for i, r in enumerate(cf):
        y = r["year"]
        _check(res, f"cash_roll_{y}", "cash_end = cash_start + operating + investing + financing",
               r["cash_start"] + r["operating_cash_flow"] + r["investing_cash_flow"] + r["financing_cash_flow"],
               r["cash_end"], tol=1e-6)
        start = cf[i - 1]["cash_end"] if i > 0 else opening_cash
        _check(res, f"cash_start_{y}", "cash_start = previous cash_end (opening_cash_y1 in year 1)",
               start, r["cash_start"], tol=1e-6)
        if i < len(bs):
            _check(res, f"cash_tie_out_{y}", "balance-sheet cash = cash-flow cash_end",
                   r["cash_end"], bs[i]["cash"])
    return res


def failed(results: List[InvariantResult]) -> List[InvariantResult]:
    return [r for r in results if not r.passed]


__all__ = ["InvariantResult", "check_invariants", "failed"]
