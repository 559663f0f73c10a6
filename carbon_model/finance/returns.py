# carbon_model/finance/returns.py
"""
Returns layer: free cash flow to equity, the pre-purchase investor stream,
and the scalar metrics summary (NPV / IRR / payback / DSCR / totals).
IRR and NPV themselves live only in finance.irr.
"""
from __future__ import annotations

import logging
from typing import List

from carbon_model.finance.irr import build_equity_cashflows, irr, npv, payback_period
from carbon_model.finance.statements import StatementSet
from carbon_model.types import (
    CarbonStreamRow,
    CreditAllocation,
    FreeCashFlowRow,
    Metrics,
    ModelInputs,
)

logger = logging.getLogger("carbon_model.finance.returns")


def free_cash_flow(inputs: ModelInputs, statements: StatementSet) -> List[FreeCashFlowRow]:
    """fcfe = NI + |dep| - delta(AR - AP) + capex + (draw + principal)."""
    rows: List[FreeCashFlowRow] = []
    prev_wc = 0.0
    for t, year in enumerate(inputs.years):
        inc = statements.income_statements[t]
        bs = statements.balance_sheets[t]
        d = statements.debt_schedule[t]

        wc = bs.accounts_receivable - bs.accounts_payable
        change_wc = wc - prev_wc
        prev_wc = wc
        dep_addback = inputs.depreciation.magnitude(t)
        net_borrowing = d.draw + d.principal_payment

        rows.append(FreeCashFlowRow(
            year=year,
            net_income=inc.net_income,
            depreciation_addback=dep_addback,
            change_working_capital=change_wc,
            capex=inputs.capex[t],
            net_borrowing=net_borrowing,
            fcf_to_equity=inc.net_income + dep_addback - change_wc + inputs.capex[t] + net_borrowing,
        ))
    return rows


def carbon_stream(inputs: ModelInputs, allocation: CreditAllocation) -> List[CarbonStreamRow]:
    """Buyer's view of the pre-purchase: cash out, credits in (valued at spot)."""
    rows: List[CarbonStreamRow] = []
    for t, year in enumerate(inputs.years):
        delivered = allocation.delivered[t]
        rows.append(CarbonStreamRow(
            year=year,
            purchase_amount=inputs.purchase_amount[t],
            entitled_credits=allocation.entitlement[t],
            purchased_credits=delivered,
            implied_purchase_price=allocation.implied_purchase_price,
            investor_cash_flow=-inputs.purchase_amount[t] + delivered * inputs.price_per_credit[t],
        ))
    return rows


def compute_metrics(
    inputs: ModelInputs,
    allocation: CreditAllocation,
    statements: StatementSet,
    fcf: List[FreeCashFlowRow],
    stream: List[CarbonStreamRow],
) -> Metrics:
    income = statements.income_statements
    cash = statements.cash_flow_statements

    total_revenue = sum(r.total_revenue for r in income)
    total_ebitda = sum(r.ebitda for r in income)
    total_net_income = sum(r.net_income for r in income)

    equity_cfs = build_equity_cashflows(inputs.initial_equity_t0, [r.fcf_to_equity for r in fcf])
    equity_irr = irr(equity_cfs)
    if equity_irr is None:
        logger.info("no equity IRR for this cash-flow series")
    investor_irr = irr([r.investor_cash_flow for r in stream]) if allocation.purchase_index is not None else None

    dscr_vals = [d.dscr for d in statements.debt_schedule if d.debt_service > 0]
    min_cash = min(r.cash_end for r in cash)

    return Metrics(
        total_credits_generated=sum(inputs.credits_generated),
        total_credits_issued=sum(allocation.issued),
        total_revenue=total_revenue,
        total_ebitda=total_ebitda,
        total_net_income=total_net_income,
        ebitda_margin=total_ebitda / total_revenue if total_revenue > 0 else 0.0,
        net_margin=total_net_income / total_revenue if total_revenue > 0 else 0.0,
        total_capex=inputs.capex.total_magnitude(),
        peak_funding_required=max(0.0, -min_cash),
        ending_cash=cash[-1].cash_end,
        implied_purchase_price=allocation.implied_purchase_price,
        npv=npv(inputs.discount_rate, equity_cfs),
        equity_irr=equity_irr,
        investor_irr=investor_irr,
        payback_period=payback_period(equity_cfs),
        dscr_minimum=min(dscr_vals) if dscr_vals else 0.0,
        dscr_average=sum(dscr_vals) / len(dscr_vals) if dscr_vals else 0.0,
    )


__all__ = ["free_cash_flow", "carbon_stream", "compute_metrics"]
