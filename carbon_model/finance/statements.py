# carbon_model/finance/statements.py
"""
Three-statement builder.

Pipeline order is fixed:

    debt schedule -> income statements -> DSCR back-fill
      -> balance sheets (cash unresolved)
      -> cash-flow statements, writing cash_end back into each balance sheet

Cash is the plug: it is only known once the cash-flow statement exists, so
balance-sheet rows are built first and patched exactly once afterwards.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from carbon_model.finance.debt import apply_dscr, build_debt_schedule
from carbon_model.finance.revenue import allocate
from carbon_model.types import (
    BalanceSheetRow,
    CashFlowRow,
    CreditAllocation,
    DebtScheduleRow,
    IncomeStatementRow,
    ModelInputs,
)

logger = logging.getLogger("carbon_model.finance.statements")


@dataclass
class StatementSet:
    debt_schedule: List[DebtScheduleRow]
    income_statements: List[IncomeStatementRow]
    balance_sheets: List[BalanceSheetRow]
    cash_flow_statements: List[CashFlowRow]


class StatementBuilder:
    """Builds the interlinked statements for one validated input set."""

    def __init__(self, inputs: ModelInputs, allocation: Optional[CreditAllocation] = None):
        self.inputs = inputs
        # issuance and the revenue split are computed here, once, and shared
        self.allocation = allocation if allocation is not None else allocate(inputs)

    def build(self) -> StatementSet:
        debt = build_debt_schedule(self.inputs)
        income = self.income_statements(debt)
        apply_dscr(debt, [r.ebitda for r in income])
        balance = self.balance_sheets(income, debt)
        cash = self.cash_flow_statements(income, balance, debt)
        logger.debug("built statements for %d years", len(income))
        return StatementSet(debt, income, balance, cash)

    # ---------- income statement ----------
    def income_statements(self, debt: List[DebtScheduleRow]) -> List[IncomeStatementRow]:
        p = self.inputs
        a = self.allocation
        rows: List[IncomeStatementRow] = []
        for t, year in enumerate(p.years):
            spot = a.spot_revenue[t]
            pre = a.pre_purchase_revenue[t]
            total_revenue = spot + pre
            cogs = total_revenue * p.cogs_rate
            gross_profit = total_revenue - cogs
            opex_total = p.opex_total(t)  # stays negative
            ebitda = gross_profit + opex_total
            interest = debt[t].interest_expense
            ebt = ebitda - p.depreciation.magnitude(t) - interest
            tax = max(0.0, ebt * p.income_tax_rate)  # no credit on losses
            rows.append(IncomeStatementRow(
                year=year,
                credits_generated=p.credits_generated[t],
                credits_issued=a.issued[t],
                spot_revenue=spot,
                pre_purchase_revenue=pre,
                total_revenue=total_revenue,
                cogs=cogs,
                gross_profit=gross_profit,
                feasibility_costs=p.feasibility_costs[t],
                pdd_costs=p.pdd_costs[t],
                mrv_costs=p.mrv_costs[t],
                staff_costs=p.staff_costs[t],
                opex_total=opex_total,
                ebitda=ebitda,
                depreciation=p.depreciation[t],
                interest_expense=-interest,
                earnings_before_tax=ebt,
                income_tax=tax,
                net_income=ebt - tax,
            ))
        return rows

    # ---------- balance sheet ----------
    def balance_sheets(
        self, income: List[IncomeStatementRow], debt: List[DebtScheduleRow]
    ) -> List[BalanceSheetRow]:
        p = self.inputs
        a = self.allocation
        rows: List[BalanceSheetRow] = []

        ppe_gross = p.initial_ppe
        accumulated_dep = 0.0
        ppe_net = p.initial_ppe
        unearned_running = 0.0
        retained = 0.0
        contributed = p.initial_equity_t0
        cash_placeholder = p.opening_cash_y1

        for t, year in enumerate(p.years):
            inc = income[t]
            ppe_gross += p.capex.magnitude(t)
            accumulated_dep += p.depreciation.magnitude(t)
            ppe_net = ppe_net - p.capex[t] + p.depreciation[t]

            ar = inc.total_revenue * p.ar_rate
            ap = p.ap_rate * -inc.opex_total

            unearned_running += p.purchase_amount[t] - a.released_unearned(t)
            unearned = max(0.0, unearned_running)
            debt_balance = max(0.0, debt[t].ending_balance)

            retained += inc.net_income
            contributed += p.equity_injection[t]
            total_equity = retained + contributed
            total_liabilities = ap + unearned + debt_balance

            total_assets = cash_placeholder + ar + ppe_net
            rows.append(BalanceSheetRow(
                year=year,
                cash=cash_placeholder,
                accounts_receivable=ar,
                ppe_gross=ppe_gross,
                accumulated_depreciation=accumulated_dep,
                ppe_net=ppe_net,
                total_assets=total_assets,
                accounts_payable=ap,
                unearned_revenue=unearned,
                debt_balance=debt_balance,
                total_liabilities=total_liabilities,
                retained_earnings=retained,
                contributed_capital=contributed,
                total_equity=total_equity,
                total_liabilities_equity=total_liabilities + total_equity,
                balance_check=total_assets - (total_liabilities + total_equity),
            ))
        return rows

    # ---------- cash flow (resolves balance-sheet cash) ----------
    def cash_flow_statements(
        self,
        income: List[IncomeStatementRow],
        balance: List[BalanceSheetRow],
        debt: List[DebtScheduleRow],
    ) -> List[CashFlowRow]:
        p = self.inputs
        rows: List[CashFlowRow] = []
        cash_start = p.opening_cash_y1

        for t, year in enumerate(p.years):
            inc = income[t]
            bs = balance[t]
            prev = balance[t - 1] if t > 0 else None
            d = debt[t]

            change_ar = bs.accounts_receivable - (prev.accounts_receivable if prev else 0.0)
            change_ap = bs.accounts_payable - (prev.accounts_payable if prev else 0.0)
            change_unearned = bs.unearned_revenue - (prev.unearned_revenue if prev else 0.0)
            dep_addback = p.depreciation.magnitude(t)
            # interest is added back here and paid in financing
            operating = inc.net_income + dep_addback + change_ap - change_ar + change_unearned + d.interest_expense

            financing = d.draw + d.principal_payment - d.interest_expense + p.equity_injection[t]
            investing = p.capex[t]

            net_change = operating + financing + investing
            cash_end = cash_start + net_change

            rows.append(CashFlowRow(
                year=year,
                net_income=inc.net_income,
                depreciation_addback=dep_addback,
                change_ar=change_ar,
                change_ap=change_ap,
                change_unearned=change_unearned,
                interest_addback=d.interest_expense,
                operating_cash_flow=operating,
                debt_draw=d.draw,
                debt_repayment=d.principal_payment,
                interest_paid=-d.interest_expense,
                equity_injection=p.equity_injection[t],
                financing_cash_flow=financing,
                capex=p.capex[t],
                investing_cash_flow=investing,
                cash_start=cash_start,
                net_change_cash=net_change,
                cash_end=cash_end,
            ))
            bs.resolve_cash(cash_end)
            cash_start = cash_end
        return rows


__all__ = ["StatementBuilder", "StatementSet"]
