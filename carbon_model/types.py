from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple


class NonPositiveSeries(tuple):
    """
    Per-year amounts that are negative by convention (costs, depreciation, capex).

    Construction refuses a positive entry, so downstream code can rely on
    the sign and ask for `magnitude(t)` instead of sprinkling abs() calls.
    """

    def __new__(cls, values: Iterable[float], name: str = "series") -> "NonPositiveSeries":
        vals = tuple(float(v) for v in values)
        for i, v in enumerate(vals):
            if v > 0.0:
                raise ValueError(f"{name}[{i}] must be <= 0 (negative convention), got {v}")
        return super().__new__(cls, vals)

    def magnitude(self, t: int) -> float:
        return -self[t]

    def total_magnitude(self) -> float:
        return -sum(self)


@dataclass(frozen=True)
class ModelInputs:
    """Canonical, validated input set. Built only by validate.validate_inputs."""

    years: Tuple[int, ...]

    # Operations
    credits_generated: Tuple[float, ...]
    price_per_credit: Tuple[float, ...]
    issuance_flag: Tuple[int, ...]

    # Expenses (negative convention)
    feasibility_costs: NonPositiveSeries
    pdd_costs: NonPositiveSeries
    mrv_costs: NonPositiveSeries
    staff_costs: NonPositiveSeries
    depreciation: NonPositiveSeries
    capex: NonPositiveSeries

    # Financing
    equity_injection: Tuple[float, ...]
    debt_draw: Tuple[float, ...]
    purchase_amount: Tuple[float, ...]

    # Scalars
    cogs_rate: float
    income_tax_rate: float
    ar_rate: float
    ap_rate: float
    interest_rate: float
    purchase_share: float
    discount_rate: float
    debt_duration_years: int

    initial_equity_t0: float = 0.0
    opening_cash_y1: float = 0.0
    initial_ppe: float = 0.0

    @property
    def horizon(self) -> int:
        return len(self.years)

    @property
    def purchase_index(self) -> Optional[int]:
        """Index of the single pre-purchase year, if any."""
        for t, amt in enumerate(self.purchase_amount):
            if amt > 0:
                return t
        return None

    @property
    def draw_index(self) -> Optional[int]:
        for t, amt in enumerate(self.debt_draw):
            if amt > 0:
                return t
        return None

    def opex_total(self, t: int) -> float:
        return self.feasibility_costs[t] + self.pdd_costs[t] + self.mrv_costs[t] + self.staff_costs[t]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            v = getattr(self, f.name)
            out[f.name] = list(v) if isinstance(v, tuple) else v
        return out


@dataclass(frozen=True)
class CreditAllocation:
    """Issued credits and the revenue split, computed once per model run."""

    issued: Tuple[float, ...]
    entitlement: Tuple[float, ...]
    delivered: Tuple[float, ...]
    spot_revenue: Tuple[float, ...]
    pre_purchase_revenue: Tuple[float, ...]
    implied_purchase_price: float
    purchase_index: Optional[int]

    def released_unearned(self, t: int) -> float:
        return self.delivered[t] * self.implied_purchase_price


class _Row:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DebtScheduleRow(_Row):
    year: int
    beginning_balance: float
    draw: float
    principal_payment: float  # <= 0
    ending_balance: float
    interest_expense: float  # >= 0, cash interest on the beginning balance
    dscr: float = 0.0

    @property
    def debt_service(self) -> float:
        return -self.principal_payment + self.interest_expense


@dataclass
class IncomeStatementRow(_Row):
    year: int
    credits_generated: float
    credits_issued: float
    spot_revenue: float
    pre_purchase_revenue: float
    total_revenue: float
    cogs: float
    gross_profit: float
    feasibility_costs: float
    pdd_costs: float
    mrv_costs: float
    staff_costs: float
    opex_total: float
    ebitda: float
    depreciation: float
    interest_expense: float
    earnings_before_tax: float
    income_tax: float
    net_income: float


@dataclass
class BalanceSheetRow(_Row):
    year: int
    cash: float
    accounts_receivable: float
    ppe_gross: float
    accumulated_depreciation: float
    ppe_net: float
    total_assets: float
    accounts_payable: float
    unearned_revenue: float
    debt_balance: float
    total_liabilities: float
    retained_earnings: float
    contributed_capital: float
    total_equity: float
    total_liabilities_equity: float
    balance_check: float
    cash_resolved: bool = field(default=False, repr=False)

    def resolve_cash(self, cash: float) -> None:
        """Write the cash plug from the cash-flow pass and close the row."""
        if self.cash_resolved:
            raise RuntimeError(f"cash for {self.year} already resolved")
        self.cash = cash
        self.total_assets = cash + self.accounts_receivable + self.ppe_net
        self.total_liabilities_equity = self.total_liabilities + self.total_equity
        self.balance_check = self.total_assets - self.total_liabilities_equity
        self.cash_resolved = True

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("cash_resolved")
        return d


@dataclass
class CashFlowRow(_Row):
    year: int
    net_income: float
    depreciation_addback: float
    change_ar: float
    change_ap: float
    change_unearned: float
    interest_addback: float
    operating_cash_flow: float
    debt_draw: float
    debt_repayment: float
    interest_paid: float
    equity_injection: float
    financing_cash_flow: float
    capex: float
    investing_cash_flow: float
    cash_start: float
    net_change_cash: float
    cash_end: float


@dataclass
class CarbonStreamRow(_Row):
    year: int
    purchase_amount: float
    entitled_credits: float
    purchased_credits: float
    implied_purchase_price: float
    investor_cash_flow: float


@dataclass
class FreeCashFlowRow(_Row):
    year: int
    net_income: float
    depreciation_addback: float
    change_working_capital: float
    capex: float
    net_borrowing: float
    fcf_to_equity: float


@dataclass
class Metrics(_Row):
    total_credits_generated: float
    total_credits_issued: float
    total_revenue: float
    total_ebitda: float
    total_net_income: float
    ebitda_margin: float
    net_margin: float
    total_capex: float
    peak_funding_required: float
    ending_cash: float
    implied_purchase_price: float
    npv: float
    equity_irr: Optional[float]
    investor_irr: Optional[float]
    payback_period: Optional[float]
    dscr_minimum: float
    dscr_average: float


SCHEMA_VERSION = "1.0"


@dataclass
class ModelResult:
    inputs: ModelInputs
    income_statements: List[IncomeStatementRow]
    balance_sheets: List[BalanceSheetRow]
    cash_flow_statements: List[CashFlowRow]
    debt_schedule: List[DebtScheduleRow]
    carbon_stream: List[CarbonStreamRow]
    free_cash_flow: List[FreeCashFlowRow]
    metrics: Metrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "inputs": self.inputs.to_dict(),
            "incomeStatements": [r.to_dict() for r in self.income_statements],
            "balanceSheets": [r.to_dict() for r in self.balance_sheets],
            "cashFlowStatements": [r.to_dict() for r in self.cash_flow_statements],
            "debtSchedule": [r.to_dict() for r in self.debt_schedule],
            "carbonStream": [r.to_dict() for r in self.carbon_stream],
            "freeCashFlow": [r.to_dict() for r in self.free_cash_flow],
            "metrics": self.metrics.to_dict(),
        }


__all__ = [
    "NonPositiveSeries",
    "ModelInputs",
    "CreditAllocation",
    "DebtScheduleRow",
    "IncomeStatementRow",
    "BalanceSheetRow",
    "CashFlowRow",
    "CarbonStreamRow",
    "FreeCashFlowRow",
    "Metrics",
    "ModelResult",
    "SCHEMA_VERSION",
]
