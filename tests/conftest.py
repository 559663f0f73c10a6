import copy

import pytest

# Three-year acceptance case (same numbers as inputs/scenarios/release_case.yaml)
RELEASE_CASE = {
    "years": [2025, 2026, 2027],
    "credits_generated": [1000, 0, 0],
    "price_per_credit": [10, 10, 10],
    "issuance_flag": [0, 1, 0],
    "cogs_rate": 0.10,
    "income_tax_rate": 0.20,
    "ar_rate": 0.05,
    "ap_rate": 0.10,
    "feasibility_costs": [-5000, 0, 0],
    "pdd_costs": [-2000, 0, 0],
    "mrv_costs": [0, -1000, 0],
    "staff_costs": [-10000, -10000, -10000],
    "depreciation": [-3000, -3000, -3000],
    "capex": [-20000, 0, 0],
    "interest_rate": 0.10,
    "debt_duration_years": 2,
    "debt_draw": [10000, 0, 0],
    "equity_injection": [0, 0, 0],
    "initial_equity_t0": 5000,
    "opening_cash_y1": 5000,
    "purchase_amount": [0, 2000, 0],
    "purchase_share": 0.20,
    "discount_rate": 0.12,
}

# Five-year case with taxable profit, a three-year loan and a year-1 pre-purchase
GROWTH_CASE = {
    "years": [2025, 2026, 2027, 2028, 2029],
    "credits_generated": [10000] * 5,
    "price_per_credit": [15] * 5,
    "issuance_flag": [0, 1, 1, 1, 1],
    "cogs_rate": 0.10,
    "income_tax_rate": 0.25,
    "ar_rate": 0.05,
    "ap_rate": 0.10,
    "feasibility_costs": [-20000, 0, 0, 0, 0],
    "pdd_costs": [-10000, 0, 0, 0, 0],
    "mrv_costs": [0, -5000, -5000, -5000, -5000],
    "staff_costs": [-8000] * 5,
    "depreciation": [-10000] * 5,
    "capex": [-50000, 0, 0, 0, 0],
    "interest_rate": 0.08,
    "debt_duration_years": 3,
    "debt_draw": [30000, 0, 0, 0, 0],
    "equity_injection": [0, 5000, 0, 0, 0],
    "initial_equity_t0": 50000,
    "opening_cash_y1": 50000,
    "purchase_amount": [20000, 0, 0, 0, 0],
    "purchase_share": 0.20,
    "discount_rate": 0.10,
}


@pytest.fixture
def release_case():
    return copy.deepcopy(RELEASE_CASE)


@pytest.fixture
def growth_case():
    return copy.deepcopy(GROWTH_CASE)
