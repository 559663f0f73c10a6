from __future__ import annotations
from typing import Dict, Any

# Input schema: units, type, sign convention / bounds, and description.
#   type  "series" -> one value per model year
#         "float"  -> scalar
#         "int"    -> scalar integer
#   sign  "-"      -> every entry <= 0 (cost convention)
#         "+"      -> every entry >= 0
SCHEMA: Dict[str, Dict[str, Any]] = {
    "years":               {"unit": "year",      "type": "series", "required": True,  "desc": "Model years, strictly increasing"},

    # Operations
    "credits_generated":   {"unit": "tCO2e",     "type": "series", "sign": "+", "required": True, "desc": "Credits generated per year"},
    "price_per_credit":    {"unit": "USD/tCO2e", "type": "series", "sign": "+", "required": True, "desc": "Spot price per credit"},
    "issuance_flag":       {"unit": "flag",      "type": "series", "required": True,  "desc": "1 if an issuance event happens that year, else 0"},

    # Expenses (negative convention)
    "feasibility_costs":   {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Feasibility study costs"},
    "pdd_costs":           {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Project design document costs"},
    "mrv_costs":           {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Monitoring, reporting and verification costs"},
    "staff_costs":         {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Staff costs"},
    "depreciation":        {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Depreciation charge"},
    "capex":               {"unit": "USD",       "type": "series", "sign": "-", "required": True, "desc": "Capital expenditure"},

    # Financing
    "equity_injection":    {"unit": "USD",       "type": "series", "required": True,  "desc": "Equity contributed during the year"},
    "debt_draw":           {"unit": "USD",       "type": "series", "sign": "+", "required": True, "desc": "Debt drawn (at most one year)"},
    "purchase_amount":     {"unit": "USD",       "type": "series", "sign": "+", "required": True, "desc": "Pre-purchase payment received (at most one year)"},

    # Rates
    "cogs_rate":           {"unit": "fraction",  "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "COGS as share of revenue"},
    "income_tax_rate":     {"unit": "fraction",  "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Income tax rate"},
    "ar_rate":             {"unit": "fraction",  "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Receivables as share of revenue"},
    "ap_rate":             {"unit": "fraction",  "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Payables as share of opex"},
    "interest_rate":       {"unit": "rate/yr",   "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Debt interest rate"},
    "purchase_share":      {"unit": "fraction",  "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Buyer's share of every year's issuance"},
    "discount_rate":       {"unit": "rate/yr",   "type": "float", "min": 0.0, "max": 1.0, "required": True, "desc": "Equity discount rate for NPV"},
    "debt_duration_years": {"unit": "years",     "type": "int",   "min": 1,                "required": True, "desc": "Debt tenor"},

    # Opening position
    "initial_equity_t0":   {"unit": "USD",       "type": "float", "default": 0.0, "desc": "Equity contributed before year 1"},
    "opening_cash_y1":     {"unit": "USD",       "type": "float", "default": 0.0, "desc": "Cash at the start of year 1"},
    "initial_ppe":         {"unit": "USD",       "type": "float", "default": 0.0, "desc": "Net PP&E at the start of year 1"},
}

NEGATIVE_LINES = tuple(k for k, v in SCHEMA.items() if v.get("sign") == "-")
RATE_FIELDS = tuple(k for k, v in SCHEMA.items() if v["type"] == "float" and "max" in v)
SERIES_FIELDS = tuple(k for k, v in SCHEMA.items() if v["type"] == "series")

# Composite constraints evaluated after scalar and per-year checks.
# Each check receives the coerced field mapping.
COMPOSITE_CONSTRAINTS = [
    {
        "name": "single_purchase_year",
        "check": lambda p: sum(1 for v in p["purchase_amount"] if v != 0) <= 1,
        "message": "purchase_amount may be non-zero in at most one year",
    },
    {
        "name": "single_debt_draw",
        "check": lambda p: sum(1 for v in p["debt_draw"] if v != 0) <= 1,
        "message": "debt_draw may be non-zero in at most one year",
    },
    {
        "name": "purchase_share_required",
        "check": lambda p: p["purchase_share"] > 0 or not any(v > 0 for v in p["purchase_amount"]),
        "message": "purchase_share must be > 0 when a purchase_amount is set",
    },
]
