import importlib
import inspect
from pathlib import Path

from carbon_model.types import SCHEMA_VERSION

TOP_LEVEL_KEYS = {
    "schema_version", "inputs", "incomeStatements", "balanceSheets", "cashFlowStatements",
    "debtSchedule", "carbonStream", "freeCashFlow", "metrics",
}

ROW_FIELDS = {
    "incomeStatements": {
        "year", "credits_generated", "credits_issued", "spot_revenue", "pre_purchase_revenue",
        "total_revenue", "cogs", "gross_profit", "feasibility_costs", "pdd_costs", "mrv_costs",
        "staff_costs", "opex_total", "ebitda", "depreciation", "interest_expense",
        "earnings_before_tax", "income_tax", "net_income",
    },
    "balanceSheets": {
        "year", "cash", "accounts_receivable", "ppe_gross", "accumulated_depreciation", "ppe_net",
        "total_assets", "accounts_payable", "unearned_revenue", "debt_balance", "total_liabilities",
        "retained_earnings", "contributed_capital", "total_equity", "total_liabilities_equity",
        "balance_check",
    },
    "debtSchedule": {
        "year", "beginning_balance", "draw", "principal_payment", "ending_balance",
        "interest_expense", "dscr",
    },
    "carbonStream": {
        "year", "purchase_amount", "entitled_credits", "purchased_credits",
        "implied_purchase_price", "investor_cash_flow",
    },
}


def _param_names(fn):
    return [p.name for p in inspect.signature(fn).parameters.values()]


def test_finance_irr_public_api_is_stable():
    """Lock down that IRR/NPV live in finance.irr with a stable entrypoint."""
    m = importlib.import_module("carbon_model.finance.irr")
    assert hasattr(m, "irr") and callable(m.irr)
    assert hasattr(m, "npv") and callable(m.npv)

    irr_params = _param_names(m.irr)
    assert len(irr_params) >= 1
    assert irr_params[0] == "cashflows"
    assert _param_names(m.npv)[:2] == ["rate", "cashflows"]

    # Guard against accidental coupling/import creep in the thin math module.
    src = Path(m.__file__).read_text(encoding="utf-8")
    for forbidden in ("from carbon_model", "import carbon_model"):
        assert forbidden not in src, f"Unexpected dependency '{forbidden}' inside finance/irr.py"


def test_build_financial_model_result_shape(release_case):
    m = importlib.import_module("carbon_model")
    out = m.build_financial_model(release_case)
    assert set(out) == TOP_LEVEL_KEYS
    assert out["schema_version"] == SCHEMA_VERSION
    for table, fields in ROW_FIELDS.items():
        assert len(out[table]) == len(release_case["years"])
        for row in out[table]:
            assert set(row) == fields, table
    assert [r["year"] for r in out["cashFlowStatements"]] == release_case["years"]


def test_validate_exports_are_stable():
    """validate module must expose these helpers (names kept stable)."""
    v = importlib.import_module("carbon_model.validate")
    for name in ("validate_inputs", "load_params_from_file", "validate_files", "InputValidationError"):
        obj = getattr(v, name, None)
        assert callable(obj), f"Missing or non-callable export: {name}"


def test_scenario_runner_run_dir_api_minimal(tmp_path):
    """run_dir must accept (cfg_path, out_dir, ...) and return a summary-like object."""
    r = importlib.import_module("carbon_model.scenario_runner")
    assert hasattr(r, "run_dir") and callable(r.run_dir)

    cfg = Path(__file__).resolve().parents[2] / "carbon_model" / "inputs" / "scenarios" / "release_case.yaml"
    out = tmp_path / "o"

    res = r.run_dir(cfg, out, fmt="jsonl", save_annual=False)
    summary = getattr(res, "summary", res)
    assert isinstance(summary, dict)
    for k in ("npv", "equity_irr", "investor_irr", "payback_period", "ending_cash"):
        assert k in summary
    assert res.results_paths == []
