import io
from pathlib import Path

import pytest

from carbon_model.config import ConfigError, load_model_config, normalize_params, split_meta
from carbon_model.finance.issuance import issued_credits
from carbon_model.finance.revenue import allocate
from carbon_model.validate import validate_inputs

SCENARIOS = Path(__file__).resolve().parents[1] / "carbon_model" / "inputs" / "scenarios"


# ---------- issuance ----------
def test_issuance_releases_whole_inventory_on_flag():
    assert issued_credits([100, 200, 300, 0], [0, 1, 0, 1]) == [0.0, 300.0, 0.0, 300.0]


def test_issuance_never_exceeds_generation():
    gen = [50, 0, 25, 25]
    issued = issued_credits(gen, [1, 1, 1, 1])
    assert issued == [50.0, 0.0, 25.0, 25.0]
    cum_gen = cum_iss = 0.0
    for g, q in zip(gen, issued):
        cum_gen += g
        cum_iss += q
        assert 0.0 <= q
        assert cum_iss <= cum_gen


def test_issuance_without_flags_is_zero():
    assert issued_credits([10, 10], [0, 0]) == [0.0, 0.0]


# ---------- revenue split ----------
def test_allocation_release_case(release_case):
    a = allocate(validate_inputs(release_case))
    assert a.purchase_index == 1
    assert a.entitlement == pytest.approx((0.0, 200.0, 0.0))
    assert a.implied_purchase_price == pytest.approx(10.0)
    assert a.spot_revenue == pytest.approx((0.0, 8000.0, 0.0))
    assert a.pre_purchase_revenue == pytest.approx((0.0, 2000.0, 0.0))
    assert a.released_unearned(1) == pytest.approx(2000.0)


def test_pre_purchase_revenue_sums_to_payment(growth_case):
    a = allocate(validate_inputs(growth_case))
    assert sum(a.pre_purchase_revenue) == pytest.approx(growth_case["purchase_amount"][0])
    for t, q in enumerate(a.issued):
        assert a.spot_revenue[t] + a.delivered[t] * 15 == pytest.approx(q * 15)


def test_allocation_without_purchase_is_all_spot(growth_case):
    growth_case["purchase_amount"] = [0] * 5
    a = allocate(validate_inputs(growth_case))
    assert a.purchase_index is None
    assert a.implied_purchase_price == 0.0
    assert set(a.pre_purchase_revenue) == {0.0}
    assert list(a.spot_revenue) == [q * 15 for q in a.issued]


# ---------- config ----------
def test_grouped_yaml_is_flattened():
    cfg = load_model_config(SCENARIOS / "release_case.yaml")
    assert cfg["name"] == "release_case"
    assert cfg["debt_draw"] == [10000, 0, 0]
    assert "financing" not in cfg


def test_duplicate_key_across_groups_is_an_error():
    text = "operations:\n  cogs_rate: 0.1\nexpenses:\n  cogs_rate: 0.2\n"
    with pytest.raises(ConfigError, match="cogs_rate"):
        load_model_config(io.StringIO(text))


def test_json_config(tmp_path):
    p = tmp_path / "s.json"
    p.write_text('{"name": "j", "financing": {"interest_rate": 0.05}}', encoding="utf-8")
    assert load_model_config(p) == {"name": "j", "interest_rate": 0.05}


@pytest.mark.parametrize("text", ["- a\n- b\n", "key: [unclosed\n"])
def test_bad_yaml_raises_config_error(text):
    with pytest.raises(ConfigError):
        load_model_config(io.StringIO(text))


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        load_model_config(tmp_path / "nope.yaml")


def test_split_meta_leaves_plain_params_untouched(release_case):
    meta, params = split_meta({"name": "x", "description": "d", **release_case})
    assert meta == {"name": "x", "description": "d"}
    assert params == release_case


def test_normalize_params_converts_form_values():
    out = normalize_params({
        "cogs_rate": "10%",
        "ar_rate": 5,
        "staff_costs": ["1,500", 0],
        "issuance_flag": [True, False],
        "price_per_credit": ["12.5", 13],
        "debt_duration_years": "3",
        "years": [2025, 2026],
    })
    assert out["cogs_rate"] == pytest.approx(0.10)
    assert out["ar_rate"] == pytest.approx(0.05)
    assert out["staff_costs"] == [-1500.0, -0.0]
    assert out["issuance_flag"] == [1, 0]
    assert out["price_per_credit"] == [12.5, 13.0]
    assert out["debt_duration_years"] == 3
    assert out["years"] == [2025, 2026]


def test_form_entry_scenario_runs_after_normalisation():
    from carbon_model import build_financial_model

    meta, params = split_meta(load_model_config(SCENARIOS / "form_entry_case.yaml"))
    assert meta["normalize"] is True
    out = build_financial_model(params)
    assert out["metrics"]["implied_purchase_price"] == pytest.approx(7.5)
    assert [r["unearned_revenue"] for r in out["balanceSheets"]] == pytest.approx([3000.0, 750.0, 0.0])
    for r in out["balanceSheets"]:
        assert abs(r["balance_check"]) < 0.01


def test_deliveries_follow_entitlement_year_by_year(growth_case):
    a = allocate(validate_inputs(growth_case))
    assert a.delivered == a.entitlement
    assert a.entitlement == pytest.approx((0.0, 4000.0, 2000.0, 2000.0, 2000.0))


@pytest.mark.parametrize("raw", [2.5, "2.5"])
def test_normalised_fractional_duration_still_fails_validation(release_case, raw):
    from carbon_model.validate import InputValidationError

    release_case["debt_duration_years"] = raw
    _, params = split_meta({"normalize": True, **release_case})
    assert params["debt_duration_years"] == 2.5
    with pytest.raises(InputValidationError, match="debt_duration_years must be an integer"):
        validate_inputs(params)


def test_normalised_whole_duration_is_accepted(release_case):
    release_case["debt_duration_years"] = "2"
    assert validate_inputs(normalize_params(release_case)).debt_duration_years == 2
