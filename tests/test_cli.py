import json
from pathlib import Path

import pytest

from carbon_model import cli

SCENARIOS = Path(__file__).resolve().parents[1] / "carbon_model" / "inputs" / "scenarios"
RELEASE = SCENARIOS / "release_case.yaml"


def test_cli_missing_command():
    with pytest.raises(SystemExit) as ei:
        cli.parse_args([])
    assert ei.value.code == 2


def test_cli_invalid_format_exits_2():
    # argparse enforces choices
    with pytest.raises(SystemExit) as ei:
        cli.parse_args(["run", "--config", str(RELEASE), "--format", "xlsx"])
    assert ei.value.code == 2


def test_cli_run_writes_summary(tmp_path, capsys):
    out_dir = tmp_path / "out"
    rc = cli.main(["run", "--config", str(RELEASE), "--outputs-dir", str(out_dir)])
    assert rc == 0
    summary = json.loads((out_dir / "summary.json").read_text(encoding="utf-8"))
    assert summary["scenario"] == "release_case"
    assert summary["total_revenue"] == pytest.approx(10000.0)
    assert "summary.json" in capsys.readouterr().out


def test_cli_run_scenario_directory_jsonl(tmp_path):
    out_dir = tmp_path / "out"
    rc = cli.main(["run", "--config", str(SCENARIOS), "--outputs-dir", str(out_dir),
                   "--format", "jsonl", "--save-annual"])
    assert rc == 0
    summary = json.loads((out_dir / "summary.json").read_text(encoding="utf-8"))
    assert set(summary) == {"release_case", "form_entry_case"}
    assert (out_dir / "release_case_results.jsonl").exists()
    assert (out_dir / "form_entry_case_results.jsonl").exists()


def test_cli_invalid_input_exits_2(tmp_path, capsys):
    bad = tmp_path / "bad.yaml"
    bad.write_text("years: [2025]\ncogs_rate: 3\n", encoding="utf-8")
    rc = cli.main(["run", "--config", str(bad), "--outputs-dir", str(tmp_path / "out")])
    assert rc == 2
    assert "INVALID INPUT" in capsys.readouterr().err


def test_cli_unreadable_config_exits_2(tmp_path):
    bad = tmp_path / "broken.yaml"
    bad.write_text("years: [2025\n", encoding="utf-8")
    assert cli.main(["run", "--config", str(bad), "--outputs-dir", str(tmp_path / "out")]) == 2


def test_cli_missing_path_exits_1(tmp_path, capsys):
    rc = cli.main(["run", "--config", str(tmp_path / "nowhere"), "--outputs-dir", str(tmp_path / "out")])
    assert rc == 1
    assert "ERROR" in capsys.readouterr().err


def test_cli_validate(tmp_path):
    assert cli.main(["validate", str(SCENARIOS)]) == 0
    bad = tmp_path / "bad.yaml"
    bad.write_text("bogus: 1\n", encoding="utf-8")
    assert cli.main(["validate", str(RELEASE), str(bad)]) == 1


def test_cli_show_metrics(capsys):
    assert cli.main(["show", "--config", str(RELEASE)]) == 0
    metrics = json.loads(capsys.readouterr().out)
    assert metrics["ending_cash"] == pytest.approx(-43523.80952380952, abs=1e-6)
    assert metrics["equity_irr"] is None


def test_cli_show_statement(capsys):
    assert cli.main(["show", "--config", str(RELEASE), "--statement", "debtSchedule"]) == 0
    text = capsys.readouterr().out
    assert "principal_payment" in text
    assert "2026" in text


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv(cli.LOG_LEVEL_ENV, "debug")
    ns = cli.parse_args(["validate", str(RELEASE)])
    assert ns.log_level is None
    assert cli.main(["validate", str(RELEASE)]) == 0
