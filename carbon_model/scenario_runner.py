# carbon_model/scenario_runner.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .config import ConfigError, split_meta
from .core import build_financial_model
from .validate import iter_input_files, load_params_from_file

logger = logging.getLogger("carbon_model.scenario_runner")

# Output tables, in the order they are written
TABLES = (
    "incomeStatements",
    "balanceSheets",
    "cashFlowStatements",
    "debtSchedule",
    "carbonStream",
    "freeCashFlow",
)


@dataclass
class RunResult:
    summary: Dict[str, Any]
    summary_path: Path
    results_paths: List[Path] = field(default_factory=list)


def to_frames(result: Dict[str, Any]) -> Dict[str, pd.DataFrame]:
    """One DataFrame per statement table, indexed by year."""
    frames: Dict[str, pd.DataFrame] = {}
    for name in TABLES:
        df = pd.DataFrame(result.get(name, []))
        if "year" in df.columns:
            df = df.set_index("year")
        frames[name] = df
    return frames


def _write_jsonl(path: Path, result: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        for name in TABLES:
            for row in result.get(name, []):
                f.write(json.dumps({"statement": name, **row}) + "\n")


def _write_csv(out: Path, stem: str, result: Dict[str, Any]) -> List[Path]:
    paths: List[Path] = []
    for name, df in to_frames(result).items():
        p = out / f"{stem}_results_{name}.csv"
        df.to_csv(p)
        paths.append(p)
    return paths


def run_scenario(cfg_path: Path) -> tuple[str, Dict[str, Any]]:
    """Load, validate and run one scenario file. Returns (name, full output)."""
    meta, params = split_meta(load_params_from_file(cfg_path))
    name = str(meta.get("name") or cfg_path.stem)
    logger.info("running scenario %s (%s)", name, cfg_path)
    return name, build_financial_model(params)


def run_dir(
    config: str | Path,
    out_dir: str | Path,
    *,
    fmt: str = "csv",
    save_annual: bool = False,
) -> RunResult:
    """
    Run a single scenario file, or every *.yaml/*.yml/*.json in a directory.

    Writes summary.json (metrics; keyed by scenario name in directory mode)
    and, with save_annual, the per-year tables as CSV or JSONL.
    """
    if fmt not in ("csv", "jsonl"):
        raise ValueError(f"unknown fmt: {fmt}")

    cfg_path = Path(config)
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    files = list(iter_input_files(cfg_path))
    if not files:
        raise FileNotFoundError(f"{cfg_path}: no scenario files found")

    per_scenario: Dict[str, Dict[str, Any]] = {}
    results_paths: List[Path] = []
    for f in files:
        name, result = run_scenario(f)
        if name in per_scenario:
            raise ConfigError(f"{f}: scenario name {name!r} already used by another file in {cfg_path}")
        per_scenario[name] = {"scenario": name, **result["metrics"]}
        if save_annual:
            if fmt == "jsonl":
                p = out / f"{f.stem}_results.jsonl"
                _write_jsonl(p, result)
                results_paths.append(p)
            else:
                results_paths.extend(_write_csv(out, f.stem, result))

    summary: Dict[str, Any]
    if cfg_path.is_dir():
        summary = per_scenario
    else:
        summary = next(iter(per_scenario.values()))

    summary_path = out / "summary.json"
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    return RunResult(summary=summary, summary_path=summary_path, results_paths=results_paths)


def run_matrix(dir_path: str | Path, out_dir: str | Path, *, fmt: str = "csv") -> Dict[str, RunResult]:
    """Run each scenario in its own output sub-directory."""
    d = Path(dir_path)
    o = Path(out_dir)
    results: Dict[str, RunResult] = {}
    for cfg in iter_input_files(d):
        results[cfg.name] = run_dir(cfg, o / cfg.stem, fmt=fmt, save_annual=True)
    return results


__all__ = ["RunResult", "TABLES", "to_frames", "run_scenario", "run_dir", "run_matrix"]
