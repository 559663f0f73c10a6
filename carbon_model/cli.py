# carbon_model/cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .config import ConfigError
from .validate import InputValidationError, validate_files

LOG_LEVEL_ENV = "CARBON_MODEL_LOG_LEVEL"


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="carbon_model",
        description="Carbon-credit project financial statement model CLI",
    )
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or INFO).",
    )
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one scenario file or a directory of scenarios.")
    run.add_argument("--config", required=True, help="Path to a YAML/JSON scenario, or a directory of them.")
    run.add_argument(
        "--outputs-dir",
        default="outputs",
        help="Directory to write result files (default: outputs). Will be created if missing.",
    )
    run.add_argument(
        "--format",
        dest="fmt",
        default="csv",
        choices=["csv", "jsonl"],
        help="Output format for per-year statement files (default: csv).",
    )
    run.add_argument(
        "--save-annual",
        action="store_true",
        help="If set, write per-year statement tables alongside summary.json.",
    )

    val = sub.add_parser("validate", help="Validate scenario files without running them.")
    val.add_argument("paths", nargs="+", help="YAML/JSON files or directories to validate")

    show = sub.add_parser("show", help="Print one statement table, or the metrics as JSON.")
    show.add_argument("--config", required=True, help="Path to a single YAML/JSON scenario.")
    show.add_argument(
        "--statement",
        default="metrics",
        choices=["metrics", "incomeStatements", "balanceSheets", "cashFlowStatements",
                 "debtSchedule", "carbonStream", "freeCashFlow"],
    )
    return p.parse_args(argv)


def _configure_logging(level: str | None) -> None:
    lvl = level or os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    logging.basicConfig(level=getattr(logging, lvl, logging.INFO),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _show(config: str, statement: str) -> int:
    # heavy imports (pandas) stay behind the command that needs them
    from .scenario_runner import run_scenario, to_frames

    _, result = run_scenario(Path(config))
    if statement == "metrics":
        print(json.dumps(result["metrics"], indent=2))
    else:
        print(to_frames(result)[statement].T.to_string())
    return 0


def main(argv: list[str] | None = None) -> int:
    ns = parse_args(argv)
    _configure_logging(ns.log_level)

    try:
        if ns.command == "validate":
            return validate_files(ns.paths)
        if ns.command == "show":
            return _show(ns.config, ns.statement)

        from .scenario_runner import run_dir

        res = run_dir(Path(ns.config), Path(ns.outputs_dir).resolve(), fmt=ns.fmt, save_annual=ns.save_annual)
        print(f"Wrote {res.summary_path}")
        for p in res.results_paths:
            print(f"Wrote {p}")
        return 0
    except (InputValidationError, ConfigError) as e:
        print(f"INVALID INPUT: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        # Fail noisily with non-zero
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


__all__ = ["main", "parse_args"]
