# carbon_model/core.py
"""
Compute entry point. One call is a pure function of its validated input:
every row is created and populated inside the call, nothing is cached
across calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .finance.invariants import check_invariants, failed
from .finance.returns import carbon_stream, compute_metrics, free_cash_flow
from .finance.revenue import allocate
from .finance.statements import StatementBuilder
from .types import ModelInputs, ModelResult
from .validate import validate_inputs

logger = logging.getLogger("carbon_model.core")


def run_model(inputs: ModelInputs) -> ModelResult:
    """Statements, debt, carbon stream, FCFE and metrics for validated inputs."""
    allocation = allocate(inputs)
    statements = StatementBuilder(inputs, allocation).build()
    fcf = free_cash_flow(inputs, statements)
    stream = carbon_stream(inputs, allocation)
    metrics = compute_metrics(inputs, allocation, statements, fcf, stream)

    return ModelResult(
        inputs=inputs,
        income_statements=statements.income_statements,
        balance_sheets=statements.balance_sheets,
        cash_flow_statements=statements.cash_flow_statements,
        debt_schedule=statements.debt_schedule,
        carbon_stream=stream,
        free_cash_flow=fcf,
        metrics=metrics,
    )


def build_financial_model(params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate a raw flat input mapping and return the JSON-serialisable output:
    {schema_version, inputs, incomeStatements, balanceSheets, cashFlowStatements,
     debtSchedule, carbonStream, freeCashFlow, metrics}.
    Raises InputValidationError before any computation on bad input.
    """
    inputs = validate_inputs(params)
    out = run_model(inputs).to_dict()

    for r in failed(check_invariants(out)):
        logger.warning("identity check %s failed: %s", r.name, r.details)
    m = out["metrics"]
    logger.info("model %d-%d: revenue %.2f, ending cash %.2f, equity IRR %s",
                inputs.years[0], inputs.years[-1], m["total_revenue"], m["ending_cash"],
                "n/a" if m["equity_irr"] is None else f"{m['equity_irr']:.4%}")
    return out


__all__ = ["run_model", "build_financial_model"]
