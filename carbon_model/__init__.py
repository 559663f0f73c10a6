"""Deterministic multi-year financial statement model for carbon-credit projects."""

from .core import build_financial_model, run_model
from .validate import InputValidationError, OpeningBalanceWarning, validate_inputs

__version__ = "0.1.0"

__all__ = [
    "build_financial_model",
    "run_model",
    "validate_inputs",
    "InputValidationError",
    "OpeningBalanceWarning",
]
