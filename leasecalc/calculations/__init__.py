"""
Financial Calculation Engine

Core calculation modules for leasing and investor loan analysis.
All functions are pure: dates are passed in, nothing reads the clock,
and every call returns new records.
"""

from leasecalc.calculations import (
    amortization,
    cashflow,
    investors,
    irr,
    metrics,
    models,
    operator,
    periods,
)

__all__ = ["amortization", "cashflow", "investors", "irr", "metrics", "models", "operator", "periods"]
