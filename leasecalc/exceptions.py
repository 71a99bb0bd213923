"""Custom exception hierarchy for leasecalc.

The calculation core never raises these for numeric inputs; they are used by
the validation layer that sits in front of it.
"""


class LeaseCalcError(Exception):
    """Base exception for all leasecalc errors."""


class InvalidInputError(LeaseCalcError, ValueError):
    """Raised when calculation parameters fail boundary validation."""


class NonFiniteResultError(LeaseCalcError):
    """Raised when a strict caller requires a finite KPI and gets NaN/inf."""
