"""
Boundary validation for calculation inputs and outputs.

The calculation core accepts any numbers and may return NaN or inf. These
helpers are the strict layer callers put in front of it.
"""

import math
from typing import Optional, Sequence

from leasecalc.calculations.models import Contribution, LeasingParameters, LoanParameters
from leasecalc.config import get_settings
from leasecalc.exceptions import InvalidInputError, NonFiniteResultError


def _require_finite_number(value: float, name: str) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number")


def _require_non_negative(value: float, name: str) -> None:
    _require_finite_number(value, name)
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative")


def validate_loan_parameters(params: LoanParameters) -> LoanParameters:
    """Raise InvalidInputError unless the loan can be amortized."""
    _require_non_negative(params.principal, "principal")
    _require_non_negative(params.annual_rate, "annual_rate")
    if params.term_months <= 0:
        raise InvalidInputError("term_months must be positive")
    return params


def validate_residual_value(residual_value: float, principal: float) -> float:
    """
    Raise InvalidInputError unless 0 <= residual_value <= principal.

    A negative residual cannot be carried as an ending balance, and one above
    the principal makes the balance grow every period.
    """
    _require_non_negative(residual_value, "residual_value")
    if residual_value > principal:
        raise InvalidInputError("residual_value must not exceed principal")
    return residual_value


def validate_leasing_parameters(params: LeasingParameters) -> LeasingParameters:
    """Raise InvalidInputError for leasing inputs the engine cannot price."""
    if params.lease_term_months <= 0:
        raise InvalidInputError("lease_term_months must be positive")

    for name in (
        "asset_cost",
        "fixed_monthly_fee",
        "admin_commission_pct",
        "security_deposit_months",
        "delivery_costs",
        "other_initial_expenses",
        "loan_amount",
        "annual_interest_rate",
        "monthly_operational_expenses",
        "residual_value_rate",
        "discount_rate",
        "vat_rate",
    ):
        _require_non_negative(getattr(params, name), name)

    _require_finite_number(params.lessor_profit_margin_pct, "lessor_profit_margin_pct")
    return params


def validate_contributions(
    contributions: Sequence[Contribution],
    loan_amount: float,
    min_investors: Optional[int] = None,
    tolerance: Optional[float] = None,
) -> Sequence[Contribution]:
    """
    Check contributions can be allocated against a loan.

    Requires at least min_investors contributors and contributions summing to
    the loan amount within tolerance. Defaults come from settings.
    """
    settings = get_settings()
    if min_investors is None:
        min_investors = settings.min_investors
    if tolerance is None:
        tolerance = settings.investment_tolerance

    if len(contributions) < min_investors:
        raise InvalidInputError(f"At least {min_investors} investors are required")

    for contribution in contributions:
        _require_non_negative(contribution.amount, f"investment amount for {contribution.name}")

    total = sum(c.amount for c in contributions)
    if abs(total - loan_amount) > tolerance:
        raise InvalidInputError("Total investment must match the loan amount")

    return contributions


def finite_or_none(value: float) -> Optional[float]:
    """Map NaN/inf to None, for JSON responses."""
    if value is None or not math.isfinite(value):
        return None
    return value


def require_finite(value: float, name: str) -> float:
    """Return value, or raise NonFiniteResultError if it is NaN/inf."""
    if not math.isfinite(value):
        raise NonFiniteResultError(f"{name} is not computable ({value})")
    return value
