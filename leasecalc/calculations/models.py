"""
Calculation Records

Immutable inputs and outputs of the calculation engine. Every calculation
builds a fresh set of records; nothing here is mutated after construction.
"""

import math
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, Tuple

from leasecalc.calculations.periods import MONTHLY


def _serialize(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Record:
    """Mixin giving dataclass records a plain-dict view."""

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _serialize(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class LoanParameters(_Record):
    """Investor loan terms."""

    principal: float
    annual_rate: float  # Annual nominal rate in percent (e.g., 12 for 12%)
    term_months: int
    start_date: date
    frequency: str = MONTHLY


@dataclass(frozen=True)
class LeasingParameters(_Record):
    """Inputs for a pure leasing deal, seen from the lessor (operator)."""

    # Asset
    asset_cost: float  # Excluding VAT
    lease_term_months: int

    # Lessor pricing
    lessor_profit_margin_pct: float  # Annual margin on asset cost
    fixed_monthly_fee: float = 0.0

    # Initial payment
    admin_commission_pct: float = 0.0
    security_deposit_months: float = 0.0
    delivery_costs: float = 0.0
    other_initial_expenses: float = 0.0

    # Investor loan
    loan_amount: float = 0.0
    annual_interest_rate: float = 0.0

    # Cash flow
    monthly_operational_expenses: float = 0.0
    residual_value_rate: float = 0.0  # % of asset cost realized at lease end
    discount_rate: float = 0.0  # Annual %, for NPV

    # Tax
    vat_rate: float = 0.0
    include_vat_in_initial_outflow: bool = False


@dataclass(frozen=True)
class PaymentScheduleEntry(_Record):
    """One row of an amortization schedule."""

    payment_number: int
    date: date
    payment: float
    principal: float
    interest: float
    balance: float


@dataclass(frozen=True)
class CashFlowEntry(_Record):
    """One month of the lessor's project cash flow (month 0 = investment)."""

    month: int
    date: date
    cash_inflow: float
    cash_outflow: float
    net_cash_flow: float
    cumulative_cash_flow: float
    present_value: float
    cumulative_npv: float


@dataclass(frozen=True)
class Contribution(_Record):
    """Capital put into the investor loan by one investor."""

    investor_id: str
    name: str
    amount: float


@dataclass(frozen=True)
class InvestorReturn(_Record):
    """Pro-rata returns of one investor over a loan schedule."""

    investor_id: str
    name: str
    investment_amount: float
    share: float
    monthly_returns: Tuple[float, ...]
    total_return: float
    total_interest: float
    roi: float


@dataclass(frozen=True)
class LeasingResults(_Record):
    """
    Full result of a leasing calculation.

    internal_rate_of_return is an annualized percentage and is NaN when the
    net cash flows never change sign. payback_period_months is inf when the
    initial investment is never recovered.
    """

    # Rent
    lessor_monthly_profit: float
    base_rent_amortization: float
    base_rent_with_margin: float
    total_monthly_rent: float
    total_monthly_rent_with_vat: float

    # Initial payment
    initial_admin_commission: float
    initial_security_deposit: float
    initial_payment: float

    # Operator
    monthly_loan_payment: float
    net_monthly_cash_flow: float
    residual_value_amount: float

    # KPIs
    net_present_value: float
    internal_rate_of_return: float
    payback_period_months: float
    total_project_profit: float

    cash_flow_schedule: Tuple[CashFlowEntry, ...] = ()
    loan_amortization_schedule: Tuple[PaymentScheduleEntry, ...] = ()

    @property
    def has_payback(self) -> bool:
        return math.isfinite(self.payback_period_months)


@dataclass(frozen=True)
class OperatorResults(_Record):
    """Result of pricing a lease from the investor cost plus a fixed margin."""

    fixed_cost: float  # Monthly payment owed to investors
    financial_margin: float
    client_base_rent: float
    client_rate: float  # Annual %, implied by client_base_rent
    residual_value: float

    net_present_value: float
    internal_rate_of_return: float
    payback_period_months: float
    total_project_profit: float

    client_schedule: Tuple[PaymentScheduleEntry, ...] = ()
    investor_schedule: Tuple[PaymentScheduleEntry, ...] = ()
    investor_returns: Tuple[InvestorReturn, ...] = ()


@dataclass(frozen=True)
class InvestmentMetrics(_Record):
    """
    Lender-side KPIs for an investor loan.

    Ratios are inf when their denominator is zero; IRR is an annual
    percentage and NaN when the loan flows never change sign.
    """

    internal_rate_of_return: float
    net_present_value: float
    payback_period_months: float
    discounted_payback_period_months: float
    profitability_index: float
    break_even_months: float
    return_on_investment: float
    debt_service_coverage_ratio: float
    loan_to_value_ratio: float
    interest_coverage_ratio: float


@dataclass(frozen=True)
class FinancialProjection(_Record):
    """One projected year of an investment."""

    year: int
    cash_flow: float
    present_value: float
    cumulative_npv: float
    roi: float  # Ratio, not percent
    internal_rate_of_return: float  # Annual %, to date
