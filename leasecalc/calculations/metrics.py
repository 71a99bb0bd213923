"""
Investment Metrics

Lender-side KPIs for an investor loan (ratios, break-even, discounted
payback) and multi-year investment projections.

Ratios never raise on a zero denominator: they return inf (or -inf) for a
non-zero numerator and 0.0 when both sides are zero.
"""

import math
from typing import List, Optional, Sequence

from leasecalc.calculations.cashflow import calculate_payback_period
from leasecalc.calculations.irr import calculate_irr, calculate_npv, has_sign_change
from leasecalc.calculations.models import FinancialProjection, InvestmentMetrics

# Assumptions used when the asset value or revenue is not supplied
DEFAULT_ASSET_VALUE_RATIO = 1.25  # Asset worth 125% of the loan
DEFAULT_REVENUE_RATIO = 0.25  # Annual revenue 25% of the loan
DEFAULT_EXPENSE_RATIO = 0.60  # Operating expenses as share of revenue


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        if numerator == 0:
            return 0.0
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def calculate_discounted_payback_period(net_cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Payback period on discounted cash flows.

    Args:
        net_cash_flows: Net flows, period 0 first
        discount_rate: Periodic discount rate (e.g., 0.005 for 0.5% per month)

    Returns:
        Fractional periods, interpolated like calculate_payback_period
    """
    discounted = [cf / (1 + discount_rate) ** t for t, cf in enumerate(net_cash_flows)]
    return calculate_payback_period(discounted)


def calculate_profitability_index(net_cash_flows: Sequence[float], discount_rate: float) -> float:
    """PV of the inflows after period 0 divided by the period-0 investment."""
    initial_investment = -net_cash_flows[0] if net_cash_flows else 0.0
    future_value = calculate_npv([0.0] + list(net_cash_flows[1:]), discount_rate)
    return _ratio(future_value, initial_investment)


def calculate_dscr(net_operating_income: float, annual_debt_service: float) -> float:
    """Debt service coverage ratio."""
    return _ratio(net_operating_income, annual_debt_service)


def calculate_ltv(loan_amount: float, asset_value: float) -> float:
    """Loan to value ratio."""
    return _ratio(loan_amount, asset_value)


def calculate_interest_coverage_ratio(earnings: float, annual_interest: float) -> float:
    return _ratio(earnings, annual_interest)


def calculate_investment_metrics(
    loan_amount: float,
    annual_rate: float,
    term_months: int,
    monthly_payment: float,
    asset_value: Optional[float] = None,
    annual_revenue: Optional[float] = None,
    expense_ratio: float = DEFAULT_EXPENSE_RATIO,
) -> InvestmentMetrics:
    """
    Evaluate an investor loan from the lender's side.

    The lender pays out loan_amount at month 0 and receives monthly_payment
    for term_months. NPV and discounted payback use the loan rate as the
    discount rate.

    Args:
        loan_amount: Amount lent
        annual_rate: Annual loan rate in percent
        term_months: Number of monthly payments
        monthly_payment: Payment received each month
        asset_value: Value of the financed asset (default 125% of the loan)
        annual_revenue: Borrower's annual revenue (default 25% of the loan)
        expense_ratio: Borrower's operating expenses as share of revenue

    Returns:
        InvestmentMetrics. IRR is an annual percentage, NaN when the flows
        have no sign change.
    """
    if asset_value is None:
        asset_value = loan_amount * DEFAULT_ASSET_VALUE_RATIO
    if annual_revenue is None:
        annual_revenue = loan_amount * DEFAULT_REVENUE_RATIO

    term = max(term_months, 0)
    monthly_rate = annual_rate / 100 / 12
    cash_flows = [-loan_amount] + [monthly_payment] * term

    net_operating_income = annual_revenue * (1 - expense_ratio)
    total_payments = monthly_payment * term
    total_interest = total_payments - loan_amount
    annual_interest = total_interest / term * 12 if term else 0.0

    if has_sign_change(cash_flows):
        internal_rate_of_return = calculate_irr(cash_flows) * 12 * 100
    else:
        internal_rate_of_return = math.nan

    # Months of the first payment's principal portion needed to repay the loan
    first_principal = monthly_payment - loan_amount * monthly_rate
    break_even = loan_amount / first_principal if first_principal > 0 else math.inf

    return InvestmentMetrics(
        internal_rate_of_return=internal_rate_of_return,
        net_present_value=calculate_npv(cash_flows, monthly_rate),
        payback_period_months=calculate_payback_period(cash_flows),
        discounted_payback_period_months=calculate_discounted_payback_period(cash_flows, monthly_rate),
        profitability_index=calculate_profitability_index(cash_flows, monthly_rate),
        break_even_months=break_even,
        return_on_investment=_ratio(total_interest, loan_amount),
        debt_service_coverage_ratio=calculate_dscr(net_operating_income, monthly_payment * 12),
        loan_to_value_ratio=calculate_ltv(loan_amount, asset_value),
        interest_coverage_ratio=calculate_interest_coverage_ratio(net_operating_income, annual_interest),
    )


def generate_financial_projections(
    initial_investment: float,
    annual_cash_flow: float,
    growth_rate: float,
    discount_rate: float,
    years: int,
) -> List[FinancialProjection]:
    """
    Project a growing annual cash flow year by year.

    Each year reports its discounted cash flow, the cumulative NPV including
    the initial investment, ROI to date and IRR to date.

    Args:
        initial_investment: Amount invested at year 0
        annual_cash_flow: Year-1 cash flow
        growth_rate: Annual growth of the cash flow, in percent
        discount_rate: Annual discount rate, in percent
        years: Number of years to project

    Returns:
        One FinancialProjection per year. IRR is 0.0 until the investment
        flows change sign.
    """
    growth = growth_rate / 100
    rate = discount_rate / 100

    projections = []
    cash_flows = [-initial_investment]
    cumulative_npv = -initial_investment

    for year in range(1, years + 1):
        cash_flow = annual_cash_flow * (1 + growth) ** (year - 1)
        cash_flows.append(cash_flow)

        present_value = cash_flow / (1 + rate) ** year
        cumulative_npv += present_value

        projections.append(
            FinancialProjection(
                year=year,
                cash_flow=cash_flow,
                present_value=present_value,
                cumulative_npv=cumulative_npv,
                roi=_ratio(sum(cash_flows), initial_investment),
                internal_rate_of_return=calculate_irr(cash_flows) * 100,
            )
        )

    return projections
