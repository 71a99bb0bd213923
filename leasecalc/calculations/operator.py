"""
Operator Pricing Flow

Prices a lease from the investors' cost of funds plus a fixed margin:

1. Fixed cost - monthly payment owed to investors on the financed amount
2. Client base rent - fixed cost plus the operator's margin
3. Client rate - the annual rate that justifies that rent, given the
   residual value left as a balloon (Excel RATE)
4. Schedules - a client schedule ending at the residual value and an
   investor schedule ending at zero
"""

import logging
import math
from datetime import date
from typing import Sequence

from leasecalc.calculations.amortization import (
    calculate_monthly_payment,
    generate_payment_schedule,
    generate_schedule_with_residual,
)
from leasecalc.calculations.cashflow import calculate_payback_period, calculate_residual_value
from leasecalc.calculations.investors import allocate_investor_returns
from leasecalc.calculations.irr import calculate_irr, calculate_npv, calculate_rate
from leasecalc.calculations.models import Contribution, OperatorResults

logger = logging.getLogger(__name__)

DEFAULT_DISCOUNT_RATE = 4.0


def calculate_operator_results(
    asset_cost: float,
    down_payment: float,
    investor_rate: float,
    term_months: int,
    start_date: date,
    contributions: Sequence[Contribution],
    financial_margin: float,
    residual_value_rate: float,
    discount_rate: float = DEFAULT_DISCOUNT_RATE,
) -> OperatorResults:
    """
    Price a lease and compute the operator's KPIs.

    Args:
        asset_cost: Asset cost
        down_payment: Client down payment, reduces the financed amount
        investor_rate: Annual rate paid to investors, in percent
        term_months: Lease term in months
        start_date: Date of the first payment
        contributions: Investors funding the financed amount
        financial_margin: Operator margin per month, in currency
        residual_value_rate: Residual value as % of asset cost
        discount_rate: Annual discount rate for NPV, in percent

    Returns:
        OperatorResults. client_rate is the solver's best estimate and should
        be sanity-checked for extreme margins.
    """
    financed_amount = asset_cost - down_payment
    residual_value = calculate_residual_value(asset_cost, residual_value_rate)

    fixed_cost = calculate_monthly_payment(financed_amount, investor_rate, term_months)
    client_base_rent = fixed_cost + financial_margin

    # RATE convention: money received is positive, money paid is negative
    client_rate = calculate_rate(term_months, -client_base_rent, financed_amount, -residual_value) * 12 * 100
    if not math.isfinite(client_rate):
        logger.warning(f"Client rate could not be solved for rent {client_base_rent:.2f}")

    client_schedule = generate_schedule_with_residual(
        financed_amount, client_rate, term_months, start_date, residual_value
    )
    investor_schedule = generate_payment_schedule(financed_amount, investor_rate, term_months, start_date)
    investor_returns = allocate_investor_returns(contributions, investor_schedule)

    # Operator keeps the margin each month and the residual at the end
    monthly_net_cash_flow = client_base_rent - fixed_cost
    cash_flows = [monthly_net_cash_flow] * max(term_months, 0)
    if cash_flows:
        cash_flows[-1] += residual_value

    monthly_discount_rate = discount_rate / 100 / 12
    net_present_value = calculate_npv([0.0] + cash_flows, monthly_discount_rate)

    investment_flows = [-financed_amount] + cash_flows
    internal_rate_of_return = calculate_irr(investment_flows) * 12 * 100

    return OperatorResults(
        fixed_cost=fixed_cost,
        financial_margin=financial_margin,
        client_base_rent=client_base_rent,
        client_rate=client_rate,
        residual_value=residual_value,
        net_present_value=net_present_value,
        internal_rate_of_return=internal_rate_of_return,
        payback_period_months=calculate_payback_period(investment_flows),
        total_project_profit=monthly_net_cash_flow * max(term_months, 0) + residual_value,
        client_schedule=tuple(client_schedule),
        investor_schedule=tuple(investor_schedule),
        investor_returns=tuple(investor_returns),
    )
