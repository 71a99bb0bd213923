"""
Cash Flow Calculations

Generates the lessor's monthly project cash flow for a pure lease and
reduces it to NPV, IRR, payback period and total profit.

Month 0 is the initial investment: the investor loan and the client's
upfront payments come in, the asset purchase and setup costs go out.
Months 1..N collect rent and pay the investor loan and operating expenses.
Month N also realizes the residual value and returns the security deposit.
"""

import logging
import math
from datetime import date
from typing import Dict, List, Optional, Sequence

from leasecalc.calculations.amortization import generate_payment_schedule
from leasecalc.calculations.irr import calculate_irr, has_sign_change
from leasecalc.calculations.models import (
    CashFlowEntry,
    LeasingParameters,
    LeasingResults,
    PaymentScheduleEntry,
)
from leasecalc.calculations.periods import MONTHLY, generate_monthly_dates

logger = logging.getLogger(__name__)


# === RENT ===


def calculate_lessor_monthly_profit(asset_cost: float, lessor_profit_margin_pct: float) -> float:
    """
    Lessor's monthly profit from an ANNUAL margin on the asset cost.

    Formula: asset_cost * margin% / 12
    """
    return (asset_cost * (lessor_profit_margin_pct / 100)) / 12


def calculate_base_rent_amortization(asset_cost: float, lease_term_months: int) -> float:
    """Straight-line recovery of the asset cost per month (0 for a zero term)."""
    if lease_term_months <= 0:
        return 0.0
    return asset_cost / lease_term_months


def calculate_base_rent_with_margin(base_rent_amortization: float, lessor_monthly_profit: float) -> float:
    return base_rent_amortization + lessor_monthly_profit


def calculate_total_monthly_rent(base_rent_with_margin: float, fixed_monthly_fee: float) -> float:
    """Total monthly rent charged to the client, excluding VAT."""
    return base_rent_with_margin + fixed_monthly_fee


# === INITIAL PAYMENT ===


def calculate_initial_admin_commission(asset_cost: float, admin_commission_pct: float) -> float:
    """Opening commission charged on the asset cost."""
    return asset_cost * (admin_commission_pct / 100)


def calculate_initial_security_deposit(base_rent_with_margin: float, security_deposit_months: float) -> float:
    """Security deposit, expressed in months of base rent with margin."""
    return base_rent_with_margin * security_deposit_months


def calculate_initial_payment(
    initial_admin_commission: float,
    initial_security_deposit: float,
    delivery_costs: float,
) -> float:
    """Total upfront payment asked from the client, excluding VAT."""
    return initial_admin_commission + initial_security_deposit + delivery_costs


def calculate_residual_value(asset_cost: float, residual_value_rate: float) -> float:
    return asset_cost * (residual_value_rate / 100)


def calculate_monthly_discount_rate(annual_discount_rate: float) -> float:
    """Monthly rate used to discount cash flows (0 when no discounting)."""
    if annual_discount_rate <= 0:
        return 0.0
    return annual_discount_rate / 100 / 12


def generate_loan_schedule(params: LeasingParameters, start_date: date) -> List[PaymentScheduleEntry]:
    """Investor-facing loan schedule for a lease, one payment per lease month."""
    return generate_payment_schedule(
        principal=params.loan_amount,
        annual_rate=params.annual_interest_rate,
        term_months=params.lease_term_months,
        start_date=start_date,
        frequency=MONTHLY,
    )


# === CASH FLOW ===


def generate_project_cash_flow(
    params: LeasingParameters,
    start_date: date,
    loan_schedule: Optional[List[PaymentScheduleEntry]] = None,
) -> List[CashFlowEntry]:
    """
    Generate the complete project cash flow, months 0..N.

    Args:
        params: Leasing parameters
        start_date: Date of month 0
        loan_schedule: Investor loan schedule; generated from params if omitted

    Returns:
        List of cash flow entries, one per month including month 0
    """
    term = max(params.lease_term_months, 0)

    if loan_schedule is None:
        loan_schedule = generate_loan_schedule(params, start_date)

    lessor_monthly_profit = calculate_lessor_monthly_profit(
        params.asset_cost, params.lessor_profit_margin_pct
    )
    base_rent_amortization = calculate_base_rent_amortization(params.asset_cost, term)
    base_rent_with_margin = calculate_base_rent_with_margin(base_rent_amortization, lessor_monthly_profit)
    total_monthly_rent = calculate_total_monthly_rent(base_rent_with_margin, params.fixed_monthly_fee)

    initial_admin_commission = calculate_initial_admin_commission(
        params.asset_cost, params.admin_commission_pct
    )
    initial_security_deposit = calculate_initial_security_deposit(
        base_rent_with_margin, params.security_deposit_months
    )
    residual_value = calculate_residual_value(params.asset_cost, params.residual_value_rate)
    monthly_discount_rate = calculate_monthly_discount_rate(params.discount_rate)

    asset_outflow = params.asset_cost
    if params.include_vat_in_initial_outflow:
        asset_outflow += params.asset_cost * (params.vat_rate / 100)

    # Month 0: loan proceeds and client upfront payments vs asset purchase
    inflows = [params.loan_amount + initial_admin_commission + initial_security_deposit]
    outflows = [asset_outflow + params.delivery_costs + params.other_initial_expenses]

    # Months 1..N: rent vs loan service and operating expenses
    for month in range(1, term + 1):
        loan_payment = loan_schedule[month - 1].payment if month <= len(loan_schedule) else 0.0
        inflows.append(total_monthly_rent)
        outflows.append(loan_payment + params.monthly_operational_expenses)

    # Month N: residual value realized, security deposit returned
    inflows[term] += residual_value
    outflows[term] += initial_security_deposit

    dates = generate_monthly_dates(start_date, term)
    cash_flow = []
    cumulative_cash_flow = 0.0
    cumulative_npv = 0.0

    for month in range(term + 1):
        net_cash_flow = inflows[month] - outflows[month]
        present_value = net_cash_flow / ((1 + monthly_discount_rate) ** month)
        cumulative_cash_flow += net_cash_flow
        cumulative_npv += present_value

        cash_flow.append(
            CashFlowEntry(
                month=month,
                date=dates[month],
                cash_inflow=inflows[month],
                cash_outflow=outflows[month],
                net_cash_flow=net_cash_flow,
                cumulative_cash_flow=cumulative_cash_flow,
                present_value=present_value,
                cumulative_npv=cumulative_npv,
            )
        )

    return cash_flow


def calculate_payback_period(net_cash_flows: Sequence[float]) -> float:
    """
    Calculate the payback period in months.

    Finds the first month where cumulative cash flow turns non-negative and
    interpolates linearly inside that month.

    Args:
        net_cash_flows: Net flows for months 0..N

    Returns:
        Fractional months; 0.0 if month 0 is not an investment, inf if the
        investment is never recovered
    """
    if not net_cash_flows or net_cash_flows[0] >= 0:
        return 0.0

    cumulative = net_cash_flows[0]
    for month in range(1, len(net_cash_flows)):
        previous = cumulative
        cumulative += net_cash_flows[month]
        if cumulative >= 0:
            return (month - 1) + (-previous / net_cash_flows[month])

    return math.inf


def calculate_leasing_financials(params: LeasingParameters, start_date: date) -> LeasingResults:
    """
    Run every leasing calculation and collect the results.

    Args:
        params: Leasing parameters
        start_date: Date of month 0; never read from the clock

    Returns:
        LeasingResults with rent components, KPIs and both schedules
    """
    term = params.lease_term_months

    lessor_monthly_profit = calculate_lessor_monthly_profit(
        params.asset_cost, params.lessor_profit_margin_pct
    )
    base_rent_amortization = calculate_base_rent_amortization(params.asset_cost, term)
    base_rent_with_margin = calculate_base_rent_with_margin(base_rent_amortization, lessor_monthly_profit)
    total_monthly_rent = calculate_total_monthly_rent(base_rent_with_margin, params.fixed_monthly_fee)

    initial_admin_commission = calculate_initial_admin_commission(
        params.asset_cost, params.admin_commission_pct
    )
    initial_security_deposit = calculate_initial_security_deposit(
        base_rent_with_margin, params.security_deposit_months
    )
    initial_payment = calculate_initial_payment(
        initial_admin_commission, initial_security_deposit, params.delivery_costs
    )

    loan_schedule = generate_loan_schedule(params, start_date)
    monthly_loan_payment = loan_schedule[0].payment if loan_schedule else 0.0

    cash_flow_schedule = generate_project_cash_flow(params, start_date, loan_schedule)
    net_cash_flows = [entry.net_cash_flow for entry in cash_flow_schedule]

    if len(net_cash_flows) > 1 and has_sign_change(net_cash_flows):
        # Monthly IRR expressed as a nominal annual percentage
        internal_rate_of_return = calculate_irr(net_cash_flows) * 12 * 100
    else:
        logger.debug("Leasing cash flows never change sign; IRR is undefined")
        internal_rate_of_return = math.nan

    return LeasingResults(
        lessor_monthly_profit=lessor_monthly_profit,
        base_rent_amortization=base_rent_amortization,
        base_rent_with_margin=base_rent_with_margin,
        total_monthly_rent=total_monthly_rent,
        total_monthly_rent_with_vat=total_monthly_rent * (1 + params.vat_rate / 100),
        initial_admin_commission=initial_admin_commission,
        initial_security_deposit=initial_security_deposit,
        initial_payment=initial_payment,
        monthly_loan_payment=monthly_loan_payment,
        net_monthly_cash_flow=total_monthly_rent - monthly_loan_payment - params.monthly_operational_expenses,
        residual_value_amount=calculate_residual_value(params.asset_cost, params.residual_value_rate),
        net_present_value=cash_flow_schedule[-1].cumulative_npv,
        internal_rate_of_return=internal_rate_of_return,
        payback_period_months=calculate_payback_period(net_cash_flows),
        total_project_profit=cash_flow_schedule[-1].cumulative_cash_flow,
        cash_flow_schedule=tuple(cash_flow_schedule),
        loan_amortization_schedule=tuple(loan_schedule),
    )


def annualize_cash_flows(cash_flows: Sequence[CashFlowEntry]) -> List[Dict]:
    """
    Convert monthly cash flows to lease-year totals.

    Month 0 is grouped into year 1 together with months 1..11.
    """
    numeric_fields = ["cash_inflow", "cash_outflow", "net_cash_flow", "present_value"]
    annual_data: List[Dict] = []

    for cf in cash_flows:
        cf_year = (cf.month // 12) + 1

        if not annual_data or annual_data[-1]["year"] != cf_year:
            annual_data.append({"year": cf_year, **{name: 0.0 for name in numeric_fields}})

        for name in numeric_fields:
            annual_data[-1][name] += getattr(cf, name)

    for year in annual_data:
        for name in numeric_fields:
            year[name] = round(year[name], 2)

    return annual_data
