"""
Loan Amortization Calculations

Implements periodic payment and amortization schedule calculations for
investor loans and client leases, matching Excel's PMT/IPMT/PPMT behavior.
Rates are annual nominal percentages (12 means 12%).
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, List

from leasecalc.calculations.models import PaymentScheduleEntry
from leasecalc.calculations.periods import (
    MONTHLY,
    next_payment_date,
    periods_per_year,
    total_periods,
)


def _periodic_rate(annual_rate: float, frequency: str) -> float:
    return annual_rate / 100 / periods_per_year(frequency)


def calculate_periodic_payment(
    principal: float,
    annual_rate: float,
    term_months: int,
    frequency: str = MONTHLY,
) -> float:
    """
    Calculate the fixed payment per period.

    Matches Excel's PMT() function:
        P * r(1+r)^n / ((1+r)^n - 1)

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate in percent (e.g., 12 for 12%)
        term_months: Loan term in months
        frequency: Payment frequency ('monthly', 'quarterly', 'semi-annual', 'annual')

    Returns:
        Payment per period. A zero rate falls back to straight-line
        principal / periods; a zero-length term returns 0.0.
    """
    periods = total_periods(term_months, frequency)
    if periods <= 0:
        return 0.0

    if annual_rate == 0:
        return principal / periods

    rate = _periodic_rate(annual_rate, frequency)
    growth = (1 + rate) ** periods

    return principal * (rate * growth / (growth - 1))


def calculate_monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """Calculate monthly payment (PMT with monthly frequency)."""
    return calculate_periodic_payment(principal, annual_rate, term_months, MONTHLY)


def calculate_periodic_payment_with_residual(
    principal: float,
    annual_rate: float,
    term_months: int,
    residual_value: float,
    frequency: str = MONTHLY,
) -> float:
    """
    Calculate the payment per period that amortizes principal down to a
    residual (balloon) value instead of zero.

    The present value of the residual is removed from the principal before
    applying the annuity formula.
    """
    periods = total_periods(term_months, frequency)
    if periods <= 0:
        return 0.0

    rate = _periodic_rate(annual_rate, frequency)

    if rate == 0:
        return (principal - residual_value) / periods

    growth = (1 + rate) ** periods
    net_principal = principal - residual_value / growth

    return net_principal * (rate * growth / (growth - 1))


def calculate_remaining_balance(
    principal: float,
    annual_rate: float,
    term_months: int,
    payments_completed: int,
    frequency: str = MONTHLY,
) -> float:
    """Calculate remaining loan balance after N payments (closed form)."""
    rate = _periodic_rate(annual_rate, frequency)
    payment = calculate_periodic_payment(principal, annual_rate, term_months, frequency)

    if rate == 0:
        return max(0.0, principal - payment * payments_completed)

    balance = principal * ((1 + rate) ** payments_completed) - payment * (
        ((1 + rate) ** payments_completed - 1) / rate
    )

    return max(0.0, balance)


def generate_payment_schedule(
    principal: float,
    annual_rate: float,
    term_months: int,
    start_date: date,
    frequency: str = MONTHLY,
) -> List[PaymentScheduleEntry]:
    """
    Generate a fully amortizing schedule.

    The last period absorbs any floating point drift: its principal component
    is the whole remaining balance and its payment is recomputed as
    principal + interest, so the schedule always ends at exactly 0.0.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate in percent
        term_months: Loan term in months
        start_date: Date of the first payment
        frequency: Payment frequency

    Returns:
        List of schedule entries, one per period
    """
    periods = total_periods(term_months, frequency)
    payment = calculate_periodic_payment(principal, annual_rate, term_months, frequency)
    rate = _periodic_rate(annual_rate, frequency)

    schedule = []
    balance = principal

    for period in range(1, periods + 1):
        interest = balance * rate

        if period == periods:
            # Final payment retires whatever is left
            principal_pmt = balance
            period_payment = principal_pmt + interest
            balance = 0.0
        else:
            principal_pmt = payment - interest
            period_payment = payment
            balance -= principal_pmt

        schedule.append(
            PaymentScheduleEntry(
                payment_number=period,
                date=next_payment_date(start_date, period - 1, frequency),
                payment=period_payment,
                principal=principal_pmt,
                interest=interest,
                balance=max(0.0, balance),
            )
        )

    return schedule


def generate_schedule_with_residual(
    principal: float,
    annual_rate: float,
    term_months: int,
    start_date: date,
    residual_value: float,
    frequency: str = MONTHLY,
) -> List[PaymentScheduleEntry]:
    """
    Generate a schedule that ends at the residual value instead of zero.

    Used for client leases where the asset keeps value at term end. The
    final principal component is forced to balance - residual_value, leaving
    exactly residual_value outstanding.
    """
    periods = total_periods(term_months, frequency)
    payment = calculate_periodic_payment_with_residual(
        principal, annual_rate, term_months, residual_value, frequency
    )
    rate = _periodic_rate(annual_rate, frequency)

    schedule = []
    balance = principal

    for period in range(1, periods + 1):
        interest = balance * rate

        if period == periods:
            principal_pmt = balance - residual_value
            balance = residual_value
        else:
            principal_pmt = payment - interest
            balance -= principal_pmt

        schedule.append(
            PaymentScheduleEntry(
                payment_number=period,
                date=next_payment_date(start_date, period - 1, frequency),
                payment=principal_pmt + interest,
                principal=principal_pmt,
                interest=interest,
                balance=max(0.0, balance),
            )
        )

    return schedule


def calculate_total_interest(schedule: List[PaymentScheduleEntry]) -> float:
    """Calculate total interest paid over the schedule."""
    return sum(row.interest for row in schedule)


def calculate_total_payments(schedule: List[PaymentScheduleEntry]) -> float:
    """Calculate total debt service (principal + interest) over the schedule."""
    return sum(row.payment for row in schedule)


def group_payments_by_year(schedule: List[PaymentScheduleEntry]) -> List[Dict]:
    """
    Roll a schedule up into calendar-year principal and interest totals.

    Returns:
        List of {"year", "principal", "interest"} dicts in date order
    """
    yearly: "OrderedDict[int, Dict]" = OrderedDict()

    for row in schedule:
        totals = yearly.setdefault(row.date.year, {"principal": 0.0, "interest": 0.0})
        totals["principal"] += row.principal
        totals["interest"] += row.interest

    return [
        {"year": year, "principal": totals["principal"], "interest": totals["interest"]}
        for year, totals in yearly.items()
    ]
