"""
Payment Period Utilities

Maps payment frequencies to period lengths and payment dates.
"""

import math
from datetime import date
from typing import List

from dateutil.relativedelta import relativedelta

MONTHLY = "monthly"
QUARTERLY = "quarterly"
SEMI_ANNUAL = "semi-annual"
ANNUAL = "annual"

PERIODS_PER_YEAR = {
    MONTHLY: 12,
    QUARTERLY: 4,
    SEMI_ANNUAL: 2,
    ANNUAL: 1,
}


def periods_per_year(frequency: str) -> int:
    """
    Number of payment periods per year for a frequency.

    Unrecognized frequencies fall back to monthly (12).
    """
    return PERIODS_PER_YEAR.get(str(frequency).lower(), 12)


def months_per_period(frequency: str) -> int:
    """Calendar months covered by one payment period."""
    return 12 // periods_per_year(frequency)


def total_periods(term_months: int, frequency: str = MONTHLY) -> int:
    """
    Number of payments needed to cover a term expressed in months.

    A partial trailing period counts as a full payment, so a 13-month term
    paid quarterly has 5 payments.
    """
    return math.ceil(term_months / (12 / periods_per_year(frequency)))


def next_payment_date(start_date: date, period_index: int, frequency: str = MONTHLY) -> date:
    """
    Return start_date advanced by period_index payment periods.

    Month-end dates clamp to the last day of the target month
    (Jan 31 + 1 month = Feb 28/29).
    """
    if periods_per_year(frequency) == 1:
        return start_date + relativedelta(years=period_index)
    return start_date + relativedelta(months=period_index * months_per_period(frequency))


def generate_monthly_dates(start_date: date, num_months: int) -> List[date]:
    """Generate array of monthly dates for months 0..num_months."""
    return [start_date + relativedelta(months=i) for i in range(num_months + 1)]
