"""
Investor Return Allocation

Distributes each period of an investor loan schedule pro-rata across the
investors who funded it.

Two allocation bases are supported:
1. "interest" - each investor receives their share of the period's interest;
   total return is the contribution plus allocated interest.
2. "payment" - each investor receives their share of the full payment
   (principal + interest); total return is the sum of allocated payments.
"""

from typing import Dict, List, Sequence

from leasecalc.calculations.models import Contribution, InvestorReturn, PaymentScheduleEntry

INTEREST_BASIS = "interest"
PAYMENT_BASIS = "payment"


def calculate_investor_returns(
    investment_amount: float,
    total_investment_amount: float,
    payment_schedule: Sequence[PaymentScheduleEntry],
    investor_id: str,
    name: str,
    basis: str = INTEREST_BASIS,
) -> InvestorReturn:
    """
    Calculate one investor's returns over a loan schedule.

    Args:
        investment_amount: This investor's contribution
        total_investment_amount: Sum of all contributions to the loan
        payment_schedule: Investor-facing loan schedule
        investor_id: Investor identifier
        name: Investor display name
        basis: "interest" or "payment"

    Returns:
        InvestorReturn. Share is 0 when the total is 0 and ROI is 0 when the
        contribution is 0.
    """
    share = investment_amount / total_investment_amount if total_investment_amount > 0 else 0.0

    if basis == PAYMENT_BASIS:
        monthly_returns = tuple(entry.payment * share for entry in payment_schedule)
        total_return = sum(monthly_returns)
        total_interest = total_return - investment_amount
    else:
        monthly_returns = tuple(entry.interest * share for entry in payment_schedule)
        total_interest = sum(monthly_returns)
        total_return = investment_amount + total_interest

    roi = total_interest / investment_amount if investment_amount > 0 else 0.0

    return InvestorReturn(
        investor_id=str(investor_id),
        name=name,
        investment_amount=investment_amount,
        share=share,
        monthly_returns=monthly_returns,
        total_return=total_return,
        total_interest=total_interest,
        roi=roi,
    )


def allocate_investor_returns(
    contributions: Sequence[Contribution],
    payment_schedule: Sequence[PaymentScheduleEntry],
    basis: str = INTEREST_BASIS,
) -> List[InvestorReturn]:
    """
    Allocate a schedule across every contributor.

    The caller is responsible for contributions summing to the loan
    principal; see leasecalc.validation.validate_contributions.
    """
    total_investment = sum(c.amount for c in contributions)
    return [
        calculate_investor_returns(
            investment_amount=c.amount,
            total_investment_amount=total_investment,
            payment_schedule=payment_schedule,
            investor_id=c.investor_id,
            name=c.name,
            basis=basis,
        )
        for c in contributions
    ]


def summarize_investor_returns(returns: Sequence[InvestorReturn]) -> Dict:
    """Calculate summary totals across investors."""
    return {
        "investor_count": len(returns),
        "total_invested": sum(r.investment_amount for r in returns),
        "total_share": sum(r.share for r in returns),
        "total_return": sum(r.total_return for r in returns),
        "total_interest": sum(r.total_interest for r in returns),
    }
