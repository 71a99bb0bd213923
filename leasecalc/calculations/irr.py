"""
IRR, NPV and RATE Calculations

Implements IRR using Newton-Raphson with a bisection fallback, and Excel's
RATE() function using Newton-Raphson with an analytic derivative.

None of the solvers raise on bad inputs. When they cannot converge they
return their best estimate, which callers should sanity-check.
"""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 1e-6
DEFAULT_GUESS = 0.1

# Bisection bracket for periodic IRR
BISECTION_LOW = -0.99
BISECTION_HIGH = 1.0
BISECTION_WIDE_HIGH = 10.0
BISECTION_MAX_ITERATIONS = 1000


def has_sign_change(cash_flows: Sequence[float]) -> bool:
    """True when cash flows contain both positive and negative values."""
    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)
    return has_positive and has_negative


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of periodic cash flows.

    The first cash flow is at t=0 and is not discounted.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow)
        discount_rate: Periodic discount rate (e.g., 0.01 for 1% per period)

    Returns:
        NPV value; inf/nan if the rate is -1 or overflows
    """
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(flows.size)
    with np.errstate(all="ignore"):
        return float(np.sum(flows / (1.0 + discount_rate) ** periods))


def _npv_derivative(flows: np.ndarray, rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    periods = np.arange(flows.size)
    with np.errstate(all="ignore"):
        return float(-np.sum(periods * flows / (1.0 + rate) ** (periods + 1)))


def calculate_irr_bisection(
    cash_flows: Sequence[float],
    low: float = BISECTION_LOW,
    high: float = BISECTION_HIGH,
    tolerance: float = TOLERANCE,
) -> Optional[float]:
    """
    Calculate periodic IRR by bisection inside [low, high].

    Returns:
        The rate, or None when NPV does not change sign across the bracket
    """
    npv_low = calculate_npv(cash_flows, low)
    npv_high = calculate_npv(cash_flows, high)

    if not (math.isfinite(npv_low) and math.isfinite(npv_high)):
        return None
    if npv_low * npv_high > 0:
        return None

    for _ in range(BISECTION_MAX_ITERATIONS):
        mid = (low + high) / 2
        npv_mid = calculate_npv(cash_flows, mid)

        if abs(npv_mid) < tolerance or (high - low) < tolerance:
            return mid

        if npv_mid * npv_low < 0:
            high = mid
        else:
            low = mid
            npv_low = npv_mid

    return (low + high) / 2


def calculate_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
) -> float:
    """
    Calculate periodic IRR (Internal Rate of Return).

    Starts with Newton-Raphson, matching Excel's IRR(). If Newton diverges,
    stalls on a flat derivative or hits the iteration cap, falls back to
    bisection over [-0.99, 1.0], then [-0.99, 10.0].

    Args:
        cash_flows: Periodic cash flows, period 0 first
        guess: Initial guess for rate (default 0.1 = 10%)

    Returns:
        Periodic IRR as decimal. Always finite: 0.0 when the flows have no
        sign change, otherwise the best estimate found if nothing converges.
    """
    flows = np.asarray(cash_flows, dtype=float)

    if flows.size < 2 or not has_sign_change(flows):
        logger.debug("IRR undefined for cash flows without a sign change")
        return 0.0

    rate = guess
    best_rate = guess
    best_npv = math.inf

    for _ in range(max_iterations):
        npv = calculate_npv(flows, rate)
        dnpv = _npv_derivative(flows, rate)

        if not (math.isfinite(npv) and math.isfinite(dnpv)):
            break

        if abs(npv) < best_npv:
            best_rate, best_npv = rate, abs(npv)

        if abs(dnpv) < tolerance:
            break

        new_rate = rate - npv / dnpv

        if not math.isfinite(new_rate) or new_rate <= -1:
            break

        if abs(new_rate - rate) < tolerance:
            return new_rate

        rate = new_rate

    logger.debug("Newton-Raphson IRR did not converge, falling back to bisection")

    for high in (BISECTION_HIGH, BISECTION_WIDE_HIGH):
        result = calculate_irr_bisection(flows, BISECTION_LOW, high, tolerance)
        if result is not None:
            return result

    logger.debug(f"IRR has no bracketed root, returning best estimate {best_rate}")
    return best_rate


def calculate_rate(
    nper: int,
    pmt: float,
    pv: float,
    fv: float = 0.0,
    payment_type: int = 0,
    guess: float = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: float = TOLERANCE,
) -> float:
    """
    Calculate the periodic interest rate of an annuity.

    Matches Excel's RATE() sign convention: solves
        pv + pmt * (1 + r*type) * sum((1+r)^-k, k=1..n) + fv * (1+r)^-n = 0

    Args:
        nper: Number of periods
        pmt: Payment per period (negative when paid out)
        pv: Present value (principal)
        fv: Future value (balloon / residual)
        payment_type: 0 = payment at period end, 1 = at period start
        guess: Initial rate estimate

    Returns:
        Periodic rate. The last estimate is returned if the iteration cap is
        hit or the derivative vanishes; no error is raised.
    """
    k = np.arange(1, max(int(nper), 0) + 1)
    rate = guess

    for _ in range(max_iterations):
        base = np.float64(1.0 + rate)
        with np.errstate(all="ignore"):
            discount = base ** -k
            annuity = float(np.sum(discount))
            dannuity = float(-np.sum(k * discount / base))
            balloon = float(fv * base ** -nper)
            dballoon = float(-nper * fv * base ** (-nper - 1))

        timing = 1 + rate * payment_type
        fx = pv + pmt * timing * annuity + balloon
        dfx = pmt * payment_type * annuity + pmt * timing * dannuity + dballoon

        if not (math.isfinite(fx) and math.isfinite(dfx)) or abs(dfx) < tolerance:
            break

        new_rate = rate - fx / dfx

        if not math.isfinite(new_rate) or new_rate <= -1:
            break

        if abs(new_rate - rate) < tolerance:
            return new_rate

        rate = new_rate

    logger.debug(f"RATE did not converge after {max_iterations} iterations, returning {rate}")
    return rate


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple (total inflows / total outflows).

    Returns:
        Multiple, or inf when there are no outflows
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        return math.inf

    return total_inflows / total_outflows


def monthly_to_annual_irr(monthly_irr: float) -> float:
    """Convert monthly IRR to effective annual IRR."""
    return ((1 + monthly_irr) ** 12) - 1


def annual_to_monthly_irr(annual_irr: float) -> float:
    """Convert effective annual IRR to monthly IRR."""
    return ((1 + annual_irr) ** (1 / 12)) - 1
