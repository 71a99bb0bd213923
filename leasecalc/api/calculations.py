"""
Financial calculation API endpoints.

These endpoints accept inputs and return calculated results. Inputs are
validated here; the calculation core itself never rejects numbers.
Non-finite KPIs (undefined IRR, never-recovered payback) are returned as null.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from leasecalc.calculations import amortization, cashflow, irr, metrics, operator
from leasecalc.calculations.investors import (
    INTEREST_BASIS,
    allocate_investor_returns,
    summarize_investor_returns,
)
from leasecalc.calculations.models import Contribution, LeasingParameters, LoanParameters
from leasecalc.config import get_settings
from leasecalc.exceptions import LeaseCalcError
from leasecalc.validation import (
    finite_or_none,
    require_finite,
    validate_contributions,
    validate_leasing_parameters,
    validate_loan_parameters,
    validate_residual_value,
)

router = APIRouter()
settings = get_settings()


class InvestorInput(BaseModel):
    """One investor's contribution."""

    id: str
    name: str
    investment_amount: float


class ScheduleInput(BaseModel):
    """Input for amortization schedule calculation."""

    principal: float
    annual_rate: float  # Percent
    term_months: int
    start_date: date
    payment_frequency: str = settings.default_payment_frequency
    residual_value: Optional[float] = None


class ScheduleResponse(BaseModel):
    """Amortization schedule with totals."""

    periodic_payment: float
    total_interest: float
    total_payments: float
    end_date: Optional[date] = None
    schedule: List[dict]
    yearly_totals: List[dict]


@router.post("/schedule", response_model=ScheduleResponse)
async def calculate_schedule(inputs: ScheduleInput):
    """Generate a loan amortization schedule, optionally ending at a residual value."""
    loan = LoanParameters(
        principal=inputs.principal,
        annual_rate=inputs.annual_rate,
        term_months=inputs.term_months,
        start_date=inputs.start_date,
        frequency=inputs.payment_frequency,
    )
    try:
        validate_loan_parameters(loan)
        if inputs.residual_value is not None:
            validate_residual_value(inputs.residual_value, loan.principal)
    except LeaseCalcError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if inputs.residual_value:
        schedule = amortization.generate_schedule_with_residual(
            loan.principal, loan.annual_rate, loan.term_months,
            loan.start_date, inputs.residual_value, loan.frequency,
        )
    else:
        schedule = amortization.generate_payment_schedule(
            loan.principal, loan.annual_rate, loan.term_months, loan.start_date, loan.frequency
        )

    return ScheduleResponse(
        periodic_payment=schedule[0].payment,
        total_interest=amortization.calculate_total_interest(schedule),
        total_payments=amortization.calculate_total_payments(schedule),
        end_date=schedule[-1].date,
        schedule=[row.to_dict() for row in schedule],
        yearly_totals=amortization.group_payments_by_year(schedule),
    )


class InvestorReturnsInput(BaseModel):
    """Input for investor return allocation."""

    principal: float
    annual_rate: float  # Percent
    term_months: int
    start_date: date
    payment_frequency: str = settings.default_payment_frequency
    investors: List[InvestorInput]
    basis: str = INTEREST_BASIS


class InvestorReturnsResponse(BaseModel):
    """Per-investor returns and totals."""

    periodic_payment: float
    total_interest: float
    investor_returns: List[dict]
    summary: dict


@router.post("/investors", response_model=InvestorReturnsResponse)
async def calculate_investor_returns(inputs: InvestorReturnsInput):
    """Allocate an investor loan schedule pro-rata across its investors."""
    loan = LoanParameters(
        principal=inputs.principal,
        annual_rate=inputs.annual_rate,
        term_months=inputs.term_months,
        start_date=inputs.start_date,
        frequency=inputs.payment_frequency,
    )
    contributions = [
        Contribution(investor_id=inv.id, name=inv.name, amount=inv.investment_amount)
        for inv in inputs.investors
    ]

    try:
        validate_loan_parameters(loan)
        validate_contributions(contributions, loan.principal)
    except LeaseCalcError as e:
        raise HTTPException(status_code=400, detail=str(e))

    schedule = amortization.generate_payment_schedule(
        loan.principal, loan.annual_rate, loan.term_months, loan.start_date, loan.frequency
    )
    returns = allocate_investor_returns(contributions, schedule, basis=inputs.basis)

    return InvestorReturnsResponse(
        periodic_payment=schedule[0].payment,
        total_interest=amortization.calculate_total_interest(schedule),
        investor_returns=[r.to_dict() for r in returns],
        summary=summarize_investor_returns(returns),
    )


class LeasingInput(BaseModel):
    """Input for a pure leasing calculation."""

    start_date: date
    asset_cost: float
    lease_term_months: int
    lessor_profit_margin_pct: float
    fixed_monthly_fee: float = 0.0
    admin_commission_pct: float = 0.0
    security_deposit_months: float = 0.0
    delivery_costs: float = 0.0
    other_initial_expenses: float = 0.0
    loan_amount: float = 0.0
    annual_interest_rate: float = 0.0
    monthly_operational_expenses: float = 0.0
    residual_value_rate: float = 0.0
    discount_rate: float = 0.0
    vat_rate: float = 0.0
    include_vat_in_initial_outflow: bool = False
    strict: bool = False  # Reject leases whose IRR or payback is undefined


class LeasingMetrics(BaseModel):
    """Operator KPIs for a lease."""

    net_present_value: Optional[float] = None
    internal_rate_of_return: Optional[float] = None
    payback_period_months: Optional[float] = None
    total_project_profit: Optional[float] = None


class LeasingResponse(BaseModel):
    """Leasing results with cash flows."""

    metrics: LeasingMetrics
    rent: dict
    initial_payment: dict
    monthly_loan_payment: float
    net_monthly_cash_flow: float
    residual_value_amount: float
    annual_cashflows: List[dict]
    monthly_cashflows: List[dict]
    loan_schedule: List[dict]


@router.post("/leasing", response_model=LeasingResponse)
async def calculate_leasing(inputs: LeasingInput):
    """Calculate lease rent, cash flow projections and operator KPIs."""
    params = LeasingParameters(**inputs.model_dump(exclude={"start_date", "strict"}))

    try:
        validate_leasing_parameters(params)
    except LeaseCalcError as e:
        raise HTTPException(status_code=400, detail=str(e))

    results = cashflow.calculate_leasing_financials(params, inputs.start_date)

    if inputs.strict:
        try:
            require_finite(results.internal_rate_of_return, "internal_rate_of_return")
            require_finite(results.payback_period_months, "payback_period_months")
        except LeaseCalcError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return LeasingResponse(
        metrics=LeasingMetrics(
            net_present_value=finite_or_none(results.net_present_value),
            internal_rate_of_return=finite_or_none(results.internal_rate_of_return),
            payback_period_months=finite_or_none(results.payback_period_months),
            total_project_profit=finite_or_none(results.total_project_profit),
        ),
        rent={
            "lessor_monthly_profit": results.lessor_monthly_profit,
            "base_rent_amortization": results.base_rent_amortization,
            "base_rent_with_margin": results.base_rent_with_margin,
            "total_monthly_rent": results.total_monthly_rent,
            "total_monthly_rent_with_vat": results.total_monthly_rent_with_vat,
        },
        initial_payment={
            "admin_commission": results.initial_admin_commission,
            "security_deposit": results.initial_security_deposit,
            "total": results.initial_payment,
        },
        monthly_loan_payment=results.monthly_loan_payment,
        net_monthly_cash_flow=results.net_monthly_cash_flow,
        residual_value_amount=results.residual_value_amount,
        annual_cashflows=cashflow.annualize_cash_flows(results.cash_flow_schedule),
        monthly_cashflows=[cf.to_dict() for cf in results.cash_flow_schedule],
        loan_schedule=[row.to_dict() for row in results.loan_amortization_schedule],
    )


class OperatorInput(BaseModel):
    """Input for margin-based lease pricing."""

    start_date: date
    asset_cost: float
    down_payment: float = 0.0
    investor_rate: float
    term_months: int
    financial_margin: float
    residual_value_rate: float = 0.0
    discount_rate: float = settings.default_discount_rate
    investors: List[InvestorInput]


class OperatorResponse(BaseModel):
    """Lease pricing and operator KPIs."""

    fixed_cost: float
    financial_margin: float
    client_base_rent: float
    client_rate: Optional[float] = None
    residual_value: float
    metrics: LeasingMetrics
    client_schedule: List[dict]
    investor_schedule: List[dict]
    investor_returns: List[dict]


@router.post("/operator", response_model=OperatorResponse)
async def calculate_operator(inputs: OperatorInput):
    """Price a lease from investor cost plus margin and solve the client rate."""
    financed_amount = inputs.asset_cost - inputs.down_payment
    contributions = [
        Contribution(investor_id=inv.id, name=inv.name, amount=inv.investment_amount)
        for inv in inputs.investors
    ]

    if inputs.term_months <= 0:
        raise HTTPException(status_code=400, detail="term_months must be positive")

    try:
        validate_contributions(contributions, financed_amount)
    except LeaseCalcError as e:
        raise HTTPException(status_code=400, detail=str(e))

    results = operator.calculate_operator_results(
        asset_cost=inputs.asset_cost,
        down_payment=inputs.down_payment,
        investor_rate=inputs.investor_rate,
        term_months=inputs.term_months,
        start_date=inputs.start_date,
        contributions=contributions,
        financial_margin=inputs.financial_margin,
        residual_value_rate=inputs.residual_value_rate,
        discount_rate=inputs.discount_rate,
    )

    return OperatorResponse(
        fixed_cost=results.fixed_cost,
        financial_margin=results.financial_margin,
        client_base_rent=results.client_base_rent,
        client_rate=finite_or_none(results.client_rate),
        residual_value=results.residual_value,
        metrics=LeasingMetrics(
            net_present_value=finite_or_none(results.net_present_value),
            internal_rate_of_return=finite_or_none(results.internal_rate_of_return),
            payback_period_months=finite_or_none(results.payback_period_months),
            total_project_profit=finite_or_none(results.total_project_profit),
        ),
        client_schedule=[row.to_dict() for row in results.client_schedule],
        investor_schedule=[row.to_dict() for row in results.investor_schedule],
        investor_returns=[r.to_dict() for r in results.investor_returns],
    )


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[float]
    discount_rate: float = 0.10  # Periodic rate for the NPV figure


class IRRResponse(BaseModel):
    """Response with IRR calculation."""

    irr: float
    multiple: Optional[float] = None
    profit: float
    npv: Optional[float] = None


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate periodic IRR for given cash flows."""
    if len(inputs.cash_flows) < 2:
        raise HTTPException(status_code=400, detail="At least 2 cash flows required")
    if not irr.has_sign_change(inputs.cash_flows):
        raise HTTPException(
            status_code=400,
            detail="Cash flows must contain both positive and negative values",
        )

    return IRRResponse(
        irr=irr.calculate_irr(inputs.cash_flows),
        multiple=finite_or_none(irr.calculate_multiple(inputs.cash_flows)),
        profit=sum(inputs.cash_flows),
        npv=finite_or_none(irr.calculate_npv(inputs.cash_flows, inputs.discount_rate)),
    )


class RateInput(BaseModel):
    """Input for RATE calculation (Excel sign convention)."""

    nper: int = Field(gt=0)
    pmt: float
    pv: float
    fv: float = 0.0
    payment_type: int = Field(default=0, ge=0, le=1)
    guess: float = irr.DEFAULT_GUESS


class RateResponse(BaseModel):
    """Periodic and annualized rate."""

    periodic_rate: Optional[float] = None
    annual_rate_pct: Optional[float] = None


@router.post("/rate", response_model=RateResponse)
async def calculate_rate_endpoint(inputs: RateInput):
    """Solve the periodic rate of an annuity; annual rate assumes monthly periods."""
    rate = irr.calculate_rate(
        inputs.nper, inputs.pmt, inputs.pv, inputs.fv, inputs.payment_type, inputs.guess
    )
    return RateResponse(
        periodic_rate=finite_or_none(rate),
        annual_rate_pct=finite_or_none(rate * 12 * 100),
    )


class InvestmentMetricsInput(BaseModel):
    """Input for lender-side investment metrics."""

    loan_amount: float = Field(gt=0)
    annual_rate: float  # Percent
    term_months: int = Field(gt=0)
    monthly_payment: Optional[float] = None  # Defaults to the amortizing payment
    asset_value: Optional[float] = None
    annual_revenue: Optional[float] = None
    expense_ratio: float = Field(default=metrics.DEFAULT_EXPENSE_RATIO, ge=0, le=1)


@router.post("/metrics")
async def calculate_investment_metrics_endpoint(inputs: InvestmentMetricsInput):
    """Calculate investment ratios, NPV, IRR and payback for an investor loan."""
    monthly_payment = inputs.monthly_payment
    if monthly_payment is None:
        monthly_payment = amortization.calculate_monthly_payment(
            inputs.loan_amount, inputs.annual_rate, inputs.term_months
        )

    results = metrics.calculate_investment_metrics(
        loan_amount=inputs.loan_amount,
        annual_rate=inputs.annual_rate,
        term_months=inputs.term_months,
        monthly_payment=monthly_payment,
        asset_value=inputs.asset_value,
        annual_revenue=inputs.annual_revenue,
        expense_ratio=inputs.expense_ratio,
    )

    response = {name: finite_or_none(value) for name, value in results.to_dict().items()}
    response["monthly_payment"] = monthly_payment
    return response


class ProjectionInput(BaseModel):
    """Input for multi-year investment projections."""

    initial_investment: float
    annual_cash_flow: float
    growth_rate: float = 0.0  # Annual %
    discount_rate: float = settings.default_discount_rate
    years: int = Field(gt=0, le=100)


@router.post("/projections")
async def calculate_projections(inputs: ProjectionInput):
    """Project yearly cash flow, cumulative NPV, ROI and IRR."""
    projections = metrics.generate_financial_projections(
        inputs.initial_investment,
        inputs.annual_cash_flow,
        inputs.growth_rate,
        inputs.discount_rate,
        inputs.years,
    )
    return {
        "projections": [
            {name: finite_or_none(value) for name, value in p.to_dict().items()}
            for p in projections
        ]
    }
