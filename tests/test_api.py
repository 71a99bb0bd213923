"""
Tests for calculation API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from leasecalc.main import app


INVESTORS = [
    {"id": "1", "name": "Alice", "investment_amount": 40000},
    {"id": "2", "name": "Bruno", "investment_amount": 30000},
    {"id": "3", "name": "Carmen", "investment_amount": 30000},
]

LEASE = {
    "start_date": "2024-01-01",
    "asset_cost": 500000,
    "lease_term_months": 36,
    "lessor_profit_margin_pct": 15,
    "fixed_monthly_fee": 1000,
    "admin_commission_pct": 2,
    "loan_amount": 400000,
    "annual_interest_rate": 10,
    "monthly_operational_expenses": 2000,
    "residual_value_rate": 20,
    "discount_rate": 6,
}


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestHealth:
    """Test health check."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestScheduleAPI:
    """Test amortization schedule endpoint."""

    def test_schedule(self, client):
        response = client.post(
            "/api/calculate/schedule",
            json={
                "principal": 100000,
                "annual_rate": 12,
                "term_months": 12,
                "start_date": "2024-01-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data["schedule"]) == 12
        assert data["schedule"][-1]["balance"] == 0.0
        assert data["schedule"][0]["date"] == "2024-01-01"
        assert data["end_date"] == "2024-12-01"
        assert data["periodic_payment"] == pytest.approx(8884.88, abs=0.01)
        assert data["yearly_totals"][0]["year"] == 2024

    def test_schedule_quarterly_with_residual(self, client):
        response = client.post(
            "/api/calculate/schedule",
            json={
                "principal": 100000,
                "annual_rate": 8,
                "term_months": 24,
                "start_date": "2024-01-01",
                "payment_frequency": "quarterly",
                "residual_value": 20000,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data["schedule"]) == 8
        assert data["schedule"][-1]["balance"] == pytest.approx(20000)

    def test_schedule_rejects_zero_term(self, client):
        response = client.post(
            "/api/calculate/schedule",
            json={"principal": 1000, "annual_rate": 5, "term_months": 0, "start_date": "2024-01-01"},
        )
        assert response.status_code == 400


class TestInvestorsAPI:
    """Test investor allocation endpoint."""

    def _payload(self, investors):
        return {
            "principal": 100000,
            "annual_rate": 12,
            "term_months": 12,
            "start_date": "2024-01-01",
            "investors": investors,
        }

    def test_investor_returns(self, client):
        response = client.post("/api/calculate/investors", json=self._payload(INVESTORS))
        assert response.status_code == 200
        data = response.json()
        assert len(data["investor_returns"]) == 3
        assert data["summary"]["total_share"] == pytest.approx(1.0)
        assert data["summary"]["total_interest"] == pytest.approx(data["total_interest"])

    def test_too_few_investors(self, client):
        response = client.post("/api/calculate/investors", json=self._payload(INVESTORS[:2]))
        assert response.status_code == 400
        assert "investors" in response.json()["detail"]

    def test_contributions_must_match_loan(self, client):
        investors = [dict(inv) for inv in INVESTORS]
        investors[0]["investment_amount"] = 39000
        response = client.post("/api/calculate/investors", json=self._payload(investors))
        assert response.status_code == 400
        assert response.json()["detail"] == "Total investment must match the loan amount"


class TestLeasingAPI:
    """Test leasing endpoint."""

    def test_leasing(self, client):
        response = client.post("/api/calculate/leasing", json=LEASE)
        assert response.status_code == 200
        data = response.json()

        assert len(data["monthly_cashflows"]) == 37
        assert len(data["loan_schedule"]) == 36
        assert data["rent"]["lessor_monthly_profit"] == pytest.approx(6250)
        assert data["initial_payment"]["admin_commission"] == pytest.approx(10000)
        assert 14 < data["metrics"]["payback_period_months"] < 15
        assert data["metrics"]["internal_rate_of_return"] > 0
        assert [year["year"] for year in data["annual_cashflows"]] == [1, 2, 3, 4]

    def test_never_recovered_returns_null(self, client):
        """Undefined IRR and payback are null, not errors."""
        response = client.post(
            "/api/calculate/leasing",
            json={
                "start_date": "2024-01-01",
                "asset_cost": 100000,
                "lease_term_months": 12,
                "lessor_profit_margin_pct": 0,
                "monthly_operational_expenses": 10000,
            },
        )
        assert response.status_code == 200
        metrics = response.json()["metrics"]
        assert metrics["payback_period_months"] is None
        assert metrics["internal_rate_of_return"] is None
        assert metrics["total_project_profit"] < 0

    def test_leasing_rejects_zero_term(self, client):
        response = client.post("/api/calculate/leasing", json={**LEASE, "lease_term_months": 0})
        assert response.status_code == 400

    def test_leasing_rejects_negative_cost(self, client):
        response = client.post("/api/calculate/leasing", json={**LEASE, "asset_cost": -1})
        assert response.status_code == 400


class TestOperatorAPI:
    """Test operator pricing endpoint."""

    def _payload(self, **overrides):
        payload = {
            "start_date": "2024-01-01",
            "asset_cost": 120000,
            "down_payment": 20000,
            "investor_rate": 12,
            "term_months": 36,
            "financial_margin": 500,
            "residual_value_rate": 20,
            "investors": INVESTORS,
        }
        payload.update(overrides)
        return payload

    def test_operator(self, client):
        response = client.post("/api/calculate/operator", json=self._payload())
        assert response.status_code == 200
        data = response.json()

        assert data["client_rate"] > 12
        assert len(data["client_schedule"]) == 36
        assert data["client_schedule"][-1]["balance"] == pytest.approx(24000)
        assert data["metrics"]["payback_period_months"] is None
        assert data["metrics"]["total_project_profit"] == pytest.approx(42000)

    def test_operator_contributions_checked_against_financed_amount(self, client):
        response = client.post("/api/calculate/operator", json=self._payload(down_payment=0))
        assert response.status_code == 400

    def test_operator_rejects_zero_term(self, client):
        response = client.post("/api/calculate/operator", json=self._payload(term_months=0))
        assert response.status_code == 400


class TestIRRAPI:
    """Test IRR and RATE endpoints."""

    def test_calculate_irr(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": [-100, 20, 20, 20, 20, 120]})
        assert response.status_code == 200
        data = response.json()
        assert data["irr"] == pytest.approx(0.20, abs=1e-4)
        assert data["profit"] == pytest.approx(100)
        assert data["multiple"] == pytest.approx(2.0)

    def test_irr_requires_two_flows(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": [-100]})
        assert response.status_code == 400

    def test_irr_requires_sign_change(self, client):
        response = client.post("/api/calculate/irr", json={"cash_flows": [100, 200]})
        assert response.status_code == 400

    def test_calculate_rate(self, client):
        response = client.post(
            "/api/calculate/rate",
            json={"nper": 12, "pmt": -8884.878867, "pv": 100000},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["periodic_rate"] == pytest.approx(0.01, abs=1e-4)
        assert data["annual_rate_pct"] == pytest.approx(12, abs=0.01)

    def test_rate_rejects_zero_periods(self, client):
        response = client.post("/api/calculate/rate", json={"nper": 0, "pmt": -100, "pv": 1000})
        assert response.status_code == 422


class TestScheduleResidualValidation:
    """Test residual value bounds on the schedule endpoint."""

    def _payload(self, residual_value):
        return {
            "principal": 1000,
            "annual_rate": 12,
            "term_months": 12,
            "start_date": "2024-01-01",
            "residual_value": residual_value,
        }

    def test_residual_above_principal(self, client):
        response = client.post("/api/calculate/schedule", json=self._payload(5000))
        assert response.status_code == 400
        assert response.json()["detail"] == "residual_value must not exceed principal"

    def test_negative_residual(self, client):
        response = client.post("/api/calculate/schedule", json=self._payload(-200))
        assert response.status_code == 400

    def test_residual_equal_to_principal(self, client):
        """Interest-only lease: balance never moves."""
        response = client.post("/api/calculate/schedule", json=self._payload(1000))
        assert response.status_code == 200
        balances = [row["balance"] for row in response.json()["schedule"]]
        assert balances == pytest.approx([1000] * 12)

    def test_zero_residual_fully_amortizes(self, client):
        response = client.post("/api/calculate/schedule", json=self._payload(0))
        assert response.status_code == 200
        assert response.json()["schedule"][-1]["balance"] == 0.0


class TestStrictLeasingAPI:
    """Test strict mode on the leasing endpoint."""

    UNRECOVERED = {
        "start_date": "2024-01-01",
        "asset_cost": 100000,
        "lease_term_months": 12,
        "lessor_profit_margin_pct": 0,
        "monthly_operational_expenses": 10000,
    }

    def test_strict_rejects_undefined_kpis(self, client):
        response = client.post("/api/calculate/leasing", json={**self.UNRECOVERED, "strict": True})
        assert response.status_code == 400
        assert "not computable" in response.json()["detail"]

    def test_strict_accepts_profitable_lease(self, client):
        response = client.post("/api/calculate/leasing", json={**LEASE, "strict": True})
        assert response.status_code == 200


class TestMetricsAPI:
    """Test investment metrics and projections endpoints."""

    def test_metrics_with_amortizing_payment(self, client):
        response = client.post(
            "/api/calculate/metrics",
            json={"loan_amount": 100000, "annual_rate": 12, "term_months": 12},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["monthly_payment"] == pytest.approx(8884.88, abs=0.01)
        assert data["profitability_index"] == pytest.approx(1.0)
        assert data["loan_to_value_ratio"] == pytest.approx(0.8)

    def test_metrics_undefined_values_are_null(self, client):
        """Payment below interest never breaks even."""
        response = client.post(
            "/api/calculate/metrics",
            json={"loan_amount": 100000, "annual_rate": 12, "term_months": 12, "monthly_payment": 500},
        )
        assert response.status_code == 200
        assert response.json()["break_even_months"] is None

    def test_metrics_rejects_zero_loan(self, client):
        response = client.post(
            "/api/calculate/metrics",
            json={"loan_amount": 0, "annual_rate": 12, "term_months": 12},
        )
        assert response.status_code == 422

    def test_projections(self, client):
        response = client.post(
            "/api/calculate/projections",
            json={"initial_investment": 1000, "annual_cash_flow": 400, "discount_rate": 0, "years": 3},
        )
        assert response.status_code == 200
        projections = response.json()["projections"]
        assert len(projections) == 3
        assert projections[-1]["cumulative_npv"] == pytest.approx(200)
