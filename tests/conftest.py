"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leasecalc.calculations.models import Contribution, LeasingParameters


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def start_date():
    """Fixed as-of date for every calculation."""
    return date(2024, 1, 1)


@pytest.fixture
def leasing_params():
    """Reference lease: 500k asset, 36 months, 400k investor loan at 10%."""
    return LeasingParameters(
        asset_cost=500000,
        lease_term_months=36,
        lessor_profit_margin_pct=15,
        fixed_monthly_fee=1000,
        admin_commission_pct=2,
        loan_amount=400000,
        annual_interest_rate=10,
        monthly_operational_expenses=2000,
        residual_value_rate=20,
        discount_rate=6,
    )


@pytest.fixture
def contributions():
    """Three investors funding a 100k loan."""
    return [
        Contribution(investor_id="1", name="Alice", amount=40000),
        Contribution(investor_id="2", name="Bruno", amount=30000),
        Contribution(investor_id="3", name="Carmen", amount=30000),
    ]
