"""Lease calculator: amortization, investor returns and leasing KPIs."""

__version__ = "0.1.0"
