"""
API routes for the lease calculator.
"""

from fastapi import APIRouter

from leasecalc.api import calculations

router = APIRouter()

router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
