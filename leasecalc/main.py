"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI

from leasecalc import __version__
from leasecalc.api import router as api_router
from leasecalc.config import get_settings
from leasecalc.logging import setup_logging

settings = get_settings()

setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Leasing amortization, investor returns and lease KPI calculations",
    version=__version__,
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")

logger.info(f"{settings.app_name} started in {settings.app_env} mode")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}
