"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from fastapi import APIRouter

from podcheck import __version__
from podcheck.api.schemas import HealthResponse
from podcheck.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Check system health.
    
    Reports the deployment environment and the order table used
    for customer/invoice lookups.
    """
    settings = get_settings()
    
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        lookup_table=settings.lookup.qualified_name,
    )
