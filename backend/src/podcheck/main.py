"""
FastAPI application entry point.

This is the main application that ties together all components:
- Batch lifecycle endpoints driven by the capture host
- Backend connection cleanup on shutdown
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from podcheck import __version__
from podcheck.api.routes import batches, health
from podcheck.config import get_settings
from podcheck.infrastructure.database import dispose_engine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    
    Shutdown closes every batch still open and disposes the
    backend engine.
    """
    settings = get_settings()
    
    logger.info(f"Starting podcheck v{__version__}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Lookup table: {settings.lookup.qualified_name}")
    logger.info(
        f"Field limits: customer={settings.customer_max_length} "
        f"invoice={settings.invoice_max_length}"
    )
    
    yield  # Application runs here
    
    # Shutdown
    logger.info("Shutting down podcheck")
    batches.close_all_batches()
    dispose_engine()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    
    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = get_settings()
    
    app = FastAPI(
        title="podcheck API",
        description=(
            "Proof-of-delivery index validation.\n\n"
            "Enforces customer/invoice field lengths and verifies the "
            "customer/invoice combination against the backend order table."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    
    # Register routers
    app.include_router(health.router)
    app.include_router(batches.router, prefix="/api/v1")
    
    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")
        
        # Don't expose internal errors in production
        if settings.debug:
            detail = str(exc)
        else:
            detail = "An internal error occurred"
        
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": detail,
            },
        )
    
    return app


# Create the application instance
app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "podcheck.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
