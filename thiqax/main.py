"""
ThiQaX Verification Service - FastAPI Application

Main entry point for the API server.
Run with: uvicorn thiqax.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from thiqax.config.settings import settings
from thiqax.config.database import init_db
from thiqax.endpoints import api_router
from thiqax.middleware.auth import AuthMiddleware
from thiqax.middleware.error_handler import setup_exception_handlers
from thiqax.middleware.logging import LoggingMiddleware, configure_logging

# Configure structured logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(
        "Starting ThiQaX Verification Service",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    try:
        init_db()
    except Exception as e:
        logger.critical("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Shutting down ThiQaX Verification Service")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Document verification and KYC workflow for the ThiQaX recruitment platform",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Setup exception handlers
setup_exception_handlers(app)

# Middleware added later wraps middleware added earlier

# Add authentication middleware (innermost)
app.add_middleware(AuthMiddleware)

# Add logging middleware (wraps auth, so rejected requests are logged too)
app.add_middleware(LoggingMiddleware)

# Add CORS middleware (outermost, answers preflight before auth)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


# Root health endpoint (for load balancers)
@app.get("/health")
async def root_health():
    """Simple health check for load balancer."""
    return {"status": "ok", "version": settings.APP_VERSION}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs" if settings.DEBUG else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "thiqax.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
