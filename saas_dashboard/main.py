"""SaaS Metrics Dashboard - FastAPI Application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from saas_dashboard.config import get_settings
from saas_dashboard.database import init_db
from saas_dashboard.scheduler import start_scheduler, stop_scheduler
from saas_dashboard.api import dashboard_router
from saas_dashboard.api.auth import verify_api_key

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting SaaS Metrics Dashboard")
    await init_db()
    start_scheduler()

    yield

    # Shutdown
    logger.info("Shutting down SaaS Metrics Dashboard")
    stop_scheduler()


# Create application
app = FastAPI(
    title="SaaS Metrics Dashboard",
    description="Revenue and funnel metrics from Lemon Squeezy and PostHog",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check (no auth required)
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "saas-dashboard",
        "billing_configured": settings.billing_configured,
        "analytics_configured": settings.analytics_configured,
    }


# Root info
@app.get("/")
async def root():
    """API information."""
    return {
        "service": "SaaS Metrics Dashboard",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


# Include routers
app.include_router(dashboard_router, prefix="/api/v1")


# Manual trigger endpoint (for admin use)
@app.post("/api/v1/admin/cache/warm")
async def trigger_cache_warm(_: str | None = Depends(verify_api_key)):
    """Manually refresh the cached default ranges."""
    from saas_dashboard.scheduler import warm_cache
    warmed = await warm_cache()
    return {"status": "completed", "job": "warm_cache", "ranges": warmed}


# Error handlers
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "saas_dashboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
