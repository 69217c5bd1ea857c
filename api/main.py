"""
Mains Supply Analyzer - FastAPI Application

This is the main entry point for the FastAPI backend.
It combines all route modules and provides system-wide endpoints.

Features:
- Mains test setup (tests, devices, step plans)
- Observation entry with boundary validation
- Analysis: static/dynamic pressure, supply curve, risks, confidence
- Synthetic scenario generation
- Interactive API documentation (Swagger/OpenAPI)

Access Points:
- API Root: http://localhost:8000
- Swagger Docs: http://localhost:8000/docs
- ReDoc: http://localhost:8000/redoc
- OpenAPI JSON: http://localhost:8000/openapi.json
"""

import os
import logging
from datetime import datetime, timezone
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.database import check_database_health, init_database
from api.routes import mains_tests_router, scenarios_router
from api.models import SystemHealth

API_VERSION = "0.1.0"

# =========================================
# Logging Configuration
# =========================================

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# =========================================
# Application Lifespan
# =========================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup and shutdown to manage resources.
    """
    logger.info("Starting Mains Supply Analyzer API...")

    try:
        init_database()

        db_health = check_database_health()
        if db_health["status"] == "healthy":
            logger.info(f"Database connection verified ({db_health.get('backend')})")
        else:
            logger.warning(f"Database health check failed: {db_health}")

    except SQLAlchemyError as e:
        logger.error(f"Startup error: {e}")
        # Don't prevent startup - database might come up later

    logger.info("Mains Supply Analyzer API started")
    logger.info("API Documentation: http://localhost:8000/docs")

    yield  # Application runs here

    logger.info("Shutting down Mains Supply Analyzer API...")


# =========================================
# FastAPI Application
# =========================================

app = FastAPI(
    title="Mains Supply Analyzer API",
    description="""
## Mains Water Supply Performance Testing

This API records multi-step mains water tests taken on site before
installing water-dependent heating equipment (combination boilers,
unvented cylinders) and turns the readings into an engineering verdict.

### Key Features

- **Step-by-step capture**: static pressure first, then progressively more outlets open
- **Plausibility checks**: implausible readings are kept and flagged, never silently dropped
- **Supply curve**: flow against pressure for every device and step
- **Risk flags**: low static pressure, pressure collapse, combi stability, cold feed temperature
- **Confidence rating**: how far the results can be trusted given the data collected

### Quick Start

1. **Check API health**: `GET /health`
2. **Try a demo**: `POST /api/v1/scenarios/generate` with `{"scenario_type": "pressure_collapse"}`
3. **Create a real test**: `POST /api/v1/mains-tests`, then add steps and observations
4. **Get the analysis**: `GET /api/v1/mains-tests/{test_id}/results`
    """,
    version=API_VERSION,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# =========================================
# CORS Middleware
# =========================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:8501",  # Streamlit
        "http://127.0.0.1:8501",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================
# Exception Handlers
# =========================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "message": "An unexpected error occurred",
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else None,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


# =========================================
# Include Routers
# =========================================

# API v1 routes
app.include_router(mains_tests_router, prefix="/api/v1")
app.include_router(scenarios_router, prefix="/api/v1")


# =========================================
# Root Endpoints
# =========================================

@app.get(
    "/",
    tags=["System"],
    summary="API Root",
    description="Welcome endpoint with API information"
)
async def root():
    """API root endpoint."""
    return {
        "name": "Mains Supply Analyzer API",
        "version": API_VERSION,
        "description": "Mains water supply performance test analysis",
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }


@app.get(
    "/health",
    response_model=SystemHealth,
    tags=["System"],
    summary="System Health Check",
    description="Check the health status of the API and its dependencies"
)
async def health_check():
    """System health check endpoint."""
    db_health = check_database_health()

    overall_status = "ok" if db_health["status"] == "healthy" else "degraded"

    return SystemHealth(
        status=overall_status,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        database=db_health["status"],
        components={
            "api": "ok",
            "database": db_health["status"],
            "analysis_engine": "ok"
        }
    )


@app.get(
    "/ready",
    tags=["System"],
    summary="Readiness Check",
    description="Check if the API is ready to receive traffic"
)
async def readiness_check():
    """Kubernetes-style readiness probe."""
    db_health = check_database_health()

    if db_health["status"] != "healthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not ready"
        )

    return {"ready": True}


@app.get(
    "/live",
    tags=["System"],
    summary="Liveness Check",
    description="Check if the API process is alive"
)
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}


# =========================================
# Development/Debug Endpoints
# =========================================

if os.getenv("DEBUG", "false").lower() == "true":

    @app.get("/debug/config", tags=["Debug"])
    async def debug_config():
        """Show configuration (debug only)."""
        return {
            "database_url": os.getenv("DATABASE_URL", "not set")[:50] + "...",
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "environment": os.getenv("ENVIRONMENT", "development"),
            "debug": os.getenv("DEBUG", "false")
        }


# =========================================
# Run with Uvicorn (for development)
# =========================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", 8000)),
        reload=os.getenv("API_RELOAD", "true").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
