"""Health check endpoints."""
import logging
from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request):
    """Health check including database connectivity."""
    settings = request.app.state.settings
    try:
        await request.app.state.db.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database": "disconnected",
                "error": "Internal server error" if settings.is_production else str(e),
                "timestamp": datetime.utcnow().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "database": "connected",
        "environment": settings.environment,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/api")
async def root(request: Request):
    """API info."""
    settings = request.app.state.settings
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Real-estate listings API for Zentro Homes",
        "endpoints": {
            "properties": "/api/properties",
            "contacts": "/api/contacts",
            "admin": "/api/admin",
            "analytics": "/api/analytics",
            "health": "/health",
        },
    }
