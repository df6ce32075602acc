"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from zentro.api import admin, analytics, contacts, health, properties
from zentro.api.deps import client_info
from zentro.config import Settings, get_settings
from zentro.db.session import Database
from zentro.errors import register_error_handlers
from zentro.services.auth_service import AuthService
from zentro.services.rate_limiter import RateLimiter
from zentro.services.storage_service import PUBLIC_PREFIX, UploadStorage

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    app.state.storage.ensure_root()
    if settings.auto_create_tables:
        await app.state.db.create_all()

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await app.state.db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an application with its own database, auth, storage and limiter."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Real-estate listings, inquiries and analytics for Zentro Homes",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.db = Database(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow
    )
    app.state.auth = AuthService(settings)
    app.state.storage = UploadStorage(settings.upload_dir, settings.max_upload_bytes)
    app.state.limiter = RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        path = request.url.path
        if settings.rate_limit_enabled and (path == "/api" or path.startswith("/api/")):
            key = client_info(request).ip_address or "unknown"
            if not request.app.state.limiter.hit(key):
                logger.warning(f"Rate limit exceeded for {key}")
                return JSONResponse(
                    status_code=429,
                    content={"error": "Too many requests, please try again later."}
                )
        return await call_next(request)

    # Added last so it wraps the limiter
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    # Include routers
    app.include_router(health.router)
    app.include_router(properties.router)
    app.include_router(contacts.router)
    app.include_router(admin.router)
    app.include_router(analytics.router)

    app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="site")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "zentro.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
