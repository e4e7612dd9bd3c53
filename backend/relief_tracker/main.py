"""Relief Tracker API entry point.

Run with ``uvicorn relief_tracker.main:app`` from the ``backend`` directory.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relief_tracker.core.config import get_settings
from relief_tracker.core.database import engine
from relief_tracker.core.env_validation import validate_environment
from relief_tracker.routers import (
    auth_router,
    pins_router,
    admin_router,
    realtime_router,
)

# Exits the process on a configuration the service cannot run with
validate_environment()

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"{settings.app_name} starting (moderation policy: {settings.moderation_policy.value})"
    )
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description=(
        "Community relief tracking: geotagged relief pins with photo proof, "
        "admin moderation and a live change feed."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Wildcard is only reachable in debug; env_validation rejects it otherwise
cors_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
logger.info(f"CORS origins: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (auth_router, pins_router, admin_router, realtime_router):
    app.include_router(router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    return {
        "service": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
