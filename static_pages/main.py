from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from static_pages.config import get_settings, validate_config_on_startup
from static_pages.routers import pages
from static_pages.services.cache import RefreshError


logger = logging.getLogger(__name__)


settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Raises ConfigurationError, which keeps the server from starting
    validate_config_on_startup(settings)
    yield


app = FastAPI(
    title="Static Pages API",
    version="0.1.0",
    lifespan=lifespan,
)

cors_origins = [
    origin.strip()
    for origin in settings.cors_allowed_origins.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(pages.router)


@app.exception_handler(RefreshError)
async def refresh_error_handler(request: Request, exc: RefreshError):
    """Handle upstream content failures that reach the app with 502 error.

    The page routes degrade to an empty state themselves; this is the
    fallback for routes that let RefreshError propagate.
    """
    logger.error(f"Upstream refresh failed: {exc}")
    return JSONResponse(
        status_code=502,
        content={
            "detail": "Upstream content could not be fetched",
            "error": str(exc),
            "error_type": "refresh_error",
        },
    )


@app.get("/api/ping")
async def ping():
    """Simple health check for load balancers."""
    return {"status": "ok", "version": "0.1.0"}
