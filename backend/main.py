from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config import CORS_ORIGINS, UI_DIST_DIR
from database import init_db
from routers import admin, devices, health
from routers.admin_ui import mount_admin_ui
from routers.devices import limiter
from services.errors import ApiError
from services.geoip import get_geoip


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup: Initialize the database
    init_db()
    yield
    # Shutdown: release the GeoIP reader
    get_geoip().close()
    get_geoip.cache_clear()


app = FastAPI(
    title="Management Sync API",
    description="Distributes per-device provider configuration and records device snapshots",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message},
        headers=exc.headers or None,
    )


if CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(devices.router, prefix="/api/v1/devices", tags=["devices"])
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])

# Mounted after the API routers so /api/v1/admin keeps precedence
mount_admin_ui(app, UI_DIST_DIR)
