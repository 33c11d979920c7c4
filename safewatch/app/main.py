"""
FastAPI application entry point.

Run with:
    uvicorn safewatch.app.main:app --reload --port 8000

Or from the project root:
    python -m uvicorn safewatch.app.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ── Core infrastructure ──
from safewatch.app.core.config import settings
from safewatch.app.core.logging_config import setup_logging, get_logger
from safewatch.app.core.errors import register_error_handlers
from safewatch.app.core.middleware import RequestLoggingMiddleware
from safewatch.app.core.health import HealthStatus, run_health_check

# ── API routers ──
from safewatch.app.api.dependencies import registry_dependency
from safewatch.app.api.v1.alerts import router as alert_router
from safewatch.app.api.v1.users import router as user_router
from safewatch.app.api.v1.neighborhoods import router as neighborhood_router
from safewatch.app.api.v1.events import router as event_router
from safewatch.app.registry.service import Registry

# ── Initialise logging ──
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown events."""
    logger.info(
        "Starting %s v%s [%s] owner=%s",
        settings.APP_NAME, settings.APP_VERSION,
        settings.ENVIRONMENT, settings.REGISTRY_OWNER,
    )
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Community safety-alert registry. Residents register, report "
        "location-tagged incidents, respond to and resolve alerts, and "
        "form neighborhoods, with a reputation score gating and "
        "rewarding participation."
    ),
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Middleware stack (order matters — outermost first) ──

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS if not settings.CORS_ALLOW_ALL else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_error_handlers(app)

app.include_router(user_router)
app.include_router(alert_router)
app.include_router(neighborhood_router)
app.include_router(event_router)


@app.get("/", tags=["root"])
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "modules": [
            "users",
            "alerts",
            "neighborhoods",
            "events",
        ],
        "docs": "/docs",
    }


@app.get("/health", tags=["health"])
def health_check(registry: Registry = Depends(registry_dependency)):
    """Deep health check — checks all subsystems."""
    return run_health_check(registry).to_dict()


@app.get("/health/live", tags=["health"])
async def liveness():
    """Kubernetes liveness check — is the process alive?"""
    return {"status": "alive"}


@app.get("/health/ready", tags=["health"])
def readiness(registry: Registry = Depends(registry_dependency)):
    """Kubernetes readiness check — can we serve traffic?"""
    report = run_health_check(registry)
    if report.status is HealthStatus.UNHEALTHY:
        return JSONResponse(status_code=503, content=report.to_dict())
    return report.to_dict()
