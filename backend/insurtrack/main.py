"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from insurtrack.api.v1 import (
    admin,
    agents,
    assignments,
    auth,
    commissions,
    dashboard,
    policies,
    profiles,
    reminders,
)
from insurtrack.core.config import settings
from insurtrack.core.errors import InsurTrackError
from insurtrack.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging("DEBUG" if settings.APP_ENV == "development" else "INFO")
    startup_logger = get_logger("startup")
    startup_logger.info("Application starting", env=settings.APP_ENV, rls=settings.RLS_ENABLED)
    yield
    startup_logger.info("Application shutting down")


app = FastAPI(
    title="InsurTrack API",
    description="Role-based insurance policy management for clients, agents and admins",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InsurTrackError)
async def domain_error_handler(request: Request, exc: InsurTrackError) -> JSONResponse:
    """Map domain exceptions to ``{"detail": message}`` with the class status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        path=request.url.path,
        error=type(exc).__name__,
        message=exc.message,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


API_PREFIX = "/api/v1"
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(profiles.router, prefix=API_PREFIX)
app.include_router(policies.router, prefix=API_PREFIX)
app.include_router(agents.router, prefix=API_PREFIX)
app.include_router(assignments.router, prefix=API_PREFIX)
app.include_router(admin.router, prefix=API_PREFIX)
app.include_router(commissions.router, prefix=API_PREFIX)
app.include_router(dashboard.router, prefix=API_PREFIX)
app.include_router(reminders.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
