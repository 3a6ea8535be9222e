"""FastAPI main application."""

import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spectral.config import settings
from spectral.database import init_db
from spectral.routers import auth, accounts, maps, folders, media, contributions, health
from spectral.middleware import (
    SecurityHeadersMiddleware,
    RequestValidationMiddleware,
    AuditLogMiddleware
)
from spectral.services.errors import ServiceError
from spectral.services.error_tracking import capture_exception, init_error_tracking
from spectral.services.logging_service import app_logger

# Create FastAPI application
app = FastAPI(
    title="Spectral API",
    description="Creator and editor collaboration on YouTube content",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestValidationMiddleware, max_content_length=settings.MAX_UPLOAD_BYTES)
app.add_middleware(AuditLogMiddleware)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Turn domain errors into ``{"detail": message}`` responses."""
    if exc.status_code >= 500:
        capture_exception(exc, tags={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def configure_oauthlib():
    """Apply process-wide oauthlib options before any token exchange."""
    if settings.OAUTH_RELAX_TOKEN_SCOPE:
        os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    configure_oauthlib()
    init_db()
    init_error_tracking()

    if settings.SCHEDULER_ENABLED:
        from spectral.services.scheduler_service import start_scheduler
        start_scheduler()

    app_logger.info(
        "application started",
        environment=settings.ENVIRONMENT,
        scheduler=settings.SCHEDULER_ENABLED
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown."""
    from spectral.services.scheduler_service import shutdown_scheduler
    shutdown_scheduler()

    app_logger.info("application shutting down")


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "Spectral API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs"
    }


# Include routers
app.include_router(health.router, tags=["Health & Monitoring"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(accounts.router, prefix="/api/accounts", tags=["Accounts"])
app.include_router(maps.router, prefix="/api/maps", tags=["Editors"])
app.include_router(maps.account_editors_router, prefix="/api/account-editors", tags=["Editors"])
app.include_router(folders.router, prefix="/api/folders", tags=["Folders"])
app.include_router(media.router, prefix="/api/media", tags=["Media"])
app.include_router(contributions.router, prefix="/api/contributions", tags=["Contributions"])
app.include_router(contributions.versions_router, prefix="/api/versions", tags=["Contributions"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "spectral.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
