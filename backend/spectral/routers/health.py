"""Health check and monitoring endpoints."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
import psutil
import os

from spectral.database import get_db
from spectral.services.logging_service import app_metrics
from spectral.services.scheduler_service import get_scheduler
from spectral.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if application is running.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION
    }


@router.get("/health/live")
async def liveness_check():
    """
    Liveness probe.

    Returns 200 if application process is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "pid": os.getpid()
    }


@router.get("/health/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness probe.

    The database must answer; the scheduler is reported but only required
    when SCHEDULER_ENABLED is set.
    """
    checks = {"database": False, "scheduler": False}
    errors = []

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        errors.append(f"Database: {str(e)}")

    scheduler = get_scheduler()
    checks["scheduler"] = scheduler is not None and scheduler.running
    if settings.SCHEDULER_ENABLED and not checks["scheduler"]:
        errors.append("Scheduler: Not running")

    if not errors:
        return {
            "status": "ready",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat()
        }

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "not_ready",
            "checks": checks,
            "errors": errors,
            "timestamp": datetime.utcnow().isoformat()
        }
    )


@router.get("/health/metrics")
async def application_metrics():
    """
    Application metrics endpoint.

    Returns request, background job and integration counters plus
    process-level system figures.
    """
    metrics = dict(app_metrics.get_metrics())
    metrics["requests"] = dict(metrics["requests"])
    metrics["requests"]["error_rate_percent"] = app_metrics.get_error_rate()

    try:
        metrics["system"] = {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": psutil.virtual_memory().percent,
            "process_rss_bytes": psutil.Process(os.getpid()).memory_info().rss
        }
    except psutil.Error as e:
        metrics["system"] = {"error": f"Unable to gather system metrics: {str(e)}"}

    return metrics
