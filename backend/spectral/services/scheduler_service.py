"""APScheduler service for background maintenance jobs."""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.executors.pool import ThreadPoolExecutor
from typing import Optional
import logging

from spectral.config import settings
from spectral.database import SessionLocal
from spectral.services.auth_service import AuthService
from spectral.services.logging_service import app_metrics

logger = logging.getLogger(__name__)

SESSION_CLEANUP_JOB_ID = "session_cleanup"

# Global scheduler instance
scheduler: Optional[BackgroundScheduler] = None


def get_scheduler() -> Optional[BackgroundScheduler]:
    """Get the global scheduler instance."""
    return scheduler


def session_cleanup_job() -> int:
    """
    Background job that purges expired user sessions.

    Returns:
        Number of sessions deleted
    """
    db = SessionLocal()
    try:
        deleted = AuthService.cleanup_expired_sessions(db)
        app_metrics.increment_background_job(success=True)
        if deleted:
            logger.info(f"Removed {deleted} expired sessions")
        return deleted
    except Exception as e:
        db.rollback()
        app_metrics.increment_background_job(success=False)
        logger.error(f"Error in session cleanup job: {e}")
        return 0
    finally:
        db.close()


def start_scheduler():
    """Initialize and start the APScheduler."""
    global scheduler

    if scheduler is not None:
        logger.info("Scheduler already running")
        return

    scheduler = BackgroundScheduler(
        executors={'default': ThreadPoolExecutor(2)},
        job_defaults={'coalesce': True, 'max_instances': 1},
        timezone='UTC'
    )

    scheduler.add_job(
        session_cleanup_job,
        trigger='interval',
        minutes=settings.SESSION_CLEANUP_INTERVAL_MINUTES,
        id=SESSION_CLEANUP_JOB_ID,
        replace_existing=True
    )

    scheduler.start()
    logger.info("APScheduler started successfully")


def shutdown_scheduler():
    """Shutdown the APScheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("APScheduler shut down successfully")
