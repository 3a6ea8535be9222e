"""
Error Tracking Service

Integrates with Sentry for error tracking when SENTRY_DSN is configured.
"""

from typing import Optional, Dict, Any
import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from spectral.config import settings

logger = logging.getLogger(__name__)


class ErrorTracker:
    """Centralized error tracking."""

    def __init__(self, dsn: Optional[str] = None):
        """Initialize error tracking."""
        self.sentry_enabled = False

        dsn = settings.SENTRY_DSN if dsn is None else dsn
        if dsn:
            self._initialize_sentry(dsn)

    def _initialize_sentry(self, dsn: str):
        """Initialize Sentry SDK."""
        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=settings.ENVIRONMENT,
                release=settings.APP_VERSION,
                traces_sample_rate=0.1,  # 10% of transactions
                integrations=[
                    FastApiIntegration(),
                    SqlalchemyIntegration()
                ],
                before_send=self._filter_before_send,
                attach_stacktrace=True,
                send_default_pii=False  # OAuth tokens and emails stay out of events
            )

            self.sentry_enabled = True
            logger.info(f"Sentry error tracking enabled (environment: {settings.ENVIRONMENT})")

        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}")

    def _filter_before_send(self, event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Filter events before sending to Sentry.

        Returns None to drop the event, or the event to send it.
        """
        # Health checks are noise
        if 'request' in event:
            url = event['request'].get('url', '')
            if '/health' in url:
                return None

        # Expected client errors are not reported
        if 'exception' in event:
            for exception in event['exception'].get('values', []):
                exc_type = exception.get('type', '')
                if 'HTTPException' in exc_type or exc_type in (
                    'ValidationError', 'PermissionDenied', 'NotFoundError', 'ConflictError'
                ):
                    return None

        return event

    def capture_exception(
        self,
        exception: Exception,
        context: Optional[Dict[str, Any]] = None,
        tags: Optional[Dict[str, str]] = None
    ):
        """
        Capture an exception.

        Args:
            exception: The exception to capture
            context: Additional context data
            tags: Custom tags for filtering
        """
        logger.error(f"Exception captured: {str(exception)}", exc_info=exception)

        if self.sentry_enabled:
            with sentry_sdk.new_scope() as scope:
                if context:
                    for key, value in context.items():
                        scope.set_context(key, value)

                if tags:
                    for key, value in tags.items():
                        scope.set_tag(key, value)

                sentry_sdk.capture_exception(exception)


_tracker: Optional[ErrorTracker] = None


def init_error_tracking() -> ErrorTracker:
    """Create the process-wide tracker (idempotent)."""
    global _tracker
    if _tracker is None:
        _tracker = ErrorTracker()
    return _tracker


def capture_exception(exception: Exception, **kwargs):
    """Report an exception through the process-wide tracker."""
    init_error_tracking().capture_exception(exception, **kwargs)
