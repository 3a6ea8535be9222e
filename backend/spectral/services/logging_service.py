"""Structured logging and in-process request metrics."""

import logging
import json
from datetime import datetime
from typing import Dict, Any, Optional
import traceback

from spectral.config import settings


class StructuredLogger:
    """
    Structured JSON logger.

    Outputs one JSON object per record for log aggregation systems.
    """

    def __init__(self, name: str, log_file: Optional[str] = None, level: str = "INFO"):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_file: Optional file path for file logging
            level: Minimum level name
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self.logger.propagate = False

        if not self.logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(self._get_json_formatter())
            self.logger.addHandler(console_handler)

            if log_file:
                file_handler = logging.FileHandler(log_file)
                file_handler.setFormatter(self._get_json_formatter())
                self.logger.addHandler(file_handler)

    def _get_json_formatter(self):
        """Get JSON formatter for log records."""
        return logging.Formatter('%(message)s')

    def _format_log(
        self,
        level: str,
        message: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Format log message as JSON.

        Args:
            level: Log level
            message: Log message
            extra: Additional context

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": level,
            "message": message,
            "logger": self.logger.name
        }

        if extra:
            log_entry.update(extra)

        return json.dumps(log_entry, default=str)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self.logger.info(self._format_log("INFO", message, kwargs))

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self.logger.warning(self._format_log("WARNING", message, kwargs))

    def error(self, message: str, **kwargs):
        """Log error message."""
        self.logger.error(self._format_log("ERROR", message, kwargs))

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self.logger.debug(self._format_log("DEBUG", message, kwargs))

    def exception(self, message: str, exc_info=True, **kwargs):
        """
        Log exception with traceback.

        Args:
            message: Error message
            exc_info: Include exception info
            **kwargs: Additional context
        """
        if exc_info:
            kwargs["traceback"] = traceback.format_exc()

        self.logger.error(self._format_log("ERROR", message, kwargs))


class ApplicationMetrics:
    """
    Track application metrics for monitoring.

    Stores metrics in memory for health check endpoints.
    """

    def __init__(self):
        """Initialize metrics tracker."""
        self.metrics = {
            "requests": {
                "total": 0,
                "success": 0,
                "error": 0,
                "by_endpoint": {}
            },
            "background_jobs": {
                "total_runs": 0,
                "successful_runs": 0,
                "failed_runs": 0
            },
            "integrations": {
                "drive_errors": 0,
                "youtube_errors": 0,
                "youtube_uploads": 0
            },
            "uptime_seconds": 0,
            "last_updated": datetime.utcnow().isoformat()
        }
        self.start_time = datetime.utcnow()

    def increment_request(self, endpoint: str, success: bool = True):
        """
        Increment request counter.

        Args:
            endpoint: Endpoint path
            success: Whether request was successful
        """
        self.metrics["requests"]["total"] += 1

        if success:
            self.metrics["requests"]["success"] += 1
        else:
            self.metrics["requests"]["error"] += 1

        by_endpoint = self.metrics["requests"]["by_endpoint"]
        if endpoint not in by_endpoint:
            by_endpoint[endpoint] = {"total": 0, "success": 0, "error": 0}

        by_endpoint[endpoint]["total"] += 1
        by_endpoint[endpoint]["success" if success else "error"] += 1

        self._update_timestamp()

    def increment_background_job(self, success: bool = True):
        """Count one scheduler job run."""
        self.metrics["background_jobs"]["total_runs"] += 1
        if success:
            self.metrics["background_jobs"]["successful_runs"] += 1
        else:
            self.metrics["background_jobs"]["failed_runs"] += 1
        self._update_timestamp()

    def increment_integration(self, key: str):
        """
        Increment an integration counter.

        Args:
            key: One of drive_errors, youtube_errors, youtube_uploads
        """
        self.metrics["integrations"][key] = self.metrics["integrations"].get(key, 0) + 1
        self._update_timestamp()

    def _update_timestamp(self):
        """Update last_updated timestamp and uptime."""
        self.metrics["last_updated"] = datetime.utcnow().isoformat()
        self.metrics["uptime_seconds"] = (datetime.utcnow() - self.start_time).total_seconds()

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get current metrics.

        Returns:
            Metrics dictionary
        """
        self._update_timestamp()
        return self.metrics

    def get_error_rate(self) -> float:
        """
        Calculate request error rate.

        Returns:
            Error rate percentage
        """
        total = self.metrics["requests"]["total"]
        if total == 0:
            return 0.0

        return (self.metrics["requests"]["error"] / total) * 100


# Global instances
app_logger = StructuredLogger("spectral", level=settings.LOG_LEVEL)
app_metrics = ApplicationMetrics()
