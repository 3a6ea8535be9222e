"""Middleware modules for FastAPI application."""

from spectral.middleware.security_middleware import (
    SecurityHeadersMiddleware,
    RequestValidationMiddleware,
    AuditLogMiddleware
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestValidationMiddleware",
    "AuditLogMiddleware"
]
