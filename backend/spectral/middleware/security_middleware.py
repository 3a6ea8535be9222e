"""Security and request bookkeeping middleware."""

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from spectral.config import settings
from spectral.services.logging_service import app_logger, app_metrics

# Responses under these prefixes carry user or token data
NO_STORE_PREFIXES = ("/api/auth", "/api/accounts")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Implements OWASP recommended security headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Add security headers to response.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            HTTP response with security headers
        """
        response = await call_next(request)

        # Force HTTPS for 1 year
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        csp_directives = [
            "default-src 'self'",
            "img-src 'self' data: https:",
            "frame-ancestors 'none'",  # Prevent clickjacking
            "base-uri 'self'",
            "form-action 'self' https://accounts.google.com"
        ]
        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=(), payment=()"

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"

        return response


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """
    Validate incoming requests.

    Rejects oversized bodies and path traversal attempts.
    """

    def __init__(self, app, max_content_length: int = None):
        """
        Initialize request validation middleware.

        Args:
            app: FastAPI application
            max_content_length: Maximum request body size, defaults to MAX_UPLOAD_BYTES
        """
        super().__init__(app)
        self.max_content_length = max_content_length or settings.MAX_UPLOAD_BYTES

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Validate request before processing.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            Error response or normal response
        """
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"detail": "Invalid Content-Length header"}
                )
            if length > self.max_content_length:
                return JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={"detail": f"Request body too large. Maximum: {self.max_content_length} bytes"}
                )

        suspicious_patterns = ["../", "..\\", "<script", "javascript:"]

        path_lower = request.url.path.lower()
        for pattern in suspicious_patterns:
            if pattern in path_lower:
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"detail": "Invalid request path"}
                )

        return await call_next(request)


class AuditLogMiddleware(BaseHTTPMiddleware):
    """
    Log security-relevant events for audit trail.

    Logs authentication and state-changing operations on sensitive paths,
    and counts every request for the metrics endpoint.
    """

    def __init__(self, app):
        """Initialize audit log middleware."""
        super().__init__(app)
        self.sensitive_paths = [
            "/api/auth",
            "/api/accounts",
            "/api/maps",
            "/api/account-editors",
            "/api/versions"
        ]

    def _should_log(self, path: str, method: str) -> bool:
        """
        Determine if request should be logged.

        Args:
            path: Request path
            method: HTTP method

        Returns:
            True if should log
        """
        if path.startswith("/api/auth"):
            return True

        if method in ["POST", "PUT", "PATCH", "DELETE"]:
            return any(path.startswith(sensitive) for sensitive in self.sensitive_paths)

        return False

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Log request and response for audit trail.

        Args:
            request: HTTP request
            call_next: Next middleware/handler

        Returns:
            HTTP response
        """
        path = request.url.path
        audited = self._should_log(path, request.method)
        client_ip = request.client.host if request.client else "unknown"

        if audited:
            app_logger.info("audit request", method=request.method, path=path, ip=client_ip)

        response = await call_next(request)

        app_metrics.increment_request(path, success=response.status_code < 500)

        if audited:
            app_logger.info("audit result", method=request.method, path=path, status_code=response.status_code)

        return response
