"""Domain errors raised by services and converted to HTTP responses in main.py."""

from fastapi import status
from google.auth.exceptions import TransportError
from httplib2 import HttpLib2Error


class ServiceError(Exception):
    """Base class for errors a service reports back to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self):
        return self.message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class IntegrationError(ServiceError):
    """A Google API call failed. ``upstream_status`` holds the provider's status code."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status


def from_http_error(error, action: str) -> IntegrationError:
    """
    Convert a googleapiclient ``HttpError`` into an IntegrationError.

    Args:
        error: HttpError raised by a Google client
        action: What was being attempted, e.g. "upload file to Drive"

    Returns:
        IntegrationError with a message chosen by upstream status
    """
    upstream = getattr(getattr(error, "resp", None), "status", None)
    try:
        upstream = int(upstream) if upstream is not None else None
    except (TypeError, ValueError):
        upstream = None

    if upstream in (401, 403):
        message = f"Failed to {action} due to invalid authorization"
    elif upstream == 404:
        message = f"Failed to {action}: resource not found"
    elif upstream == 400:
        message = f"Failed to {action} due to invalid request"
    elif upstream == 409:
        message = f"Failed to {action}: conflicting resource"
    else:
        message = f"Failed to {action}: upstream service error"

    return IntegrationError(message, upstream_status=upstream)


# Failures below HTTP: DNS, TLS, dropped or refused connections
TRANSPORT_ERRORS = (TransportError, HttpLib2Error, OSError)


def from_transport_error(error, action: str) -> IntegrationError:
    """Convert a network failure into an IntegrationError with no upstream status."""
    return IntegrationError(f"Failed to {action}: upstream service unreachable")
