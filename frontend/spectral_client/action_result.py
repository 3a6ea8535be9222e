"""Uniform result type returned by every client call."""

from dataclasses import dataclass
from typing import Any, Optional

ORIGINS = (
    "email",
    "phone",
    "password",
    "role",
    "otp",
    "callback",
    "map",
    "creator",
    "editor",
    "folder",
    "contribute",
    "media",
    "account",
)

CONNECTION_ERROR_MESSAGE = "Cannot connect to server. Make sure the backend is running."


@dataclass
class ActionResult:
    """
    Outcome of a backend call.

    Attributes:
        success: Whether the backend accepted the call
        origin: Form or feature area the result belongs to
        message: Human-readable status message
        data: Response payload on success
    """
    success: bool
    origin: str
    message: str
    data: Optional[Any] = None

    def __post_init__(self):
        if self.origin not in ORIGINS:
            raise ValueError(f"Unknown result origin: {self.origin}")

    @classmethod
    def ok(cls, origin: str, message: str, data: Any = None) -> "ActionResult":
        return cls(True, origin, message, data)

    @classmethod
    def fail(cls, origin: str, message: str) -> "ActionResult":
        return cls(False, origin, message, None)


def status_message(
    status_code: int,
    action: str,
    detail: Optional[str] = None,
    not_found: Optional[str] = None,
    conflict: Optional[str] = None,
) -> str:
    """
    Map an error status code to a fixed message.

    Args:
        status_code: HTTP status returned by the backend
        action: Verb phrase for the attempted operation, e.g. "create folder"
        detail: ``detail`` field of the error body, if any
        not_found: Message for 404 responses
        conflict: Fallback message for 409 responses without a detail

    Returns:
        Message suitable for display
    """
    if status_code in (401, 403):
        return f"Failed to {action} due to invalid authorization"
    if status_code == 404:
        return not_found or f"Failed to {action} due to invalid request"
    if status_code in (400, 422):
        return f"Failed to {action} due to invalid request"
    if status_code == 409:
        return detail or conflict or f"Failed to {action} due to a conflict"
    if status_code == 502 and detail:
        return detail
    if status_code >= 500:
        return f"Failed to {action} due to backend server error"
    return detail or f"Failed to {action}"
