"""
Error taxonomy for the task tracker.

Every error a client can see derives from TrackerError and carries the HTTP
status it maps to plus a human-readable message. The FastAPI exception
handlers in main.py render them as:

    {"success": false, "error": "<class name>", "message": "<text>"}
"""
from __future__ import annotations

from typing import Any, List, Optional


class TrackerError(Exception):
    """Base class for client-visible failures."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error(self) -> str:
        return type(self).__name__


class ValidationError(TrackerError):
    status_code = 400
    default_message = "Request validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class ConflictError(TrackerError):
    status_code = 400
    default_message = "Resource already exists"


class DuplicateEmail(ConflictError):
    default_message = "User with this email already exists"


class AuthenticationError(TrackerError):
    status_code = 401
    default_message = "Invalid email or password"


class MissingCredential(AuthenticationError):
    default_message = "No token provided. Authorization denied."


class InvalidCredential(AuthenticationError):
    default_message = "Invalid or expired token. Authorization denied."


class NotFoundOrForbidden(TrackerError):
    # Absent and not-owned are deliberately reported the same way.
    status_code = 404
    default_message = "Task not found"


class InvalidToken(Exception):
    """Raised by the token service; the access guard turns it into InvalidCredential."""
