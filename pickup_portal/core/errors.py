from __future__ import annotations

from typing import Any, Dict, Optional

from pickup_portal.core.enums import ViewErrorKind
from pickup_portal.schemas.views import ViewError


CONNECTION_MESSAGE = (
    "Cannot connect to the collection service. "
    "Please check your connection and try again."
)


class PortalError(Exception):
    """Base class for every failure surfaced to a view."""


class ApiResponseError(PortalError):
    """The external API answered with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: Optional[Dict[str, str]] = None,
        timestamp: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or {}
        self.timestamp = timestamp

    @classmethod
    def from_body(cls, status_code: int, body: Any) -> "ApiResponseError":
        if not isinstance(body, dict):
            return cls(status_code, f"Request failed with status {status_code}")
        message = body.get("message") or f"Request failed with status {status_code}"
        errors = body.get("errors")
        if not isinstance(errors, dict):
            errors = {}
        return cls(
            status_code,
            str(message),
            {str(k): str(v) for k, v in errors.items()},
            body.get("timestamp"),
        )


class ApiConnectionError(PortalError):
    """No HTTP response reached us."""


class ApiRequestError(PortalError):
    """The outgoing request could not be built."""


class TransitionNotAllowed(PortalError, ValueError):
    def __init__(self, current: Any, target: Any) -> None:
        super().__init__(f"Invalid status transition from {current} to {target}")
        self.current = current
        self.target = target


def to_view_error(exc: Exception, fallback: str) -> ViewError:
    if isinstance(exc, ApiResponseError):
        if exc.errors:
            return ViewError(
                kind=ViewErrorKind.field,
                message=exc.message,
                field_errors=exc.errors,
            )
        return ViewError(kind=ViewErrorKind.banner, message=exc.message)
    if isinstance(exc, ApiConnectionError):
        return ViewError(kind=ViewErrorKind.connection, message=CONNECTION_MESSAGE)
    if isinstance(exc, TransitionNotAllowed):
        return ViewError(kind=ViewErrorKind.banner, message=str(exc))
    return ViewError(kind=ViewErrorKind.generic, message=fallback)
