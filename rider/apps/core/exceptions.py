"""
Domain errors shared by the order, rider and dispatch apps.

Every error surfaced to a caller derives from ``DispatchError`` and carries a
machine-readable ``code`` plus the HTTP status the API maps it to.
Notification problems are deliberately *not* exceptions: they are reported
as ``NotificationDeliveryWarning`` values and never abort an operation.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(DispatchError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_message = "Invalid input"


class PermissionDeniedError(DispatchError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"
    default_message = "You are not allowed to perform this action"


class NotFound(DispatchError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class ConflictError(DispatchError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Someone else changed this order first, refresh and retry"


class InvalidTransitionError(DispatchError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"

    def __init__(self, current: str, requested: str, message: Optional[str] = None):
        self.current = current
        self.requested = requested
        super().__init__(
            message or f"Cannot move order from '{current}' to '{requested}'",
            current=current,
            requested=requested,
        )


class RiderInactiveError(DispatchError):
    status_code = status.HTTP_409_CONFLICT
    code = "rider_inactive"
    default_message = "Rider is not active"


@dataclass
class NotificationDeliveryWarning:
    """Non-fatal outcome of a failed notification"""

    target: str
    title: str
    reason: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __str__(self):
        return f"Notification '{self.title}' to {self.target} not delivered: {self.reason}"


def dispatch_exception_handler(exc, context):
    """DRF exception handler that renders DispatchError as a JSON error body"""
    if isinstance(exc, DispatchError):
        logger.warning(f"{exc.code}: {exc.message}")
        body = {"error": exc.code, "detail": exc.message}
        if exc.context:
            body["context"] = {k: str(v) for k, v in exc.context.items()}
        return Response(body, status=exc.status_code)
    return exception_handler(exc, context)
