"""
exceptions.py
-------------
Typed failures raised by the scheduling services.

Every class is a DRF APIException, so a service error that reaches a view is
rendered as a typed JSON response instead of a 500:

    {"detail": "...", "code": "slot_unavailable", "start_time": "...", ...}

Services raise these directly; views never need to translate them.
"""

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class SchedulingError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Scheduling request failed."
    default_code = "scheduling_error"

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.code = code or self.default_code
        self.extra = extra


class ValidationError(SchedulingError):
    """Malformed input: past start time, inverted range, bad weekday..."""
    default_detail = "Invalid input."
    default_code = "invalid"


class ConflictError(SchedulingError):
    """The requested interval (or schedule / leave slot) is already taken."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This time slot is not available."
    default_code = "slot_unavailable"


class NotFoundError(SchedulingError):
    """Missing record, or a record that belongs to another tenant."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidTransitionError(SchedulingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Status change not permitted."
    default_code = "invalid_transition"


class UnauthorizedError(SchedulingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have rights over this resource."
    default_code = "unauthorized"


def scheduling_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: adds "code" and any extra fields (e.g. the
    unavailable slot bounds) to the default error body.
    """
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, SchedulingError):
        response.data["code"] = exc.code
        for key, value in exc.extra.items():
            response.data[key] = value.isoformat() if hasattr(value, "isoformat") else value
    return response
