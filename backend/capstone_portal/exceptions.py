"""
Domain errors shared by every app.

They subclass DRF's APIException so a view can simply let them propagate;
``capstone_exception_handler`` adds the error code and any extra payload
(offending ids, per-item details) to the response body.
"""
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class CapstoneError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."
    default_code = "capstone_error"

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail, code)
        self.extra = extra

    @property
    def message(self):
        return str(self.detail)


class NotFoundError(CapstoneError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."
    default_code = "not_found"


class ForbiddenTransitionError(CapstoneError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this transition."
    default_code = "forbidden_transition"


class InvalidTransitionError(CapstoneError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This status change is not allowed from the current state."
    default_code = "invalid_transition"


class ImmutableStateError(CapstoneError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This record can no longer be edited."
    default_code = "immutable_state"


class CapacityExceededError(CapstoneError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Lecturer capacity exceeded."
    default_code = "capacity_exceeded"


class DuplicateError(CapstoneError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Duplicate record."
    default_code = "duplicate"


class ValidationFailedError(CapstoneError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "validation_failed"


def capstone_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, CapstoneError):
        response.data = {
            "detail": exc.message,
            "code": exc.default_code,
            **exc.extra,
        }
    return response
