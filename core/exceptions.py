from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """
    Base class for errors raised by the service layer.
    Views don't catch these; the exception handler below turns them into responses.
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=""):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """A referenced project or cycle does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(DomainError):
    """The requested status change is not allowed from the current state."""
    status_code = status.HTTP_409_CONFLICT


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, DomainError):
        return Response(
            {
                "success": False,
                "status_code": exc.status_code,
                "errors": {"detail": exc.message},
            },
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
