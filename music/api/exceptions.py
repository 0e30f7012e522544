"""
Error taxonomy and the envelope exception handler.

Every error leaves the API as
{"statusCode": ..., "data": null, "message": ..., "success": false}
with field errors (when any) under "errors".
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from music.utils.monitoring import ErrorTracker

logger = logging.getLogger("music")


class ValidationFailed(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "validation_failed"


class Unauthorized(APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required."
    default_code = "unauthorized"


class Forbidden(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have access to this resource."
    default_code = "forbidden"


class NotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."
    default_code = "not_found"


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Something went wrong."
    default_code = "internal_error"


def _first_message(detail):
    """Pull the first human-readable string out of a DRF error payload."""
    if isinstance(detail, dict):
        if "detail" in detail:
            return _first_message(detail["detail"])
        for field, value in detail.items():
            message = _first_message(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def envelope_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        ErrorTracker.log_error(
            type(exc).__name__,
            str(exc),
            {"view": type(view).__name__ if view else None},
        )
        logger.exception("Unhandled error in %s", type(view).__name__ if view else "view", exc_info=exc)
        return Response(
            {
                "statusCode": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "data": None,
                "message": InternalError.default_detail,
                "success": False,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    body = {
        "statusCode": response.status_code,
        "data": None,
        "message": _first_message(response.data),
        "success": False,
    }
    if isinstance(response.data, (dict, list)) and not (
        isinstance(response.data, dict) and set(response.data) == {"detail"}
    ):
        body["errors"] = response.data
    response.data = body
    return response
