# backend/errors.py

"""
API ERROR NORMALIZATION (CENTRAL)

Every failure leaves the API in one envelope:

    {"error": {"code": "<CODE>", "message": "<human message>"}}

Sources:
- DomainError subclasses raised by services (code + http_status carried on the exception)
- DRF exceptions (validation, auth, permission, not found, throttling)

Installed via REST_FRAMEWORK["EXCEPTION_HANDLER"].
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """
    Base for business-rule failures.

    Subclasses set `code` and `http_status`; message comes from the constructor.
    """

    code = "DOMAIN_ERROR"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = ""

    def __init__(self, message: str = "", *, code: str | None = None, http_status: int | None = None):
        super().__init__(message or self.default_message or self.code)
        if code:
            self.code = code
        if http_status:
            self.http_status = http_status

    @property
    def message(self) -> str:
        return str(self)

    def payload(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


def error_response(*, code: str, message: str, http_status: int, details=None, **extra):
    """
    Canonical API error response.
    """
    body = {"error": {"code": code, "message": message}}
    if details is not None:
        body["error"]["details"] = details
    body.update(extra)
    return Response(body, status=http_status)


def _first_message(detail) -> str:
    if isinstance(detail, dict):
        for key, value in detail.items():
            msg = _first_message(value)
            if key == "non_field_errors":
                return msg
            return f"{key}: {msg}"
        return "Invalid input"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid input"
    return str(detail)


_DRF_CODES = {
    exceptions.NotAuthenticated: "NOT_AUTHENTICATED",
    exceptions.AuthenticationFailed: "AUTHENTICATION_FAILED",
    exceptions.PermissionDenied: "FORBIDDEN",
    exceptions.NotFound: "NOT_FOUND",
    exceptions.MethodNotAllowed: "METHOD_NOT_ALLOWED",
    exceptions.Throttled: "RATE_LIMITED",
    exceptions.ParseError: "MALFORMED_REQUEST",
    exceptions.UnsupportedMediaType: "UNSUPPORTED_MEDIA_TYPE",
}


def api_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info(
            "Domain error",
            extra={
                "code": exc.code,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.payload(), status=exc.http_status)

    if isinstance(exc, Http404):
        exc = exceptions.NotFound(str(exc) or "Not found.")
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied(str(exc) or None)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        return error_response(
            code="VALIDATION_ERROR",
            message=_first_message(exc.detail),
            http_status=status.HTTP_400_BAD_REQUEST,
            details=exc.detail,
        )

    code = "ERROR"
    for exc_cls, exc_code in _DRF_CODES.items():
        if isinstance(exc, exc_cls):
            code = exc_code
            break

    detail = getattr(exc, "detail", None)
    message = _first_message(detail) if detail is not None else str(exc)

    response.data = {"error": {"code": code, "message": message}}
    return response
