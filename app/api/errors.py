"""Exception handlers converting failures into the response envelope.

Handlers:
    http_exception_handler: ``HTTPException`` raised by routes and dependencies
    validation_exception_handler: request body/query validation failures (422)
    unhandled_exception_handler: anything else (500, logged)
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import api_error

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def field_error(field: str, message: str) -> HTTPException:
    """422 carrying a single field-level message."""

    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": message, "errors": {field: [message]}},
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts) or "non_field_errors"


def _clean_message(message: str) -> str:
    if message.startswith(_VALUE_ERROR_PREFIX):
        return message[len(_VALUE_ERROR_PREFIX):]
    return message


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return await unhandled_exception_handler(request, exc)

    detail = exc.detail
    data = None
    if isinstance(detail, dict):
        message = str(detail.get("message", ""))
        if "errors" in detail:
            data = {"errors": detail["errors"]}
    else:
        message = str(detail)

    return api_error(
        message,
        exc.status_code,
        data=data,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        return await unhandled_exception_handler(request, exc)

    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(
            _clean_message(str(error.get("msg", "Invalid value.")))
        )

    first = next(iter(errors.values()), ["The given data was invalid."])[0]
    return api_error(
        first,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        data={"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return api_error(
        "Something went wrong. Please try again later.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "field_error",
    "http_exception_handler",
    "register_exception_handlers",
    "unhandled_exception_handler",
    "validation_exception_handler",
]
