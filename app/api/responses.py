"""Uniform JSON envelope returned by every endpoint."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(
    *,
    success: bool,
    message: str,
    data: Any = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": success,
        "message": message,
        "data": data if data is not None else {},
    }
    if metadata is not None:
        body["metadata"] = dict(metadata)
    return jsonable_encoder(body)


def api_response(
    message: str,
    data: Any = None,
    *,
    status_code: int = status.HTTP_200_OK,
    metadata: Optional[Mapping[str, Any]] = None,
) -> JSONResponse:
    """Successful response wrapped in the envelope."""

    return JSONResponse(
        status_code=status_code,
        content=envelope(success=True, message=message, data=data, metadata=metadata),
    )


def api_error(
    message: str,
    status_code: int,
    *,
    data: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(success=False, message=message, data=data),
        headers=dict(headers) if headers else None,
    )


__all__ = ["api_error", "api_response", "envelope"]
