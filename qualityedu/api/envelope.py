"""Uniform response envelope and the exception handlers that produce it.

Every endpoint answers ``{success, message, data, error}``.  Handlers
return ``ok(data, message)``; failures are raised as ServiceError (or
HTTPException from the route guards and the router's 404/405) and
converted here, so no route builds an error body itself.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

from qualityedu.core.errors import ServiceError

logger = logging.getLogger(__name__)


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: Any = None
    error: str | None = None


def ok(data: Any = None, message: str = "OK") -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)


def _failure(status_code: int, message: str, error: str, headers: dict | None = None) -> JSONResponse:
    body = ApiResponse(success=False, message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return _failure(exc.status_code, exc.message, exc.code)


async def http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _failure(exc.status_code, message, f"http_{exc.status_code}", exc.headers)


async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"{where}: {first.get('msg', 'invalid')}" if where else first.get("msg", "invalid")
    return _failure(422, "Validation failed", detail)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _failure(500, "Internal server error", "internal_error")


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
