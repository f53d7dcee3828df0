# agricoventas/core/responses.py
"""
Response envelope shared by every endpoint.

Success bodies are ``{"success": true, "data": ...}``; failures are
``{"success": false, "error": {"message", "code", "details"}}``.
"""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from agricoventas.core.exceptions import BaseServiceError

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
}


def success(data: Any = None) -> dict:
    return {"success": True, "data": data}


def error_response(
    status_code: int,
    message: str,
    code: Optional[str] = None,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    error = {"message": message}
    if code:
        error["code"] = code
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error}),
        headers=headers,
    )


async def service_error_handler(request: Request, exc: BaseServiceError):
    if exc.status_code >= 500:
        logger.error(f"Service error on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.debug(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.code, exc.details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = None if isinstance(exc.detail, str) else exc.detail
    return error_response(
        exc.status_code,
        message,
        STATUS_CODES.get(exc.status_code),
        details,
        getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        "VALIDATION_ERROR",
        details,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
