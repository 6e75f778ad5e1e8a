"""
Error Boundary - maps every failure to the JSON error envelope.

    {"success": false, "message": "..."}                   HTTPException
    {"success": false, "message": "...", "errors": [...]}  request validation
    {"success": false, "message": "Internal server error"} anything else

Route handlers raise HTTPException where they detect a problem;
nothing else in the app builds error responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Request sections FastAPI prefixes onto error locations
_LOC_SECTIONS = {"body", "query", "path", "header", "cookie"}


def error_body(message: str, errors: list = None) -> dict:
    body = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def format_validation_errors(exc: RequestValidationError) -> list:
    """Flatten pydantic errors into [{field, message}] pairs."""
    formatted = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOC_SECTIONS]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(loc) or None, "message": message})
    return formatted


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", format_validation_errors(exc)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
