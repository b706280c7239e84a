"""Translation of every error into the ``{"success": false, ...}`` envelope."""
import logging
import traceback

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cinema_api import config

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(404, f"Not Found - {request.url.path}")

    headers = getattr(exc, "headers", None)
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = detail.pop("message", "Request failed")
        return error_response(exc.status_code, message, headers=headers, **detail)
    return error_response(exc.status_code, str(exc.detail), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        location = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        errors[".".join(location) or "body"] = error["msg"]
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, errors)
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


async def invalid_id_handler(request: Request, exc: InvalidId):
    logger.info("Malformed id on %s %s: %s", request.method, request.url.path, exc)
    return error_response(status.HTTP_400_BAD_REQUEST, "Resource not found")


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    details = exc.details or {}
    logger.info("Duplicate key on %s %s: %s", request.method, request.url.path, details.get("keyValue"))
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Duplicate field value entered",
        field=details.get("keyValue"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    stack = None if config.is_production() else "".join(traceback.format_exception(exc))
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        str(exc) or "Server Error",
        stack=stack,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
