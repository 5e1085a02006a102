import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ExternalServiceError(Exception):
    """A third-party SDK (Midtrans, Cloudinary, Gemini, ...) failed or is not configured."""

    def __init__(self, service: str, message: str, status_code: int = 502):
        super().__init__(message)
        self.service = service
        self.message = message
        self.status_code = status_code


def result(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def error_response(status_code: int, message: str, errors: Optional[dict] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=status_code, content=body)


def validation_errors(exc: RequestValidationError) -> dict:
    """First message per field, keyed by the last element of the error location."""
    errors = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = loc[-1] if loc else "body"
        errors.setdefault(field, err.get("msg", "Invalid value"))
    return errors


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Validation Error", validation_errors(exc))


async def external_service_handler(request: Request, exc: ExternalServiceError):
    logger.error("%s error on %s %s: %s", exc.service, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "service": exc.service},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ExternalServiceError, external_service_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
