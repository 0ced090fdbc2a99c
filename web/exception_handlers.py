"""RFC 7807 Problem Details exception handlers for FastAPI."""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from fleetbot.core.exceptions import AccountExistsError, AccountNotFoundError, FleetBotError

logger = logging.getLogger(__name__)

_ERROR_TYPES = {
    400: "urn:fleet:error:bad-request",
    404: "urn:fleet:error:not-found",
    409: "urn:fleet:error:conflict",
    422: "urn:fleet:error:validation",
    500: "urn:fleet:error:internal-server",
    503: "urn:fleet:error:service-unavailable",
}

_ERROR_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Validation Error",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _problem(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    content = {
        "type": _ERROR_TYPES.get(status_code, f"urn:fleet:error:http-{status_code}"),
        "title": _ERROR_TITLES.get(status_code, "Error"),
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
    }
    content.update(extra)
    return JSONResponse(
        status_code=status_code, content=content, media_type="application/problem+json"
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert FastAPI HTTPException to RFC 7807 Problem Details format."""
    response = _problem(
        request,
        exc.status_code,
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
    )
    for name, value in (getattr(exc, "headers", None) or {}).items():
        response.headers[name] = value
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert Pydantic validation errors to RFC 7807 format."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors[field] = error["msg"]

    return _problem(request, 422, "Request validation failed", errors=errors)


async def fleet_exception_handler(request: Request, exc: FleetBotError) -> JSONResponse:
    """Convert fleet errors to RFC 7807 format."""
    if isinstance(exc, AccountNotFoundError):
        status_code = 404
    elif isinstance(exc, AccountExistsError):
        status_code = 409
    else:
        status_code = 500
        logger.error(f"Unhandled fleet error on {request.url.path}: {exc.message}")
    return _problem(request, status_code, exc.message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide unexpected errors behind a generic 500 problem document."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return _problem(request, 500, "Server error")
