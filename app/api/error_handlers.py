"""
Map domain and HTTP errors onto structured JSON responses.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger
from app.domain.errors import (
    BubbleMonitorError,
    DegenerateInputError,
    InsufficientDataError,
    MetricValidationError,
    ProviderError,
    UnknownMarketError,
)

logger = get_logger(__name__)

STATUS_CODES = {
    ProviderError: 502,
    InsufficientDataError: 422,
    DegenerateInputError: 422,
    MetricValidationError: 400,
    UnknownMarketError: 404,
}

# error_type for framework-raised HTTP errors
HTTP_ERROR_TYPES = {
    404: "not_found",
    405: "method_not_allowed",
    503: "service_unavailable",
}


def _error_body(exc: BubbleMonitorError) -> dict:
    body = {
        "success": False,
        "error": str(exc),
        "error_type": exc.error_type,
    }
    parameter = getattr(exc, "parameter", None)
    if parameter:
        body["parameter"] = parameter
    return body


def _log_rejection(request: Request, status: int, error_type: str, message) -> None:
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed ({error_type}): {message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({error_type}): {message}")


async def handle_domain_error(request: Request, exc: BubbleMonitorError) -> JSONResponse:
    status = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    _log_rejection(request, status, exc.error_type, exc)
    return JSONResponse(status_code=status, content=_error_body(exc))


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_type = HTTP_ERROR_TYPES.get(exc.status_code, "http_error")
    _log_rejection(request, exc.status_code, error_type, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail, "error_type": error_type},
        headers=getattr(exc, "headers", None),
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    # first offending query/path field, e.g. ("query", "period")
    location = errors[0].get("loc", ()) if errors else ()
    body = {
        "success": False,
        "error": "Invalid request parameters",
        "error_type": "request_validation_error",
        "details": jsonable_encoder(errors),
    }
    if len(location) > 1:
        body["parameter"] = str(location[-1])
    _log_rejection(request, 422, body["error_type"], body.get("parameter", errors))
    return JSONResponse(status_code=422, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BubbleMonitorError, handle_domain_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
