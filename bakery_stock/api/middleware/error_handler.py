"""
Maps ledger exceptions to HTTP responses.

Every error body is an ErrorResponse: a machine-readable ``error_code``,
the message, a recovery hint and the exception details as JSON. Retryable
conflicts also get a ``Retry-After`` header.
"""

import json
import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from bakery_stock.application.dto.responses import ErrorResponse
from bakery_stock.config import get_logger
from bakery_stock.core.exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    NotFoundError,
    StockLedgerError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "MATERIAL_NOT_FOUND": "Check the material ID and try GET /api/stock/materials to list materials.",
    "SUPPLIER_NOT_FOUND": "Check the supplier ID and try GET /api/stock/suppliers to list suppliers.",
    "DOCUMENT_NOT_FOUND": "The record was deleted while the request was running. Reload and retry.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "CONCURRENCY_CONFLICT": "The material changed concurrently too many times. Resubmit the movement.",
    "PERSISTENCE_ERROR": "The stock database is unavailable. Nothing was saved; retry later.",
    "ConfigurationError": "Check the server environment settings.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Conflicts clear as soon as the competing movement commits
RETRY_AFTER_SECONDS = "1"

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The resource changed while processing. Retry the request.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error response."""
    status_code = _status_for(exc)

    # Prefer StockLedgerError.code, fall back to class name
    if isinstance(exc, StockLedgerError):
        error_code = exc.code
        message = exc.message
        detail = json.dumps(exc.details, default=str) if exc.details else None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        detail = None

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        status=status_code,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    headers = None
    if isinstance(exc, StockLedgerError) and exc.details.get("retryable"):
        headers = {"Retry-After": RETRY_AFTER_SECONDS}

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            detail=detail,
            path=request.url.path,
        ).model_dump(mode="json"),
        headers=headers,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything the exception handlers let through.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(StockLedgerError)
    async def ledger_exception_handler(
        request: Request,
        exc: StockLedgerError,
    ) -> JSONResponse:
        """Handle domain errors raised by the ledger."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=str(exc.detail or "An error occurred"),
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )
