"""
smartreceipt/core/errors.py

Purpose: HTTP error envelope

- Every error leaves the API as {"error", "code", "details"}
- Domain errors keep their own status and code
- Gateway payload problems are logged with the offending path
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartreceipt.core.exceptions import SmartReceiptError
from smartreceipt.core.config import settings
from smartreceipt.core.logging import get_logger
from smartreceipt.schemas.response import ErrorResponse

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """

    @app.exception_handler(SmartReceiptError)
    async def smartreceipt_exception_handler(request: Request, exc: SmartReceiptError):
        level = logger.error if exc.status_code >= 500 else logger.warning
        level(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles routing-level errors (unknown path, wrong method).
        """
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles malformed request bodies (e.g. a gateway payload missing its customer).
        """
        errors = exc.errors()
        logger.warning(
            f"Rejected payload on {request.url.path}",
            extra={"fields": [".".join(str(part) for part in e.get("loc", ())) for e in errors]}
        )
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        message = GENERIC_ERROR_MESSAGE if settings.is_production else str(exc)
        return error_response(500, message, "INTERNAL_ERROR")
