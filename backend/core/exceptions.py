"""
Custom exceptions and handlers for consistent API error responses.

Every error leaves the API as
``{"success": false, "error": {"code": ..., "message": ...}}`` with a
machine-stable code; internal details only ever reach the server log.
"""

from enum import Enum
from typing import Any, Dict, Optional
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base API error with consistent structure"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        if error_code:
            self.error_code = error_code
        self.headers = headers


class ValidationError(APIError):
    """Bad or missing input, or an unknown referenced entity"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"

    def __init__(self, detail: str = "Validation failed", error_code: Optional[str] = None):
        super().__init__(detail, error_code)


class NotFoundError(APIError):
    """Resource not found error"""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found", error_code: Optional[str] = None):
        super().__init__(detail, error_code)


class AuthenticationError(APIError):
    """Missing or invalid credentials"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTH_FAILED"

    def __init__(self, detail: str = "Authentication failed", error_code: Optional[str] = None):
        super().__init__(detail, error_code, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedError(APIError):
    """Authenticated but not allowed"""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"

    def __init__(self, detail: str = "Permission denied", error_code: Optional[str] = None):
        super().__init__(detail, error_code)


class ConflictError(APIError):
    """Invalid state transition, idempotency-key reuse or over-refund"""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"

    def __init__(self, detail: str = "Resource conflict", error_code: Optional[str] = None):
        super().__init__(detail, error_code)


class ExternalServiceError(APIError):
    """An upstream integration failed or is unreachable"""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, detail: str = "External service unavailable", error_code: Optional[str] = None):
        super().__init__(detail, error_code)


class PaymentErrorKind(str, Enum):
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


class PaymentError(APIError):
    """Card processor failure; a rejection is the client's fault, unavailability is ours"""

    def __init__(
        self,
        detail: str,
        kind: PaymentErrorKind = PaymentErrorKind.REJECTED,
        error_code: Optional[str] = None,
    ):
        self.kind = kind
        if kind == PaymentErrorKind.UNAVAILABLE:
            self.status_code = status.HTTP_502_BAD_GATEWAY
            default_code = "PAYMENT_UNAVAILABLE"
        else:
            self.status_code = status.HTTP_400_BAD_REQUEST
            default_code = "PAYMENT_REJECTED"
        super().__init__(detail, error_code or default_code)


def error_body(code: str, message: str) -> Dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message}}


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} at {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.error_code} at {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.error_code, exc.detail),
        headers=exc.headers,
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI body/query validation failures to a 400"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info(f"Request validation failed at {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("VALIDATION_ERROR", message),
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Keep framework-raised HTTP errors (404 route, 405) inside the envelope"""
    code = {
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything unclassified is a 500 with a generic message"""
    logger.exception(f"Unhandled error at {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error"),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)
