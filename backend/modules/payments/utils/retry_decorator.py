# backend/modules/payments/utils/retry_decorator.py

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)


class ErrorClassification:
    """Error classification for retry decisions"""

    # Transient errors - should retry
    TRANSIENT_ERRORS = {
        ConnectionError: "Network connection failed",
        TimeoutError: "Request timed out",
        asyncio.TimeoutError: "Async operation timed out",
        httpx.TimeoutException: "HTTP timeout",
        httpx.NetworkError: "HTTP network error",
        httpx.RemoteProtocolError: "Connection dropped by server",
    }

    TRANSIENT_STATUS_CODES = (
        408,  # Request Timeout
        429,  # Too Many Requests
        500,  # Internal Server Error
        502,  # Bad Gateway
        503,  # Service Unavailable
        504,  # Gateway Timeout
    )

    @classmethod
    def classify_error(cls, error: Exception) -> Tuple[bool, str]:
        """
        Classify an error as transient or permanent

        Returns:
            Tuple of (is_transient, reason)
        """
        if getattr(error, "transient", None) is not None:
            return bool(error.transient), "Classified by gateway"

        for error_type, reason in cls.TRANSIENT_ERRORS.items():
            if isinstance(error, error_type):
                return True, reason

        status_code = cls._extract_status_code(error)
        if status_code:
            if status_code in cls.TRANSIENT_STATUS_CODES or status_code >= 500:
                return True, f"HTTP {status_code} - Transient error"
            return False, f"HTTP {status_code} - Permanent error"

        # Don't retry unknown errors
        return False, "Unknown error type"

    @staticmethod
    def _extract_status_code(error: Exception) -> Optional[int]:
        """Extract HTTP status code from httpx or SDK errors"""
        response = getattr(error, "response", None)
        if response is not None and hasattr(response, "status_code"):
            return response.status_code
        status_code = getattr(error, "status_code", None)
        if isinstance(status_code, int):
            return status_code
        return None


def is_transient_error(error: Exception) -> bool:
    is_transient, reason = ErrorClassification.classify_error(error)
    logger.debug(f"Error classified as {'transient' if is_transient else 'permanent'}: {reason}")
    return is_transient


def retry_once_on_transient(func: Callable) -> Callable:
    """
    Retry an async call a single time when it fails transiently.

    The second call receives exactly the same arguments, so an idempotency
    key passed in is reused.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs) -> Any:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_transient_error(e):
                raise
            logger.warning(f"{func.__name__} failed transiently ({e}), retrying once")
        return await func(*args, **kwargs)

    return wrapper
