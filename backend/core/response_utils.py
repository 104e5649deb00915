"""
Response Utilities

Standard ``{success, data}`` envelope and the money type shared by every
schema.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, Field, PlainSerializer
from typing_extensions import Annotated

T = TypeVar("T")

CENTS = Decimal("0.01")

# Decimal internally, plain JSON number on the wire
Money = Annotated[
    Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")
]


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round half-up to cents."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class APIResponse(BaseModel, Generic[T]):
    """
    Standard response envelope for all API endpoints

    Usage:
        return create_response(OrderOut.model_validate(order))
    """
    success: bool = Field(default=True, description="Whether the request was successful")
    data: Optional[T] = Field(default=None, description="Response payload")
    message: Optional[str] = Field(default=None, description="Optional status message")


def create_response(data: Any = None, message: Optional[str] = None) -> APIResponse:
    """Create a standard successful response"""
    return APIResponse(success=True, data=data, message=message)
