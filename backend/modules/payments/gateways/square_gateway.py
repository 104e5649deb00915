# backend/modules/payments/gateways/square_gateway.py

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from square import AsyncSquare
from square.core.api_error import ApiError
from square.environment import SquareEnvironment

from .base import ChargeResult, GatewayError, PaymentGatewayInterface, RefundResult
from ..utils.retry_decorator import ErrorClassification

logger = logging.getLogger(__name__)


class SquareGateway(PaymentGatewayInterface):
    """Square payment gateway implementation"""

    name = "square"

    def __init__(
        self,
        access_token: str,
        location_id: str,
        environment: str = "sandbox",
        timeout: float = 30.0,
        client: Optional[AsyncSquare] = None,
    ):
        if not location_id:
            raise ValueError("Square location_id is required")
        self.location_id = location_id
        self.client = client or AsyncSquare(
            token=access_token,
            environment=(
                SquareEnvironment.PRODUCTION
                if environment == "production"
                else SquareEnvironment.SANDBOX
            ),
            timeout=timeout,
        )

    async def charge(
        self,
        source_token: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reference_id: Optional[str] = None,
    ) -> ChargeResult:
        try:
            response = await self.client.payments.create(
                source_id=source_token,
                idempotency_key=idempotency_key,
                amount_money={"amount": self.format_amount(amount), "currency": currency},
                location_id=self.location_id,
                reference_id=reference_id,
                autocomplete=True,
            )
        except ApiError as e:
            raise self._map_api_error(e, "charge")
        except httpx.HTTPError as e:
            raise GatewayError(f"Square charge failed: {e}", transient=True)

        payment = response.payment
        if payment is None or payment.status in ("FAILED", "CANCELED"):
            status = payment.status if payment else "UNKNOWN"
            raise GatewayError(f"Square declined the charge ({status})", code="DECLINED")

        card = payment.card_details.card if payment.card_details else None
        logger.info(f"Square payment {payment.id} {payment.status}")
        return ChargeResult(
            processor_reference=payment.id,
            amount=Decimal(payment.amount_money.amount) / 100,
            currency=payment.amount_money.currency or currency,
            status=payment.status,
            receipt_url=payment.receipt_url,
            card_brand=card.card_brand if card else None,
            last4=card.last4 if card else None,
            raw_response={"id": payment.id, "status": payment.status},
        )

    async def refund(
        self,
        processor_reference: str,
        amount: Decimal,
        idempotency_key: str,
        currency: str = "USD",
        reason: Optional[str] = None,
    ) -> RefundResult:
        try:
            response = await self.client.refunds.refund_payment(
                idempotency_key=idempotency_key,
                amount_money={"amount": self.format_amount(amount), "currency": currency},
                payment_id=processor_reference,
                reason=reason,
            )
        except ApiError as e:
            raise self._map_api_error(e, "refund")
        except httpx.HTTPError as e:
            raise GatewayError(f"Square refund failed: {e}", transient=True)

        refund = response.refund
        if refund is None or refund.status in ("REJECTED", "FAILED"):
            status = refund.status if refund else "UNKNOWN"
            raise GatewayError(f"Square rejected the refund ({status})", code="REFUND_REJECTED")

        logger.info(f"Square refund {refund.id} {refund.status} for payment {processor_reference}")
        return RefundResult(
            processor_reference=refund.id,
            amount=Decimal(refund.amount_money.amount) / 100,
            currency=refund.amount_money.currency or currency,
            status=refund.status,
            raw_response={"id": refund.id, "status": refund.status},
        )

    @staticmethod
    def _map_api_error(error: ApiError, operation: str) -> GatewayError:
        status_code = error.status_code or 0
        detail, code = square_error_detail(error.body)
        transient = (
            status_code in ErrorClassification.TRANSIENT_STATUS_CODES or status_code >= 500
        )
        logger.warning(f"Square {operation} error {status_code}: {code} {detail}")
        return GatewayError(f"Square {operation} failed: {detail}", transient=transient, code=code)


def square_error_detail(body: Any) -> tuple:
    """First error's detail and code from a Square error body"""
    if isinstance(body, dict):
        errors = body.get("errors") or []
        if errors and isinstance(errors[0], dict):
            first: Dict[str, Any] = errors[0]
            return first.get("detail") or first.get("code") or "unknown error", first.get("code")
    return str(body) if body else "unknown error", None
