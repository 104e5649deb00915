# backend/modules/payments/services/payment_processor.py

import logging
import uuid
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from core.config import get_settings
from core.exceptions import PaymentError, PaymentErrorKind
from core.memory_cache import LRUCache
from ..gateways.base import ChargeResult, GatewayError, PaymentGatewayInterface, RefundResult
from ..utils.retry_decorator import is_transient_error, retry_once_on_transient

logger = logging.getLogger(__name__)


def scoped_idempotency_key(idempotency_key: str, scope: Optional[str] = None) -> str:
    """
    Key sent to the processor and used for the local cache.

    Client keys are unique per order only, while processors treat keys as
    global, so a scoped key is a stable UUID derived from both. Fits
    Square's 45 character limit.
    """
    if not scope:
        return idempotency_key
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{scope}:{idempotency_key}"))


class PaymentProcessor:
    """
    Card processing front door.

    Wraps a gateway with a local idempotency cache, a single retry on
    transient failures and translation of gateway failures into
    ``PaymentError``.
    """

    def __init__(
        self,
        gateway: Optional[PaymentGatewayInterface],
        cache: Optional[LRUCache] = None,
        currency: str = "USD",
    ):
        settings = get_settings()
        self.gateway = gateway
        self.currency = currency
        self.cache = cache or LRUCache(
            max_size=settings.payment_idempotency_cache_size,
            ttl_seconds=settings.payment_idempotency_ttl_seconds,
        )

    async def charge(
        self,
        source_token: str,
        amount: Decimal,
        idempotency_key: str,
        reference_id: Optional[str] = None,
    ) -> ChargeResult:
        key = scoped_idempotency_key(idempotency_key, reference_id)
        cached = await self.cache.get(key)
        if cached is not None:
            if Decimal(cached.amount) != Decimal(amount):
                raise PaymentError(
                    "Idempotency key was already used for a different amount",
                    PaymentErrorKind.REJECTED,
                    "IDEMPOTENCY_KEY_REUSED",
                )
            logger.info(f"Returning cached charge {cached.processor_reference} for key {key}")
            return cached

        gateway = self._require_gateway()
        try:
            result = await retry_once_on_transient(gateway.charge)(
                source_token,
                amount,
                key,
                currency=self.currency,
                reference_id=reference_id,
            )
        except Exception as e:
            raise self._translate(e, "charge")

        await self.cache.set(key, result)
        logger.info(f"Charged {amount} {self.currency} via {gateway.name}: {result.processor_reference}")
        return result

    async def refund(
        self,
        processor_reference: str,
        amount: Decimal,
        reason: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> RefundResult:
        gateway = self._require_gateway()
        key = idempotency_key or str(uuid.uuid4())
        try:
            result = await retry_once_on_transient(gateway.refund)(
                processor_reference,
                amount,
                key,
                currency=self.currency,
                reason=reason,
            )
        except Exception as e:
            raise self._translate(e, "refund")

        logger.info(f"Refunded {amount} {self.currency} of {processor_reference}: {result.processor_reference}")
        return result

    def _require_gateway(self) -> PaymentGatewayInterface:
        if self.gateway is None:
            raise PaymentError(
                "Card payments are not configured",
                PaymentErrorKind.UNAVAILABLE,
                "GATEWAY_NOT_CONFIGURED",
            )
        return self.gateway

    @staticmethod
    def _translate(error: Exception, operation: str) -> PaymentError:
        if isinstance(error, PaymentError):
            return error
        if is_transient_error(error):
            logger.error(f"Payment {operation} unavailable after retry: {error}")
            return PaymentError(
                "Payment processor is unavailable, please try again",
                PaymentErrorKind.UNAVAILABLE,
            )
        message = error.message if isinstance(error, GatewayError) else str(error)
        code = error.code if isinstance(error, GatewayError) else None
        logger.info(f"Payment {operation} rejected: {message}")
        return PaymentError(
            f"Payment {operation} was rejected: {message}",
            PaymentErrorKind.REJECTED,
            "PAYMENT_REJECTED" if not code else f"PAYMENT_{code}".upper(),
        )


@lru_cache()
def get_payment_processor() -> PaymentProcessor:
    """Processor backed by Square when credentials are configured"""
    settings = get_settings()
    gateway = None
    if settings.square_enabled:
        from ..gateways.square_gateway import SquareGateway

        gateway = SquareGateway(
            access_token=settings.square_access_token,
            location_id=settings.square_location_id,
            environment=settings.square_environment,
            timeout=settings.payment_gateway_timeout_seconds,
        )
    else:
        logger.warning("Square credentials missing; card payments are disabled")
    return PaymentProcessor(gateway, currency=settings.payment_currency)
