# backend/modules/payments/services/payment_service.py

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.response_utils import quantize_money, to_decimal
from modules.orders.enums.order_enums import OrderStatus, TERMINAL_STATUSES
from modules.orders.services.order_service import OrderService, get_amount_paid, order_locks
from ..models.payment_models import Payment, PaymentMethod, PaymentStatus
from .payment_processor import PaymentProcessor

logger = logging.getLogger(__name__)

# Processor payment states mapped onto local payment status
PROCESSOR_STATUS_MAP = {
    "COMPLETED": PaymentStatus.COMPLETED,
    "APPROVED": PaymentStatus.PENDING,
    "PENDING": PaymentStatus.PENDING,
    "FAILED": PaymentStatus.FAILED,
    "CANCELED": PaymentStatus.FAILED,
}


@dataclass
class PaymentResult:
    payment: Payment
    receipt: Optional[Dict[str, Any]] = None
    replayed: bool = False


def payment_receipt(payment: Payment) -> Optional[Dict[str, Any]]:
    """Receipt of a stored card payment, as returned when it was charged"""
    if not payment.processor_reference:
        return None
    return {
        "processor_reference": payment.processor_reference,
        "status": payment.processor_status or "COMPLETED",
        "amount": to_decimal(payment.amount),
        "currency": payment.currency,
        "receipt_url": payment.receipt_url,
        "card_brand": payment.card_brand,
        "last4": payment.last4,
    }


class PaymentService:
    """
    Records payments and refunds against orders.

    All money movement for one order runs under that order's lock, so the
    amount paid seen while deciding a confirmation or a refund bound is the
    one that gets committed.
    """

    def __init__(
        self,
        db: Session,
        processor: Optional[PaymentProcessor],
        orders: Optional[OrderService] = None,
    ):
        self.db = db
        self.processor = processor
        self.orders = orders or OrderService(db)

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def list_payments(
        self, order_id: Optional[int] = None, limit: int = 50, offset: int = 0
    ) -> List[Payment]:
        query = self.db.query(Payment)
        if order_id is not None:
            query = query.filter(Payment.order_id == order_id)
        return query.order_by(Payment.id.desc()).offset(offset).limit(limit).all()

    def _find_by_key(self, order_id: int, idempotency_key: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.order_id == order_id, Payment.idempotency_key == idempotency_key)
            .first()
        )

    @staticmethod
    def _replay(prior: Payment, amount: Decimal, method: PaymentMethod) -> PaymentResult:
        if to_decimal(prior.amount) != amount or prior.method != method:
            raise ConflictError(
                "Idempotency key was already used with different payment details",
                "IDEMPOTENCY_CONFLICT",
            )
        logger.info(f"Replaying payment {prior.id} for key {prior.idempotency_key}")
        return PaymentResult(prior, payment_receipt(prior), replayed=True)

    async def record_payment(
        self,
        order_id: int,
        amount: Decimal,
        method: PaymentMethod,
        source_token: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResult:
        amount = quantize_money(amount)
        method = PaymentMethod(method)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero", "INVALID_AMOUNT")
        if method == PaymentMethod.CARD and not (idempotency_key and source_token):
            raise ValidationError(
                "Card payments require an idempotency key and a source token",
                "CARD_DETAILS_REQUIRED",
            )

        previous_status = None
        async with order_locks.hold(order_id):
            order = self.orders.lock_order(order_id)

            if idempotency_key:
                prior = self._find_by_key(order_id, idempotency_key)
                if prior is not None:
                    return self._replay(prior, amount, method)

            if OrderStatus(order.status) in TERMINAL_STATUSES:
                raise ConflictError(
                    f"Order {order.order_number} is {order.status.value} and cannot take payments",
                    "ORDER_CLOSED",
                )

            payment = Payment(
                order_id=order.id,
                amount=amount,
                method=method,
                status=PaymentStatus.COMPLETED,
                idempotency_key=idempotency_key,
            )
            if method == PaymentMethod.CARD:
                try:
                    charge = await self._processor().charge(
                        source_token, amount, idempotency_key, reference_id=order.order_number
                    )
                except Exception:
                    # Releases the order row lock
                    self.db.rollback()
                    raise
                payment.currency = charge.currency
                payment.processor_reference = charge.processor_reference
                payment.processor_status = charge.status
                payment.receipt_url = charge.receipt_url
                payment.card_brand = charge.card_brand
                payment.last4 = charge.last4
            else:
                payment.currency = get_settings().payment_currency

            paid_before = get_amount_paid(self.db, order.id)
            try:
                self.db.add(payment)
                self.db.flush()
                paid = get_amount_paid(self.db, order.id)
                total = to_decimal(order.total)
                if order.status == OrderStatus.PENDING and paid_before < total <= paid:
                    previous_status = self.orders.apply_transition(order, OrderStatus.CONFIRMED)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                prior = self._find_by_key(order_id, idempotency_key) if idempotency_key else None
                if prior is None:
                    raise
                return self._replay(prior, amount, method)
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(payment)
            self.db.refresh(order)

        logger.info(
            f"Recorded {method.value} payment {payment.id} of {amount} on order "
            f"{order.order_number} (paid {paid} of {order.total})"
        )

        if previous_status is not None:
            logger.info(f"Order {order.order_number} fully paid, confirmed")
            await self.orders.publish_status_change(order, previous_status)
            await self.orders.mirror_status(order)
            if self.orders.sms is not None:
                await self.orders.sms.send_payment_alert(amount, order.order_number)

        return PaymentResult(payment, payment_receipt(payment))

    def _processor(self) -> PaymentProcessor:
        if self.processor is None:
            # Same outcome as an unconfigured gateway
            return PaymentProcessor(None)
        return self.processor

    def _refunded_total(self, payment_id: int) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(Payment.amount), 0))
            .filter(
                Payment.refunded_payment_id == payment_id,
                Payment.status != PaymentStatus.FAILED,
            )
            .scalar()
        )
        return -quantize_money(to_decimal(total))

    async def refund_payment(
        self, payment_id: int, amount: Decimal, reason: Optional[str] = None
    ) -> Payment:
        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationError("Refund amount must be greater than zero", "INVALID_AMOUNT")

        payment = self.get_payment(payment_id)
        if payment.is_refund:
            raise ValidationError("A refund cannot be refunded", "CANNOT_REFUND_REFUND")

        async with order_locks.hold(payment.order_id):
            order = self.orders.lock_order(payment.order_id)
            payment = (
                self.db.query(Payment)
                .filter(Payment.id == payment_id)
                .populate_existing()
                .with_for_update()
                .one()
            )
            if payment.status in (PaymentStatus.FAILED, PaymentStatus.PENDING):
                raise ConflictError(
                    f"Payment {payment.id} is {payment.status.value} and cannot be refunded",
                    "PAYMENT_NOT_REFUNDABLE",
                )

            balance = to_decimal(payment.amount) - self._refunded_total(payment.id)
            net_paid = get_amount_paid(self.db, order.id)
            if amount > balance or amount > net_paid:
                raise ConflictError(
                    f"Refund of {amount} exceeds the refundable balance "
                    f"({min(balance, net_paid)})",
                    "REFUND_EXCEEDS_BALANCE",
                )

            refund = Payment(
                order_id=order.id,
                amount=-amount,
                currency=payment.currency,
                method=payment.method,
                status=PaymentStatus.REFUNDED,
                refunded_payment_id=payment.id,
                reason=reason,
            )
            if payment.processor_reference:
                result = await self._processor().refund(
                    payment.processor_reference, amount, reason
                )
                refund.processor_reference = result.processor_reference

            try:
                self.db.add(refund)
                if amount == balance:
                    payment.status = PaymentStatus.REFUNDED
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(refund)

        logger.info(
            f"Refunded {amount} of payment {payment.id} on order {order.order_number}"
        )
        return refund

    def sync_processor_status(self, processor_reference: str, processor_status: str) -> Optional[Payment]:
        """Apply a processor-reported status to the matching local payment"""
        payment = (
            self.db.query(Payment)
            .filter(
                Payment.processor_reference == processor_reference,
                Payment.refunded_payment_id.is_(None),
            )
            .first()
        )
        if payment is None:
            logger.info(f"No local payment for processor reference {processor_reference}")
            return None

        new_status = PROCESSOR_STATUS_MAP.get((processor_status or "").upper())
        if new_status is None:
            logger.info(f"Ignoring processor status {processor_status} for payment {payment.id}")
            return payment
        if payment.status == PaymentStatus.REFUNDED or payment.status == new_status:
            return payment

        logger.info(f"Payment {payment.id} status {payment.status.value} -> {new_status.value}")
        payment.status = new_status
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return payment
