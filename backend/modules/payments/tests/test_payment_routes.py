"""
API and service tests for recording payments and refunds.
"""

import asyncio
from decimal import Decimal

import pytest

from core.exceptions import PaymentError
from modules.orders.enums.order_enums import OrderStatus
from modules.orders.models.order_models import Order
from modules.payments.gateways.base import GatewayError
from modules.payments.models.payment_models import Payment, PaymentMethod, PaymentStatus
from modules.payments.services.payment_processor import scoped_idempotency_key
from modules.payments.services.payment_service import PaymentService
from tests.factories import OrderFactory, PaymentFactory


def pay(client, order_id, amount, method="cash", **extra):
    body = {"order_id": order_id, "amount": str(amount), "method": method}
    body.update(extra)
    return client.post("/payments", json=body)


class TestRecordPayment:
    """Test POST /payments"""

    def test_full_cash_payment_confirms_order(self, client, db_session, kds_recorder, fake_sms):
        order = OrderFactory()

        response = pay(client, order.id, "10.80")

        assert response.status_code == 201
        assert "Idempotent-Replayed" not in response.headers
        data = response.json()["data"]
        assert data["receipt"] is None
        assert data["payment"]["amount"] == 10.8
        assert data["payment"]["status"] == "completed"
        assert data["payment"]["currency"] == "USD"

        db_session.refresh(order)
        assert order.status == OrderStatus.CONFIRMED
        assert kds_recorder.names() == ["order-status-update"]
        assert kds_recorder.events[0]["data"]["previous_status"] == "pending"
        assert fake_sms.of_kind("payment") == [("payment", Decimal("10.80"), order.order_number)]

    def test_partial_payments_confirm_at_threshold(self, client, db_session, kds_recorder):
        order = OrderFactory()

        pay(client, order.id, "5.00")
        db_session.refresh(order)
        assert order.status == OrderStatus.PENDING

        pay(client, order.id, "5.80")
        db_session.refresh(order)
        assert order.status == OrderStatus.CONFIRMED

        pay(client, order.id, "2.00")
        db_session.refresh(order)
        assert order.status == OrderStatus.CONFIRMED
        assert order.amount_paid == Decimal("12.80")
        assert kds_recorder.names() == ["order-status-update"]

    def test_camel_case_body(self, client):
        order = OrderFactory()

        response = client.post(
            "/payments",
            json={"orderId": order.id, "amount": 10.8, "method": "cash", "idempotencyKey": "abc"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["payment"]["idempotency_key"] == "abc"

    def test_card_payment_returns_receipt(self, client, fake_gateway):
        order = OrderFactory()

        response = pay(
            client, order.id, "10.80", method="card",
            source_token="cnon:card-nonce-ok", idempotency_key="key-1",
        )

        assert response.status_code == 201
        data = response.json()["data"]
        key = scoped_idempotency_key("key-1", order.order_number)
        assert data["payment"]["processor_reference"] == f"pay_{key}"
        assert data["payment"]["receipt_url"] == f"https://receipts.example.com/{key}"
        assert data["receipt"]["status"] == "COMPLETED"
        assert data["receipt"]["card_brand"] == "VISA"
        assert data["receipt"]["last4"] == "1111"
        assert data["receipt"]["amount"] == 10.8
        assert fake_gateway.charges[0]["reference_id"] == order.order_number

    def test_card_payment_requires_token_and_key(self, client):
        order = OrderFactory()

        response = pay(client, order.id, "10.80", method="card", source_token="cnon:ok")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CARD_DETAILS_REQUIRED"

    def test_replay_returns_original_payment(self, client, db_session, fake_gateway):
        order = OrderFactory()
        body = dict(method="card", source_token="cnon:ok", idempotency_key="key-1")

        first = pay(client, order.id, "10.80", **body)
        second = pay(client, order.id, "10.80", **body)

        assert second.status_code == 201
        assert second.json() == first.json()
        assert second.json()["data"]["receipt"]["card_brand"] == "VISA"
        assert second.headers["Idempotent-Replayed"] == "true"
        assert len(fake_gateway.charges) == 1
        assert db_session.query(Payment).count() == 1

    def test_replay_with_different_amount_conflicts(self, client):
        order = OrderFactory(total=Decimal("50.00"))

        pay(client, order.id, "10.00", idempotency_key="key-1")
        response = pay(client, order.id, "20.00", idempotency_key="key-1")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IDEMPOTENCY_CONFLICT"

    def test_idempotency_key_scoped_to_order(self, client, db_session):
        first, second = OrderFactory(), OrderFactory()

        pay(client, first.id, "10.80", idempotency_key="shared")
        response = pay(client, second.id, "10.80", idempotency_key="shared")

        assert "Idempotent-Replayed" not in response.headers
        assert db_session.query(Payment).count() == 2

    def test_card_key_reused_on_another_order_charges_again(self, client, db_session, fake_gateway):
        first, second = OrderFactory(), OrderFactory()
        body = dict(method="card", source_token="cnon:ok", idempotency_key="shared")

        pay(client, first.id, "10.80", **body)
        response = pay(client, second.id, "10.80", **body)

        assert response.status_code == 201
        assert "Idempotent-Replayed" not in response.headers
        assert len(fake_gateway.charges) == 2
        references = [p.processor_reference for p in db_session.query(Payment).order_by(Payment.id)]
        assert references[0] != references[1]
        db_session.refresh(second)
        assert second.status == OrderStatus.CONFIRMED

    def test_card_key_reused_on_another_order_with_declined_card(
        self, client, db_session, fake_gateway
    ):
        first, second = OrderFactory(), OrderFactory()
        body = dict(method="card", source_token="cnon:ok", idempotency_key="shared")

        pay(client, first.id, "10.80", **body)
        fake_gateway.failures = [GatewayError("Card declined", code="DECLINED")]
        response = pay(client, second.id, "10.80", **body)

        assert response.status_code == 400
        db_session.refresh(second)
        assert second.status == OrderStatus.PENDING

    def test_declined_card_stores_nothing(self, client, db_session, fake_gateway):
        order = OrderFactory()
        fake_gateway.failures = [GatewayError("Card declined", code="DECLINED")]

        response = pay(client, order.id, "10.80", method="card", source_token="cnon:bad", idempotency_key="k")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PAYMENT_DECLINED"
        assert db_session.query(Payment).count() == 0
        db_session.refresh(order)
        assert order.status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_declined_card_ends_order_transaction(self, db_session, payment_processor, fake_gateway):
        order = OrderFactory()
        fake_gateway.failures = [GatewayError("Card declined", code="DECLINED")]
        service = PaymentService(db_session, payment_processor)

        with pytest.raises(PaymentError):
            await service.record_payment(order.id, Decimal("10.80"), PaymentMethod.CARD, "cnon:bad", "k")

        assert not db_session.in_transaction()

    def test_processor_unavailable(self, client, fake_gateway):
        order = OrderFactory()
        fake_gateway.failures = [
            GatewayError("timeout", transient=True),
            GatewayError("timeout", transient=True),
        ]

        response = pay(client, order.id, "10.80", method="card", source_token="cnon:ok", idempotency_key="k")

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "PAYMENT_UNAVAILABLE"

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    def test_non_positive_amount(self, client, amount):
        order = OrderFactory()

        response = pay(client, order.id, amount)

        assert response.status_code == 400

    def test_closed_order(self, client):
        order = OrderFactory(status=OrderStatus.CANCELLED)

        response = pay(client, order.id, "10.80")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ORDER_CLOSED"

    def test_unknown_order(self, client, db_session):
        response = pay(client, 4242, "10.80")

        assert response.status_code == 404


class TestReadPayments:
    def test_list_for_order(self, client, staff_headers):
        order = OrderFactory()
        PaymentFactory(order=order, amount=Decimal("4.00"))
        PaymentFactory(order=order, amount=Decimal("6.80"))
        PaymentFactory()

        response = client.get("/payments", params={"order_id": order.id}, headers=staff_headers)

        assert response.status_code == 200
        assert sorted(p["amount"] for p in response.json()["data"]) == [4.0, 6.8]

    def test_get_payment(self, client, staff_headers):
        payment = PaymentFactory()

        response = client.get(f"/payments/{payment.id}", headers=staff_headers)

        assert response.json()["data"]["id"] == payment.id

    def test_requires_token(self, client):
        assert client.get("/payments").status_code == 401


class TestRefunds:
    """Test POST /payments/{id}/refund"""

    def refund(self, client, headers, payment_id, amount, reason=None):
        return client.post(
            f"/payments/{payment_id}/refund",
            json={"amount": str(amount), "reason": reason},
            headers=headers,
        )

    def test_partial_then_full_refund(self, client, db_session, staff_headers):
        payment = PaymentFactory()

        first = self.refund(client, staff_headers, payment.id, "5.00", "wrong side")
        assert first.status_code == 201
        refund = first.json()["data"]
        assert refund["amount"] == -5.0
        assert refund["status"] == "refunded"
        assert refund["refunded_payment_id"] == payment.id
        assert refund["reason"] == "wrong side"
        db_session.refresh(payment)
        assert payment.status == PaymentStatus.COMPLETED

        second = self.refund(client, staff_headers, payment.id, "5.80")
        assert second.status_code == 201
        db_session.refresh(payment)
        assert payment.status == PaymentStatus.REFUNDED
        assert payment.order.amount_paid == Decimal("0.00")

    def test_refund_cannot_exceed_payment(self, client, staff_headers):
        payment = PaymentFactory()

        response = self.refund(client, staff_headers, payment.id, "10.81")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "REFUND_EXCEEDS_BALANCE"

    def test_refunds_accumulate_against_bound(self, client, staff_headers):
        payment = PaymentFactory()
        self.refund(client, staff_headers, payment.id, "10.00")

        response = self.refund(client, staff_headers, payment.id, "0.81")

        assert response.status_code == 409

    def test_refund_of_refund_rejected(self, client, staff_headers):
        payment = PaymentFactory()
        refund_id = self.refund(client, staff_headers, payment.id, "1.00").json()["data"]["id"]

        response = self.refund(client, staff_headers, refund_id, "0.50")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CANNOT_REFUND_REFUND"

    def test_failed_payment_not_refundable(self, client, staff_headers):
        payment = PaymentFactory(status=PaymentStatus.FAILED)

        response = self.refund(client, staff_headers, payment.id, "1.00")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PAYMENT_NOT_REFUNDABLE"

    def test_card_refund_goes_through_processor(self, client, staff_headers, fake_gateway):
        payment = PaymentFactory(method=PaymentMethod.CARD, processor_reference="pay_abc")

        response = self.refund(client, staff_headers, payment.id, "2.00", "cold")

        assert response.status_code == 201
        assert response.json()["data"]["processor_reference"] == "ref_1"
        assert fake_gateway.refunds[0]["processor_reference"] == "pay_abc"
        assert fake_gateway.refunds[0]["amount"] == Decimal("2.00")

    def test_processor_refund_failure_stores_nothing(self, client, db_session, staff_headers, fake_gateway):
        payment = PaymentFactory(method=PaymentMethod.CARD, processor_reference="pay_abc")
        fake_gateway.failures = [GatewayError("nope", code="REFUND_REJECTED")]

        response = self.refund(client, staff_headers, payment.id, "2.00")

        assert response.status_code == 400
        assert db_session.query(Payment).count() == 1

    def test_unknown_payment(self, client, staff_headers):
        response = self.refund(client, staff_headers, 999, "1.00")

        assert response.status_code == 404

    def test_requires_token(self, client):
        payment = PaymentFactory()

        response = client.post(f"/payments/{payment.id}/refund", json={"amount": "1.00"})

        assert response.status_code == 401


class TestConcurrentPayments:
    """Payments for one order are serialized"""

    @pytest.mark.asyncio
    async def test_same_key_charges_once(self, db_session, payment_processor, fake_gateway):
        order = OrderFactory()
        service = PaymentService(db_session, payment_processor)

        results = await asyncio.gather(
            *(
                service.record_payment(order.id, Decimal("10.80"), PaymentMethod.CARD, "cnon:ok", "key-1")
                for _ in range(2)
            )
        )

        assert results[0].payment.id == results[1].payment.id
        assert sorted(r.replayed for r in results) == [False, True]
        assert len(fake_gateway.charges) == 1

    @pytest.mark.asyncio
    async def test_split_payments_confirm_once(self, db_session, payment_processor):
        order = OrderFactory()
        service = PaymentService(db_session, payment_processor)

        await asyncio.gather(
            service.record_payment(order.id, Decimal("5.40"), PaymentMethod.CASH),
            service.record_payment(order.id, Decimal("5.40"), PaymentMethod.CASH),
        )

        order = db_session.get(Order, order.id)
        assert order.status == OrderStatus.CONFIRMED
        assert order.amount_paid == Decimal("10.80")
