"""
Tests for the Square gateway against a mocked SDK client.
"""

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from square.core.api_error import ApiError

from modules.payments.gateways.base import GatewayError
from modules.payments.gateways.square_gateway import SquareGateway, square_error_detail


def square_payment(status="COMPLETED", amount=1080):
    return SimpleNamespace(
        payment=SimpleNamespace(
            id="sq_pay_1",
            status=status,
            amount_money=SimpleNamespace(amount=amount, currency="USD"),
            receipt_url="https://squareup.com/receipt/preview/sq_pay_1",
            card_details=SimpleNamespace(card=SimpleNamespace(card_brand="VISA", last4="4242")),
        )
    )


@pytest.fixture
def sdk():
    client = Mock()
    client.payments.create = AsyncMock(return_value=square_payment())
    client.refunds.refund_payment = AsyncMock(
        return_value=SimpleNamespace(
            refund=SimpleNamespace(
                id="sq_ref_1",
                status="PENDING",
                amount_money=SimpleNamespace(amount=500, currency="USD"),
            )
        )
    )
    return client


@pytest.fixture
def gateway(sdk):
    return SquareGateway("access-token", "LOC1", client=sdk)


class TestSquareCharge:
    @pytest.mark.asyncio
    async def test_charge_forwards_idempotency_key(self, gateway, sdk):
        result = await gateway.charge("cnon:card-nonce-ok", Decimal("10.80"), "key-1", reference_id="ORD-1")

        sdk.payments.create.assert_awaited_once_with(
            source_id="cnon:card-nonce-ok",
            idempotency_key="key-1",
            amount_money={"amount": 1080, "currency": "USD"},
            location_id="LOC1",
            reference_id="ORD-1",
            autocomplete=True,
        )
        assert result.processor_reference == "sq_pay_1"
        assert result.amount == Decimal("10.80")
        assert result.card_brand == "VISA"
        assert result.last4 == "4242"
        assert result.receipt()["receipt_url"].endswith("sq_pay_1")

    @pytest.mark.asyncio
    async def test_failed_status_is_decline(self, gateway, sdk):
        sdk.payments.create.return_value = square_payment(status="FAILED")

        with pytest.raises(GatewayError) as exc_info:
            await gateway.charge("cnon:card-nonce-declined", Decimal("10.80"), "key-2")

        assert exc_info.value.code == "DECLINED"
        assert exc_info.value.transient is False

    @pytest.mark.asyncio
    async def test_client_error_is_permanent(self, gateway, sdk):
        sdk.payments.create.side_effect = ApiError(
            status_code=400,
            body={"errors": [{"code": "CARD_DECLINED", "detail": "Card was declined"}]},
        )

        with pytest.raises(GatewayError) as exc_info:
            await gateway.charge("cnon:bad", Decimal("1.00"), "key-3")

        assert exc_info.value.transient is False
        assert exc_info.value.code == "CARD_DECLINED"
        assert "Card was declined" in exc_info.value.message

    @pytest.mark.parametrize("status_code", [429, 500, 503])
    @pytest.mark.asyncio
    async def test_server_errors_are_transient(self, gateway, sdk, status_code):
        sdk.payments.create.side_effect = ApiError(status_code=status_code, body=None)

        with pytest.raises(GatewayError) as exc_info:
            await gateway.charge("cnon:ok", Decimal("1.00"), "key-4")

        assert exc_info.value.transient is True

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self, gateway, sdk):
        sdk.payments.create.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(GatewayError) as exc_info:
            await gateway.charge("cnon:ok", Decimal("1.00"), "key-5")

        assert exc_info.value.transient is True


class TestSquareRefund:
    @pytest.mark.asyncio
    async def test_refund(self, gateway, sdk):
        result = await gateway.refund("sq_pay_1", Decimal("5.00"), "refund-key", reason="cold")

        sdk.refunds.refund_payment.assert_awaited_once_with(
            idempotency_key="refund-key",
            amount_money={"amount": 500, "currency": "USD"},
            payment_id="sq_pay_1",
            reason="cold",
        )
        assert result.processor_reference == "sq_ref_1"
        assert result.amount == Decimal("5.00")


class TestSquareHelpers:
    def test_location_required(self, sdk):
        with pytest.raises(ValueError):
            SquareGateway("access-token", "", client=sdk)

    def test_error_detail(self):
        assert square_error_detail({"errors": [{"code": "X", "detail": "Nope"}]}) == ("Nope", "X")
        assert square_error_detail(None) == ("unknown error", None)

    def test_format_amount(self):
        assert SquareGateway.format_amount(Decimal("48.57")) == 4857
