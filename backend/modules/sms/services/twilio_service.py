# backend/modules/sms/services/twilio_service.py

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from core.config import get_settings

logger = logging.getLogger(__name__)


class TwilioService:
    """
    Staff alerts over SMS.

    Sending never raises: every method returns a result dict with a
    ``success`` flag so a failed text cannot fail the operation that
    triggered it.
    """

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        manager_phone: Optional[str] = None,
        client: Optional[Client] = None,
    ):
        settings = get_settings()
        self.account_sid = account_sid or settings.twilio_account_sid
        self.auth_token = auth_token or settings.twilio_auth_token
        self.from_number = from_number or settings.twilio_phone_number
        self.manager_phone = manager_phone or settings.manager_phone

        if client is not None:
            self.client = client
        elif not all([self.account_sid, self.auth_token]):
            logger.warning("Twilio credentials not configured")
            self.client = None
        else:
            self.client = Client(self.account_sid, self.auth_token)
            logger.info("Twilio client initialized successfully")

    def send_sms(self, to_number: str, message_body: str) -> Dict[str, Any]:
        """Send one SMS; blocking, so async callers go through ``_send``."""
        if not self.client:
            return {"success": False, "error": "Twilio client not initialized"}

        try:
            message = self.client.messages.create(
                body=message_body, from_=self.from_number, to=to_number
            )
        except TwilioRestException as e:
            logger.error(f"Twilio error sending SMS to {to_number}: {e}")
            return {"success": False, "error": str(e), "error_code": e.code}
        except Exception as e:
            logger.error(f"Unexpected error sending SMS to {to_number}: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"SMS sent to {to_number}, SID: {message.sid}")
        return {"success": True, "provider_message_id": message.sid}

    async def _send(self, to_number: Optional[str], message_body: str) -> Dict[str, Any]:
        recipient = to_number or self.manager_phone
        if not recipient:
            logger.info("No SMS recipient configured, skipping alert")
            return {"success": False, "error": "No recipient"}
        return await asyncio.to_thread(self.send_sms, recipient, message_body)

    async def send_inventory_alert(
        self,
        name: str,
        current_stock: Any,
        min_stock: Any,
        unit: str,
        to_number: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = (
            "LOW STOCK ALERT\n\n"
            f"Item: {name}\n"
            f"Current Stock: {current_stock} {unit}\n"
            f"Minimum Required: {min_stock} {unit}\n\n"
            "Please restock immediately to avoid running out."
        )
        return await self._send(to_number, body)

    async def send_order_notification(
        self,
        order_number: str,
        customer_name: Optional[str],
        to_number: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = (
            "NEW ORDER NOTIFICATION\n\n"
            f"Order #: {order_number}\n"
            f"Customer: {customer_name or 'Walk-in'}\n"
            f"Time: {datetime.utcnow():%Y-%m-%d %H:%M} UTC\n\n"
            "Please check the kitchen display system for details."
        )
        return await self._send(to_number, body)

    async def send_payment_alert(
        self,
        amount: Decimal,
        order_number: str,
        to_number: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = (
            "PAYMENT PROCESSED\n\n"
            f"Amount: ${amount:.2f}\n"
            f"Order #: {order_number}\n"
            f"Time: {datetime.utcnow():%Y-%m-%d %H:%M} UTC"
        )
        return await self._send(to_number, body)


@lru_cache()
def get_sms_service() -> TwilioService:
    return TwilioService()
