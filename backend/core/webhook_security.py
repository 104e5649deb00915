"""
Webhook signature validation.

Incoming processor webhooks are authenticated with HMAC-SHA256 over the raw
request body. When the sender includes ``X-Webhook-Timestamp`` the signed
payload is ``<timestamp>.<body>`` and the timestamp must fall inside the
configured tolerance window, which blocks replays of captured requests.
"""

import hashlib
import hmac
import logging
import os
import time
from typing import Dict, Optional

from fastapi import Request

from .config import get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

WEBHOOK_SIGNATURE_HEADER = "X-Webhook-Signature"
WEBHOOK_TIMESTAMP_HEADER = "X-Webhook-Timestamp"


class WebhookSignatureValidator:
    """
    Validates webhook signatures using HMAC-SHA256.

    Each source has its own secret, read from ``WEBHOOK_SECRET_<SOURCE>``
    or registered explicitly.
    """

    def __init__(self, tolerance_seconds: Optional[int] = None):
        self.webhook_secrets: Dict[str, str] = {}
        self.tolerance_seconds = (
            tolerance_seconds
            if tolerance_seconds is not None
            else get_settings().webhook_timestamp_tolerance_seconds
        )

    def register_webhook_secret(self, source: str, secret: str):
        """Register a webhook secret for a specific source."""
        self.webhook_secrets[source.lower()] = secret

    def get_secret(self, source: str) -> Optional[str]:
        secret = self.webhook_secrets.get(source.lower())
        if secret:
            return secret
        return os.getenv(f"WEBHOOK_SECRET_{source.upper()}")

    def validate_signature(
        self,
        source: str,
        body: bytes,
        signature: Optional[str],
        timestamp: Optional[str] = None,
    ) -> bool:
        """
        Validate a webhook signature.

        Returns True when the signature matches, raises
        ``AuthenticationError`` otherwise.
        """
        secret = self.get_secret(source)
        if not secret:
            logger.error(f"No webhook secret configured for source: {source}")
            raise AuthenticationError("Webhook source not configured", "WEBHOOK_UNCONFIGURED")

        if not signature:
            logger.warning(f"Webhook from {source} rejected: missing signature header")
            raise AuthenticationError("Missing webhook signature", "SIGNATURE_MISSING")

        if timestamp:
            try:
                sent_at = int(timestamp)
            except ValueError:
                logger.warning(f"Webhook from {source} rejected: invalid timestamp")
                raise AuthenticationError("Invalid webhook timestamp", "SIGNATURE_INVALID")

            if abs(int(time.time()) - sent_at) > self.tolerance_seconds:
                logger.warning(f"Webhook from {source} rejected: timestamp outside tolerance")
                raise AuthenticationError("Webhook timestamp too old", "SIGNATURE_EXPIRED")

        expected = self.calculate_signature(secret, body, timestamp)
        if not hmac.compare_digest(signature.strip().lower(), expected):
            logger.warning(f"Webhook from {source} rejected: invalid signature")
            raise AuthenticationError("Invalid webhook signature", "SIGNATURE_INVALID")

        logger.debug(f"Webhook signature validated for source: {source}")
        return True

    @staticmethod
    def calculate_signature(secret: str, body: bytes, timestamp: Optional[str] = None) -> str:
        """Hex HMAC-SHA256 of the body, prefixed by ``timestamp.`` when given."""
        if timestamp:
            payload = timestamp.encode("utf-8") + b"." + body
        else:
            payload = body
        return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


webhook_validator = WebhookSignatureValidator()


async def verify_webhook_request(request: Request, processor: str) -> bytes:
    """
    Read and authenticate the raw body of a webhook request.

    Usage:
        body = await verify_webhook_request(request, "square")
    """
    body = await request.body()
    webhook_validator.validate_signature(
        processor,
        body,
        request.headers.get(WEBHOOK_SIGNATURE_HEADER),
        request.headers.get(WEBHOOK_TIMESTAMP_HEADER),
    )
    return body
