# backend/modules/webhooks/routes/webhook_routes.py

import json
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import ValidationError
from core.webhook_security import verify_webhook_request
from modules.sms.services.twilio_service import TwilioService, get_sms_service
from ..schemas.webhook_schemas import WebhookAck, WebhookEvent
from ..services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/{processor}", response_model=WebhookAck)
async def receive_webhook(
    processor: str,
    request: Request,
    db: Session = Depends(get_db),
    sms: TwilioService = Depends(get_sms_service),
):
    """
    Receive a processor notification.

    The raw body must carry a valid HMAC signature for ``processor``;
    unknown event types are acknowledged so the sender stops retrying.
    """
    body = await verify_webhook_request(request, processor.lower())

    try:
        event = WebhookEvent(**json.loads(body))
    except (ValueError, TypeError, PydanticValidationError) as e:
        logger.warning(f"Invalid {processor} webhook payload: {e}")
        raise ValidationError("Invalid webhook payload", "INVALID_PAYLOAD")

    handled = await WebhookService(db, sms).process_event(processor.lower(), event)
    return WebhookAck(received=True, event_type=event.type, handled=handled)
