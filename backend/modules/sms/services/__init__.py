# backend/modules/sms/services/__init__.py

from .twilio_service import TwilioService, get_sms_service

__all__ = ["TwilioService", "get_sms_service"]
