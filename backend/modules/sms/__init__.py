# backend/modules/sms/__init__.py

"""Outbound staff alerts over SMS."""
