"""
Inbound processor webhooks: signature-checked notifications that keep local
payments and stock in step with the external systems.
"""
