# backend/modules/inventory/__init__.py
