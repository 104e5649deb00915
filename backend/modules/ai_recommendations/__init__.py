# backend/modules/ai_recommendations/__init__.py

"""
Menu recommendations and sales-trend insights.

Suggestions come from a hosted text-generation model when one is configured
and fall back to a fixed list otherwise.
"""
