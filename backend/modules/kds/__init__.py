# backend/modules/kds/__init__.py

"""
Kitchen Display System (KDS): order queue views for the kitchen and the
real-time room broadcasts that keep displays current.
"""
