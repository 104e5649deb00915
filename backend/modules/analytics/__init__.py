# backend/modules/analytics/__init__.py

"""
Analytics Module - Daily Sales Reports

Completed orders are rolled up once per day into a stored report with
revenue, order count, average order value, the best sellers and a trend
analysis of the last two weeks.
"""
