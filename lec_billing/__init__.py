"""
LEC Billing.

Tiered electricity billing: rate schedules, bill calculation and reporting.
"""

__version__ = "0.1.0"
