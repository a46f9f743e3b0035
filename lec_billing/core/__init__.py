"""
Core modules for LEC Billing.

This package contains the tiered bill calculator, the rate schedule it
prices against, and the billing and report helpers built on top of it.
"""
