"""
Core modules for Usage Budget.

This package contains CSV parsing, record filtering, billing period
arithmetic, budget metrics and daily aggregation.
"""
