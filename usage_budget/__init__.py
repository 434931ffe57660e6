"""
Usage Budget.

Budget tracking for usage-cost exports: parsing, filtering, billing
periods and cascading spending limits.
"""

__version__ = "0.1.0"
