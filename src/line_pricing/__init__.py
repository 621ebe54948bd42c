"""
Line Pricing Package

Computes the monetary breakdown of a single sale line: subtotal, discount,
an ordered chain of (possibly compounding) taxes, and total.
"""

__version__ = "1.0.0"
