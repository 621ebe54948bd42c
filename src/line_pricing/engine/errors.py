"""
Exceptions raised by the line pricing engine.
"""


class PricingError(Exception):
    """Base class for all line pricing errors."""


class ValidationError(PricingError, ValueError):
    """Raised when an item, tax or discount is built from invalid values."""


class DiscountMergeError(PricingError, ValueError):
    """Raised when two discounts cannot be combined into one."""


class UnknownTaxError(PricingError, KeyError):
    """Raised when tax codes are missing from the tax table."""

    def __init__(self, codes):
        self.codes = list(codes)
        super().__init__(f"Unknown tax code(s): {', '.join(self.codes)}")

    def __str__(self) -> str:
        return self.args[0]


class TaxTableError(PricingError):
    """Raised when a tax table row cannot be turned into a tax."""
