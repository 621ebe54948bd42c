"""Engine subpackage - line item pricing, tax and discount contracts."""
from .item import Item, sort_taxes
from .contracts import Tax, Discount, Sellable, EmptyDiscount
from .models import (
    PercentageTax, FixedAmountTax, PercentageDiscount, AmountDiscount, TieredDiscount,
    Breakdown, TaxLine, TraceStep, tax_from_record, discount_from_record,
)
from .tax_table import TaxTable
from .errors import (
    PricingError, ValidationError, DiscountMergeError, UnknownTaxError, TaxTableError,
)

__all__ = [
    'Item', 'sort_taxes', 'Tax', 'Discount', 'Sellable', 'EmptyDiscount',
    'PercentageTax', 'FixedAmountTax', 'PercentageDiscount', 'AmountDiscount', 'TieredDiscount',
    'Breakdown', 'TaxLine', 'TraceStep', 'tax_from_record', 'discount_from_record',
    'TaxTable', 'PricingError', 'ValidationError', 'DiscountMergeError', 'UnknownTaxError',
    'TaxTableError',
]
