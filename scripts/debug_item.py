#!/usr/bin/env python
"""
Print the breakdown and trace of a line item priced with table taxes.

Usage:
    python scripts/debug_item.py QTY UNIT_PRICE [TAX_CODE ...] [--discount KIND:VALUE[:unit][:total]]

Example:
    python scripts/debug_item.py 2 100 EXCISE VAT21 --discount percent:10:total
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from line_pricing.config.settings import get_settings
from line_pricing.engine import Item, TaxTable, PricingError, discount_from_record


def parse_discount(text):
    """KIND:VALUE[:unit][:total] -> discount record."""
    if not text:
        return None
    parts = text.split(':')
    flags = set(parts[2:])
    return {
        'kind': parts[0],
        'value': parts[1] if len(parts) > 1 else 0,
        'is_unitary': 'unit' in flags,
        'affect_tax': 'total' not in flags,
    }


def debug():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('quantity', type=float)
    parser.add_argument('unit_price', type=float)
    parser.add_argument('tax_codes', nargs='*')
    parser.add_argument('--discount', default=None)
    parser.add_argument('--code', default='DEBUG')
    args = parser.parse_args()

    settings = get_settings()
    settings.configure_logging()
    logging.getLogger('line_pricing').setLevel(logging.DEBUG)

    tax_table = TaxTable(settings.tax_table)
    print("Loaded Taxes:")
    print(tax_table.to_frame().to_string(index=False))

    try:
        item = Item(
            code=args.code,
            quantity=args.quantity,
            unit_price=args.unit_price,
            discount=discount_from_record(parse_discount(args.discount)),
            taxes=tax_table.resolve(args.tax_codes),
        )
    except PricingError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)

    result = item.breakdown()
    print("\n--- Trace ---")
    print(result.get_trace_text())
    print("\n--- Breakdown ---")
    print(f"Subtotal: {result.subtotal:.2f}")
    print(f"Discount: {result.discount_amount:.2f}")
    print(f"Tax:      {result.tax:.2f}")
    print(f"Total:    {result.total:.2f}")


if __name__ == "__main__":
    debug()
