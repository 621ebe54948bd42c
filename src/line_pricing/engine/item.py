"""
Line Item - prices one sellable line (quantity x unit price) through an
optional discount and an ordered tax chain.

Every figure is derived on demand from the item's fields; nothing is
mutated after construction.
"""
import logging
import math
from typing import Iterable, Optional

from .contracts import Discount, Sellable, Tax
from .errors import ValidationError
from .models import Breakdown, TaxLine, discount_to_record

logger = logging.getLogger(__name__)


def sort_taxes(taxes: Iterable[Tax]) -> tuple[Tax, ...]:
    """
    Order a tax chain: ascending priority, compounding taxes first on ties.

    The sort is stable so taxes with the same priority and flag keep their
    relative order.
    """
    return tuple(sorted(taxes, key=lambda t: (t.priority, not t.affect_tax)))


class Item(Sellable):
    """
    A sale item (product or service) priced as one line.

    Resolution order:
    1. Extend the unit price by quantity, taking a unitary discount off the
       price first or an extended discount off the line amount after
    2. If the discount is computed on the tax-inclusive total, apply the tax
       chain, take the discount off the total and run the chain backwards to
       restate the pre-tax subtotal
    3. Walk the tax chain over the subtotal, compounding taxes feeding their
       amount into the base of the taxes after them
    """

    def __init__(
        self,
        code: str,
        quantity: float,
        unit_price: float,
        discount: Optional[Discount] = None,
        taxes: Optional[Iterable[Tax]] = None,
    ):
        if not math.isfinite(quantity) or quantity < 0:
            raise ValidationError("Quantity must be zero or positive.")
        if not math.isfinite(unit_price) or unit_price < 0:
            raise ValidationError("Unit price must be zero or positive.")

        self._code = code
        self._quantity = quantity
        self._unit_price = unit_price
        self._discount = discount
        self._taxes = sort_taxes(taxes or ())

        if self._taxes and logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Item %s tax chain: %s",
                code, ", ".join(f"{t.code}(p{t.priority}{'+' if t.affect_tax else ''})" for t in self._taxes)
            )

    @property
    def code(self) -> str:
        return self._code

    @property
    def quantity(self) -> float:
        return self._quantity

    @property
    def unit_price(self) -> float:
        return self._unit_price

    @property
    def discount(self) -> Optional[Discount]:
        return self._discount

    @property
    def taxes(self) -> tuple[Tax, ...]:
        return self._taxes

    def __repr__(self) -> str:
        return (
            f"Item(code={self._code!r}, quantity={self._quantity!r}, "
            f"unit_price={self._unit_price!r}, discount={self._discount!r}, "
            f"taxes={[t.code for t in self._taxes]!r})"
        )

    # ------------------------------------------------------------------
    # Sellable
    # ------------------------------------------------------------------

    @property
    def subtotal(self) -> float:
        """Subtotal including the discount, before taxes."""
        discount = self._discount
        if discount is None or discount.affect_tax:
            return self._subtotal_of(self._unit_price, discount)

        base = self._subtotal_of(self._unit_price)
        if not self._quantity:
            return base

        base_total = base + self._tax_amount_of(base)
        base_total -= discount.discount_of(base_total)
        inverse = self._inverse_subtotal_of(base_total)
        logger.debug(
            "Item %s: tax-inclusive discount restated %.6f -> %.6f before taxes",
            self._code, base_total, inverse
        )
        return self._subtotal_of(inverse / self._quantity)

    def subtotal_of(self, tax_code: str) -> float:
        """
        Base the tax with the given code is computed on.

        Returns 0 when no tax in the chain has that code.
        """
        value = self.subtotal
        for tax in self._taxes:
            if tax.code == tax_code:
                return value
            if tax.affect_tax:
                value += tax.tax_of(value)
        return 0.0

    @property
    def tax(self) -> float:
        return self._tax_amount_of(self.subtotal)

    def tax_of(self, tax_code: str) -> float:
        """
        Amount of the tax with the given code, discount included.

        The walk starts from subtotal, i.e. the restated pre-tax subtotal when
        the discount is computed on the tax-inclusive total.

        Returns 0 when no tax in the chain has that code.
        """
        subtotal = self.subtotal
        for tax in self._taxes:
            tax_amount = tax.tax_of(subtotal)
            if tax.code == tax_code:
                return tax_amount
            if tax.affect_tax:
                subtotal += tax_amount
        return 0.0

    @property
    def discount_amount(self) -> float:
        """Discount taken off the undiscounted subtotal (before taxes)."""
        return self._subtotal_of(self._unit_price) - self.subtotal

    @property
    def total(self) -> float:
        subtotal = self.subtotal
        return subtotal + self._tax_amount_of(subtotal)

    # ------------------------------------------------------------------
    # Arithmetic helpers
    # ------------------------------------------------------------------

    def _subtotal_of(self, price: float, discount: Optional[Discount] = None) -> float:
        """Extend the given unit price by quantity, applying the discount."""
        the_discount = discount or Discount.empty()
        if the_discount.is_unitary:
            price -= the_discount.discount_of(price)
        value = self._quantity * price
        if not the_discount.is_unitary:
            value -= the_discount.discount_of(value)
        return value

    def _tax_amount_of(self, subtotal: float) -> float:
        """Tax of the whole chain on the given subtotal."""
        value = 0.0
        for tax in self._taxes:
            tax_amount = tax.tax_of(subtotal)
            value += tax_amount
            if tax.affect_tax:
                subtotal += tax_amount
        return value

    def _inverse_subtotal_of(self, total: float) -> float:
        """Subtotal that gives the given tax-inclusive total, peeling the last tax first."""
        subtotal = total
        for tax in reversed(self._taxes):
            subtotal = tax.inverse_subtotal_of(subtotal)
        return subtotal

    # ------------------------------------------------------------------
    # Derived items
    # ------------------------------------------------------------------

    def copy_with(self, discount: Optional[Discount]) -> 'Item':
        """Create a copy with a new discount (None removes it)."""
        return Item(
            code=self._code,
            quantity=self._quantity,
            unit_price=self._unit_price,
            discount=discount,
            taxes=self._taxes,
        )

    def discount_adding(self, add_discount: Discount) -> tuple[Discount, Optional[Discount]]:
        """
        Add the given discount to this item's discount.

        Returns (combined, leftover): combined is the discount resulting from
        both, capped to what this item can absorb; leftover is the part of
        add_discount that did not fit, or None.

        Raises DiscountMergeError when the two discounts cannot be combined.
        """
        current = self._discount or Discount.empty()
        if add_discount.is_empty:
            return current, None

        combined = current.combine(add_discount)
        capacity = self._discount_capacity(combined)
        fitted, leftover = combined.fit(capacity)
        logger.debug(
            "Item %s: discount %r + %r -> %r (capacity %.6f, leftover %r)",
            self._code, current, add_discount, fitted, capacity, leftover
        )
        return fitted, leftover

    def _discount_capacity(self, discount: Discount) -> float:
        """Amount the given discount is computed on, i.e. the most it can take off."""
        base = self._subtotal_of(self._unit_price)
        # Tax-inclusive discounts are taken off the whole line total, unitary or not
        if not discount.affect_tax:
            return base + self._tax_amount_of(base)
        if discount.is_unitary:
            return self._unit_price
        return base

    def breakdown(self) -> Breakdown:
        """Full breakdown of this item with a trace of every step."""
        subtotal = self.subtotal
        undiscounted = self._subtotal_of(self._unit_price)

        result = Breakdown(
            code=self._code,
            quantity=self._quantity,
            unit_price=self._unit_price,
            subtotal=subtotal,
            discount_amount=undiscounted - subtotal,
            tax=0.0,
            total=subtotal,
            discount=discount_to_record(self._discount),
        )

        result.add_trace("Extension", f"Quantity {self._quantity:g} × {self._unit_price:.2f}", f"{undiscounted:.2f}")

        discount = self._discount
        if discount is None or discount.is_empty:
            result.add_trace("Discount", "No discount")
        else:
            scope = "per unit" if discount.is_unitary else "on line amount"
            basis = "before taxes" if discount.affect_tax else "on tax-inclusive total"
            result.add_trace("Discount", f"{type(discount).__name__} {scope}, {basis}", f"-{result.discount_amount:.2f}")
            if not discount.affect_tax:
                result.add_trace("Inversion", "Tax chain reversed to restate subtotal", f"{subtotal:.2f}")

        base = subtotal
        for tax in self._taxes:
            amount = tax.tax_of(base)
            result.taxes.append(TaxLine(
                code=tax.code,
                name=getattr(tax, 'name', None),
                priority=tax.priority,
                affect_tax=tax.affect_tax,
                base=base,
                amount=amount,
            ))
            mode = "compounding" if tax.affect_tax else "simple"
            result.add_trace("Tax", f"{tax.code} ({mode}) on {base:.2f}", f"{amount:.2f}")
            result.tax += amount
            if tax.affect_tax:
                base += amount

        result.total = subtotal + result.tax
        result.add_trace("Total", f"Subtotal {subtotal:.2f} + tax {result.tax:.2f}", f"{result.total:.2f}")
        return result
