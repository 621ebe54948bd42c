"""
Contracts consumed and exposed by the line pricing engine.

The engine only talks to taxes and discounts through these interfaces;
concrete variants (percentage, fixed amount, tiered, ...) live in models.py
or in caller code.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .errors import DiscountMergeError


class Tax(ABC):
    """
    One entry of a tax chain.

    Implementations expose:
    - code: unique within one item's chain
    - priority: lower values are applied first
    - affect_tax: when True the amount is added to the base seen by later taxes
    """
    code: str
    priority: int
    affect_tax: bool

    @abstractmethod
    def tax_of(self, base: float) -> float:
        """Tax amount charged on the given base."""

    @abstractmethod
    def inverse_subtotal_of(self, total: float) -> float:
        """Base that, once this tax is added, gives the given total."""


class Discount(ABC):
    """
    A discount applied to a line item.

    - is_unitary: applied to the unit price instead of the extended amount
    - affect_tax: computed on the pre-tax subtotal (True) or on the
      tax-inclusive total (False)
    """
    is_unitary: bool
    affect_tax: bool

    @abstractmethod
    def discount_of(self, amount: float) -> float:
        """Discount amount taken from the given amount."""

    @property
    def is_empty(self) -> bool:
        return False

    def combine(self, other: 'Discount') -> 'Discount':
        """Return a single discount equivalent to applying both."""
        raise DiscountMergeError(
            f"{type(self).__name__} cannot be combined with {type(other).__name__}"
        )

    def fit(self, capacity: float) -> tuple['Discount', Optional['Discount']]:
        """
        Split this discount into the part that fits within capacity and the
        overflow (None when everything fits).
        """
        return self, None

    @staticmethod
    def empty() -> 'Discount':
        return EMPTY_DISCOUNT


class EmptyDiscount(Discount):
    """Identity discount: takes nothing off."""
    is_unitary = False
    affect_tax = True

    def discount_of(self, amount: float) -> float:
        return 0.0

    @property
    def is_empty(self) -> bool:
        return True

    def combine(self, other: Discount) -> Discount:
        return other

    def __eq__(self, other) -> bool:
        return isinstance(other, EmptyDiscount)

    def __hash__(self) -> int:
        return hash(EmptyDiscount)

    def __repr__(self) -> str:
        return "EmptyDiscount()"


EMPTY_DISCOUNT = EmptyDiscount()


class Sellable(ABC):
    """Capability of anything that can be priced as a line of a sale."""

    @property
    @abstractmethod
    def subtotal(self) -> float:
        """Amount after discount, before taxes."""

    @abstractmethod
    def subtotal_of(self, tax_code: str) -> float:
        """Base the named tax is computed on."""

    @property
    @abstractmethod
    def tax(self) -> float:
        """Sum of every tax in the chain."""

    @abstractmethod
    def tax_of(self, tax_code: str) -> float:
        """Amount of the named tax."""

    @property
    @abstractmethod
    def discount_amount(self) -> float:
        """Amount taken off the undiscounted pre-tax subtotal."""

    @property
    @abstractmethod
    def total(self) -> float:
        """Subtotal plus taxes."""
