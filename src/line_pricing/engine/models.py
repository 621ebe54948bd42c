"""
Data models for the line pricing engine.

Uses frozen dataclasses for the tax and discount variants and plain
dataclasses for the breakdown handed back to callers.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from .contracts import Discount, Tax
from .errors import ValidationError


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == '':
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def _require_non_negative(name: str, value: float):
    if value < 0:
        raise ValidationError(f"{name} must be zero or positive (got {value}).")


# ============================================================================
# TAXES
# ============================================================================

@dataclass(frozen=True)
class PercentageTax(Tax):
    """A tax charged as a percentage of its base (rate=10.0 means 10%)."""
    code: str
    rate: float
    priority: int = 0
    affect_tax: bool = False
    name: Optional[str] = None

    def __post_init__(self):
        _require_non_negative("Tax rate", self.rate)

    def tax_of(self, base: float) -> float:
        return base * self.rate / 100.0

    def inverse_subtotal_of(self, total: float) -> float:
        return total / (1.0 + self.rate / 100.0)


@dataclass(frozen=True)
class FixedAmountTax(Tax):
    """A flat amount charged once per line, whatever the base."""
    code: str
    amount: float
    priority: int = 0
    affect_tax: bool = False
    name: Optional[str] = None

    def __post_init__(self):
        _require_non_negative("Tax amount", self.amount)

    def tax_of(self, base: float) -> float:
        return self.amount

    def inverse_subtotal_of(self, total: float) -> float:
        return total - self.amount


# ============================================================================
# DISCOUNTS
# ============================================================================

@dataclass(frozen=True)
class PercentageDiscount(Discount):
    """Takes a percentage off the amount it is applied to."""
    percent: float
    is_unitary: bool = False
    affect_tax: bool = True

    def __post_init__(self):
        _require_non_negative("Discount percent", self.percent)

    def discount_of(self, amount: float) -> float:
        return amount * self.percent / 100.0

    def combine(self, other: Discount) -> Discount:
        if other.is_empty:
            return self
        if isinstance(other, PercentageDiscount) and _same_scope(self, other):
            return replace(self, percent=self.percent + other.percent)
        return super().combine(other)

    def fit(self, capacity: float) -> tuple[Discount, Optional[Discount]]:
        # A percentage never removes more than the whole amount
        if self.percent <= 100.0:
            return self, None
        return replace(self, percent=100.0), replace(self, percent=self.percent - 100.0)


@dataclass(frozen=True)
class AmountDiscount(Discount):
    """Takes a fixed amount off, never more than the amount itself."""
    amount: float
    is_unitary: bool = False
    affect_tax: bool = True

    def __post_init__(self):
        _require_non_negative("Discount amount", self.amount)

    def discount_of(self, amount: float) -> float:
        return min(self.amount, max(amount, 0.0))

    def combine(self, other: Discount) -> Discount:
        if other.is_empty:
            return self
        if isinstance(other, AmountDiscount) and _same_scope(self, other):
            return replace(self, amount=self.amount + other.amount)
        return super().combine(other)

    def fit(self, capacity: float) -> tuple[Discount, Optional[Discount]]:
        capacity = max(capacity, 0.0)
        if self.amount <= capacity:
            return self, None
        return replace(self, amount=capacity), replace(self, amount=self.amount - capacity)


@dataclass(frozen=True)
class TieredDiscount(Discount):
    """
    Percentage that depends on the amount: the tier with the highest
    threshold not above the amount wins.

    tiers: ((threshold, percent), ...) e.g. ((0, 0), (500, 5), (1000, 10))
    """
    tiers: tuple = ()
    is_unitary: bool = False
    affect_tax: bool = True

    def __post_init__(self):
        tiers = tuple(sorted((float(t), float(p)) for t, p in self.tiers))
        for threshold, percent in tiers:
            _require_non_negative("Tier threshold", threshold)
            _require_non_negative("Tier percent", percent)
        object.__setattr__(self, 'tiers', tiers)

    def percent_for(self, amount: float) -> float:
        percent = 0.0
        for threshold, tier_percent in self.tiers:
            if amount < threshold:
                break
            percent = tier_percent
        return percent

    def discount_of(self, amount: float) -> float:
        return amount * min(self.percent_for(amount), 100.0) / 100.0


def _same_scope(a: Discount, b: Discount) -> bool:
    return a.is_unitary == b.is_unitary and a.affect_tax == b.affect_tax


# ============================================================================
# RECORD CONVERSION (CSV rows, API payloads)
# ============================================================================

TAX_KINDS = ('percent', 'fixed')
DISCOUNT_KINDS = ('none', 'percent', 'amount', 'tiered')


def tax_from_record(record: dict) -> Tax:
    """Build a tax from a plain dict with code/kind/value/priority/affect_tax."""
    code = str(record.get('code') or '').strip()
    if not code:
        raise ValidationError("Tax code is required")

    kind = str(record.get('kind') or 'percent').strip().lower()
    try:
        value = float(record.get('value') or 0)
        priority = int(float(record.get('priority') or 0))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid number in tax '{code}': {e}") from e
    affect_tax = parse_bool(record.get('affect_tax'))
    name = record.get('name') or None

    if kind == 'percent':
        return PercentageTax(code=code, rate=value, priority=priority,
                             affect_tax=affect_tax, name=name)
    if kind == 'fixed':
        return FixedAmountTax(code=code, amount=value, priority=priority,
                              affect_tax=affect_tax, name=name)
    raise ValidationError(f"Unknown tax kind '{kind}' for tax '{code}' (expected one of {TAX_KINDS})")


def tax_to_record(tax: Tax) -> dict:
    if isinstance(tax, PercentageTax):
        kind, value = 'percent', tax.rate
    elif isinstance(tax, FixedAmountTax):
        kind, value = 'fixed', tax.amount
    else:
        kind, value = type(tax).__name__, None
    return {
        'code': tax.code,
        'name': getattr(tax, 'name', None),
        'kind': kind,
        'value': value,
        'priority': tax.priority,
        'affect_tax': tax.affect_tax,
    }


def discount_from_record(record: Optional[dict]) -> Optional[Discount]:
    """Build a discount from a plain dict; None or kind 'none' gives no discount."""
    if not record:
        return None

    kind = str(record.get('kind') or 'none').strip().lower()
    if kind == 'none':
        return None

    scope = {
        'is_unitary': parse_bool(record.get('is_unitary')),
        'affect_tax': parse_bool(record.get('affect_tax'), default=True),
    }
    try:
        if kind == 'percent':
            return PercentageDiscount(percent=float(record.get('value') or 0), **scope)
        if kind == 'amount':
            return AmountDiscount(amount=float(record.get('value') or 0), **scope)
        if kind == 'tiered':
            return TieredDiscount(tiers=tuple(record.get('tiers') or ()), **scope)
    except ValidationError:
        raise
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {kind} discount: {e}") from e
    raise ValidationError(f"Unknown discount kind '{kind}' (expected one of {DISCOUNT_KINDS})")


def discount_to_record(discount: Optional[Discount]) -> Optional[dict]:
    if discount is None or discount.is_empty:
        return None
    record = {'is_unitary': discount.is_unitary, 'affect_tax': discount.affect_tax}
    if isinstance(discount, PercentageDiscount):
        record.update(kind='percent', value=discount.percent)
    elif isinstance(discount, AmountDiscount):
        record.update(kind='amount', value=discount.amount)
    elif isinstance(discount, TieredDiscount):
        record.update(kind='tiered', tiers=[list(t) for t in discount.tiers])
    else:
        record.update(kind=type(discount).__name__)
    return record


# ============================================================================
# BREAKDOWN
# ============================================================================

@dataclass
class TraceStep:
    """A single step in the pricing trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class TaxLine:
    """One tax of the chain as applied to an item."""
    code: str
    name: Optional[str]
    priority: int
    affect_tax: bool
    base: float
    amount: float


@dataclass
class Breakdown:
    """Complete monetary breakdown of a line item."""
    code: str
    quantity: float
    unit_price: float
    subtotal: float
    discount_amount: float
    tax: float
    total: float
    discount: Optional[dict] = None
    taxes: list[TaxLine] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_rows(self) -> list[dict]:
        """Flat rows (one per tax) for tabular export."""
        return [
            {
                'Item': self.code,
                'Tax': line.code,
                'Priority': line.priority,
                'Compounding': line.affect_tax,
                'Base': line.base,
                'Amount': line.amount,
            }
            for line in self.taxes
        ]
