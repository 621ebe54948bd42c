import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from line_pricing.engine import (
    Item, PercentageTax, FixedAmountTax, PercentageDiscount, AmountDiscount,
    TieredDiscount, ValidationError, sort_taxes,
)


@pytest.fixture
def chained_taxes():
    """Compounding 10% then simple 5%: the chain of the two-tax scenarios."""
    return [
        PercentageTax(code="SIMPLE5", rate=5, priority=2, affect_tax=False),
        PercentageTax(code="COMP10", rate=10, priority=1, affect_tax=True),
    ]


@pytest.fixture
def tax_inclusive_item(chained_taxes):
    return Item(
        code="TI",
        quantity=3,
        unit_price=100,
        discount=PercentageDiscount(percent=10, affect_tax=False),
        taxes=chained_taxes,
    )


def test_single_simple_tax_without_discount():
    """quantity=2, unitPrice=100, one 10% tax -> 200 / 20 / 220."""
    item = Item(code="A", quantity=2, unit_price=100,
                taxes=[PercentageTax(code="VAT", rate=10, priority=1)])

    assert item.subtotal == pytest.approx(200)
    assert item.tax == pytest.approx(20)
    assert item.total == pytest.approx(220)
    assert item.discount_amount == pytest.approx(0)


def test_unitary_flat_discount_before_tax():
    """quantity=1, unitPrice=100, flat 10 per unit, 10% tax -> 90 / 9 / 99."""
    item = Item(code="B", quantity=1, unit_price=100,
                discount=AmountDiscount(amount=10, is_unitary=True),
                taxes=[PercentageTax(code="VAT", rate=10, priority=1)])

    assert item.subtotal == pytest.approx(90)
    assert item.tax == pytest.approx(9)
    assert item.total == pytest.approx(99)
    assert item.discount_amount == pytest.approx(10)


def test_compounding_tax_feeds_next_tax(chained_taxes):
    """Compounding 10% raises the base of the 5% tax to 110."""
    item = Item(code="C", quantity=1, unit_price=100, taxes=chained_taxes)

    assert item.tax_of("COMP10") == pytest.approx(10)
    assert item.subtotal_of("COMP10") == pytest.approx(100)
    assert item.subtotal_of("SIMPLE5") == pytest.approx(110)
    assert item.tax_of("SIMPLE5") == pytest.approx(5.5)
    assert item.tax == pytest.approx(15.5)
    assert item.total == pytest.approx(115.5)


def test_simple_tax_does_not_feed_next_tax():
    item = Item(code="D", quantity=1, unit_price=100, taxes=[
        PercentageTax(code="FIRST", rate=10, priority=1, affect_tax=False),
        PercentageTax(code="SECOND", rate=5, priority=2, affect_tax=False),
    ])

    assert item.subtotal_of("SECOND") == pytest.approx(100)
    assert item.tax_of("SECOND") == pytest.approx(5)
    assert item.total == pytest.approx(115)


def test_tax_inclusive_discount_reproduces_discounted_total(tax_inclusive_item, chained_taxes):
    """Discount on the tax-inclusive total is restated as a pre-tax subtotal."""
    undiscounted = Item(code="TI", quantity=3, unit_price=100, taxes=chained_taxes)
    expected_total = undiscounted.total * 0.9

    assert undiscounted.total == pytest.approx(346.5)
    assert tax_inclusive_item.subtotal == pytest.approx(270)
    assert tax_inclusive_item.total == pytest.approx(expected_total)
    assert tax_inclusive_item.discount_amount == pytest.approx(30)


def test_tax_inclusive_discount_with_single_tax():
    item = Item(code="E", quantity=4, unit_price=25,
                discount=AmountDiscount(amount=22, affect_tax=False),
                taxes=[PercentageTax(code="VAT", rate=10)])

    # 100 + 10 tax = 110, minus 22 = 88 -> 80 before tax
    assert item.subtotal == pytest.approx(80)
    assert item.tax == pytest.approx(8)
    assert item.total == pytest.approx(88)


def test_total_is_subtotal_plus_tax(tax_inclusive_item):
    assert tax_inclusive_item.total == tax_inclusive_item.subtotal + tax_inclusive_item.tax


def test_tax_of_each_code_adds_up_to_tax(tax_inclusive_item):
    by_code = sum(tax_inclusive_item.tax_of(t.code) for t in tax_inclusive_item.taxes)
    assert by_code == pytest.approx(tax_inclusive_item.tax)


def test_unknown_tax_code_returns_zero(tax_inclusive_item):
    assert tax_inclusive_item.subtotal_of("NOPE") == 0
    assert tax_inclusive_item.tax_of("NOPE") == 0


def test_chain_sorted_by_priority_then_compounding_first():
    a = PercentageTax(code="A", rate=1, priority=3, affect_tax=False)
    b = PercentageTax(code="B", rate=1, priority=1, affect_tax=False)
    c = PercentageTax(code="C", rate=1, priority=2, affect_tax=True)
    d = PercentageTax(code="D", rate=1, priority=1, affect_tax=True)
    e = PercentageTax(code="E", rate=1, priority=3, affect_tax=False)
    taxes = [a, b, c, d, e]

    item = Item(code="S", quantity=1, unit_price=1, taxes=taxes)

    assert [t.code for t in item.taxes] == ["D", "B", "C", "A", "E"]
    # Caller's list is left alone
    assert taxes == [a, b, c, d, e]
    assert sort_taxes(taxes) == item.taxes


def test_unitary_and_extended_discounts_differ_when_non_linear():
    tiered = ((0, 0), (500, 10))
    unitary = Item(code="T", quantity=10, unit_price=60,
                   discount=TieredDiscount(tiers=tiered, is_unitary=True))
    extended = Item(code="T", quantity=10, unit_price=60,
                    discount=TieredDiscount(tiers=tiered, is_unitary=False))

    # 60 per unit never reaches the 500 tier, the 600 line amount does
    assert unitary.subtotal == pytest.approx(600)
    assert extended.subtotal == pytest.approx(540)


def test_flat_discount_per_unit_vs_per_line():
    per_unit = Item(code="F", quantity=3, unit_price=10, discount=AmountDiscount(amount=5, is_unitary=True))
    per_line = Item(code="F", quantity=3, unit_price=10, discount=AmountDiscount(amount=5))

    assert per_unit.subtotal == pytest.approx(15)
    assert per_line.subtotal == pytest.approx(25)


@pytest.mark.parametrize("base", [0.0, 1.0, 99.99, 1234.5])
def test_inverse_undoes_tax_chain(base):
    item = Item(code="R", quantity=1, unit_price=1, taxes=[
        PercentageTax(code="C1", rate=8, priority=1, affect_tax=True),
        FixedAmountTax(code="ECO", amount=0.5, priority=1, affect_tax=True),
        PercentageTax(code="V", rate=21, priority=2, affect_tax=False),
    ])

    total = base + item._tax_amount_of(base)
    assert item._inverse_subtotal_of(total) == pytest.approx(base)


def test_discount_amount_never_negative():
    for discount in (PercentageDiscount(percent=15), AmountDiscount(amount=500),
                     PercentageDiscount(percent=20, is_unitary=True, affect_tax=False)):
        item = Item(code="N", quantity=2, unit_price=40, discount=discount,
                    taxes=[PercentageTax(code="VAT", rate=10)])
        assert item.discount_amount >= 0


def test_zero_quantity_with_tax_inclusive_discount():
    item = Item(code="Z", quantity=0, unit_price=100,
                discount=PercentageDiscount(percent=10, affect_tax=False),
                taxes=[PercentageTax(code="VAT", rate=10)])

    assert item.subtotal == 0
    assert item.total == 0


@pytest.mark.parametrize("quantity,unit_price", [(-1, 10), (1, -0.01), (float("nan"), 10), (1, float("nan")), (float("inf"), 10), (1, float("inf"))])
def test_negative_values_rejected(quantity, unit_price):
    with pytest.raises(ValidationError):
        Item(code="X", quantity=quantity, unit_price=unit_price)


def test_validation_error_is_value_error():
    with pytest.raises(ValueError, match="Quantity must be zero or positive"):
        Item(code="X", quantity=-5, unit_price=1)


def test_item_fields_are_read_only():
    item = Item(code="RO", quantity=1, unit_price=1)
    with pytest.raises(AttributeError):
        item.quantity = 2


def test_copy_with_replaces_only_discount(chained_taxes):
    item = Item(code="CP", quantity=2, unit_price=50, discount=PercentageDiscount(percent=10),
                taxes=chained_taxes)

    copy = item.copy_with(discount=AmountDiscount(amount=5))
    plain = item.copy_with(discount=None)

    assert copy is not item
    assert copy.taxes == item.taxes
    assert (copy.code, copy.quantity, copy.unit_price) == ("CP", 2, 50)
    assert copy.subtotal == pytest.approx(95)
    assert plain.discount is None
    assert plain.subtotal == pytest.approx(100)
    assert item.discount == PercentageDiscount(percent=10)


def test_breakdown_lists_each_tax(chained_taxes):
    result = Item(code="BD", quantity=1, unit_price=100, taxes=chained_taxes).breakdown()

    assert [(t.code, t.base, t.amount) for t in result.taxes] == [
        ("COMP10", pytest.approx(100), pytest.approx(10)),
        ("SIMPLE5", pytest.approx(110), pytest.approx(5.5)),
    ]
    assert result.tax == pytest.approx(15.5)
    assert result.total == pytest.approx(115.5)
    assert result.discount is None
    assert "Total" in result.get_trace_text()


def test_breakdown_matches_item_figures(tax_inclusive_item):
    result = tax_inclusive_item.breakdown()

    assert result.subtotal == pytest.approx(tax_inclusive_item.subtotal)
    assert result.discount_amount == pytest.approx(tax_inclusive_item.discount_amount)
    assert result.tax == pytest.approx(tax_inclusive_item.tax)
    assert result.total == pytest.approx(tax_inclusive_item.total)
    assert result.discount == {"kind": "percent", "value": 10, "is_unitary": False, "affect_tax": False}
    assert any(t.step == "Inversion" for t in result.trace)


def test_tax_of_walks_from_restated_subtotal(tax_inclusive_item):
    """With a tax-inclusive discount the first tax is charged on the restated subtotal."""
    assert tax_inclusive_item.subtotal_of("COMP10") == pytest.approx(270)
    assert tax_inclusive_item.tax_of("COMP10") == pytest.approx(27)
    assert tax_inclusive_item.tax_of("SIMPLE5") == pytest.approx(14.85)
