from hypothesis import given, settings
from hypothesis import strategies as st

from fisoku.models import Discount, LineItem, TotalSource
from fisoku.receipt.reconcile import TOLERANCE, reconcile


def _item(total: float) -> LineItem:
    return LineItem(name="x", qty=1.0, line_total=total, raw_line="x")


def test_printed_total_that_matches() -> None:
    result = reconcile([_item(4.25), _item(2.5), _item(134.75)], [Discount(description="d", amount=-5.0)], 136.5)

    assert result.computed.items_sum == 141.5
    assert result.computed.discounts_sum == -5.0
    assert result.computed.computed_total == 136.5
    assert result.computed.difference == 0.0
    assert result.computed.reconciles
    assert (result.grand_total, result.source) == (136.5, TotalSource.PRINTED)


def test_printed_total_wins_even_when_it_disagrees() -> None:
    result = reconcile([_item(12.75), _item(224.75)], [Discount(description="d", amount=-5.5)], 231.0)

    assert result.computed.computed_total == 232.0
    assert result.computed.difference == 1.0
    assert not result.computed.reconciles
    assert (result.grand_total, result.source) == (231.0, TotalSource.PRINTED)


def test_largest_amount_guess_is_replaced_when_items_disagree() -> None:
    result = reconcile([_item(10.0), _item(5.0)], [], 10.0, TotalSource.MAX_AMOUNT)

    assert (result.grand_total, result.source) == (15.0, TotalSource.COMPUTED)
    assert result.computed.difference == 5.0
    assert not result.computed.reconciles


def test_largest_amount_guess_is_kept_when_it_agrees() -> None:
    result = reconcile([_item(7.5), _item(10.0)], [], 17.5, TotalSource.MAX_AMOUNT)

    assert (result.grand_total, result.source) == (17.5, TotalSource.MAX_AMOUNT)
    assert result.computed.reconciles


def test_missing_total_is_computed_from_items() -> None:
    result = reconcile([_item(3.0)], [], None, None)

    assert (result.grand_total, result.source) == (3.0, TotalSource.COMPUTED)
    assert result.computed.difference is None
    assert not result.computed.reconciles


def test_missing_total_without_items_stays_missing() -> None:
    result = reconcile([], [], None, None)

    assert (result.grand_total, result.source) == (None, None)
    assert result.computed.computed_total == 0.0


def test_tolerance_boundary() -> None:
    assert reconcile([_item(10.0)], [], 10.05).computed.reconciles
    assert reconcile([_item(10.0)], [], 9.95).computed.reconciles
    assert not reconcile([_item(10.0)], [], 10.06).computed.reconciles
    assert reconcile([_item(10.0)], [], 10.5).computed.tolerance == TOLERANCE


@settings(max_examples=200, deadline=None)
@given(
    items=st.lists(st.integers(min_value=0, max_value=100_000), max_size=8),
    discounts=st.lists(st.integers(min_value=0, max_value=10_000), max_size=3),
    grand=st.integers(min_value=0, max_value=200_000),
)
def test_reconciles_iff_within_five_cents(items: list[int], discounts: list[int], grand: int) -> None:
    result = reconcile(
        [_item(c / 100) for c in items],
        [Discount(description="d", amount=-d / 100) for d in discounts],
        grand / 100,
    )

    assert result.computed.reconciles == (abs(sum(items) - sum(discounts) - grand) <= 5)


def test_comparison_uses_unrounded_sums() -> None:
    result = reconcile([_item(9.996)], [], 10.05)

    assert result.computed.items_sum == 10.0
    assert result.computed.difference == -0.05
    assert not result.computed.reconciles
