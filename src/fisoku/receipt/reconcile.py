from __future__ import annotations

from dataclasses import dataclass

from ..models import ComputedTotals, Discount, LineItem, TotalSource


TOLERANCE = 0.05
# float noise on cent amounts must not flip a result sitting exactly on the band
_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class Reconciliation:
    computed: ComputedTotals
    grand_total: float | None
    source: TotalSource | None


def reconcile(
    items: list[LineItem],
    discounts: list[Discount],
    grand_total: float | None,
    source: TotalSource | None = TotalSource.PRINTED,
    *,
    tolerance: float = TOLERANCE,
) -> Reconciliation:
    """Compare items + discounts with the extracted grand total.

    `reconciles` and `difference` always refer to the extracted total. The
    authoritative total is the printed one when there is one; a largest-amount
    guess is replaced by the computed total when items exist and disagree, and
    a missing total is replaced by the computed total when items exist.
    """
    raw_items = sum(it.line_total for it in items)
    raw_discounts = sum(d.amount for d in discounts)
    raw_total = raw_items + raw_discounts
    # reported figures are rounded to cents, the comparison is not
    items_sum = round(raw_items, 2)
    discounts_sum = round(raw_discounts, 2)
    computed_total = round(raw_total, 2)

    difference = None if grand_total is None else round(raw_total - grand_total, 2)
    reconciles = grand_total is not None and abs(raw_total - grand_total) <= tolerance + _EPSILON

    final_total, final_source = grand_total, source
    if items and not reconciles and source is not TotalSource.PRINTED:
        final_total, final_source = computed_total, TotalSource.COMPUTED

    return Reconciliation(
        computed=ComputedTotals(
            items_sum=items_sum,
            discounts_sum=discounts_sum,
            computed_total=computed_total,
            difference=difference,
            tolerance=tolerance,
            reconciles=reconciles,
        ),
        grand_total=final_total,
        source=final_source,
    )
