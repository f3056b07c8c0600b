from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from ..models import TotalSource, VatLine
from ..rules.loader import ChainStrategy, TotalRule
from ..rules.normalization import contains_any, find_keyword
from ..rules.numeric import AMOUNT_TOKEN, find_amounts, parse_amount
from .lines import ReceiptLines


@dataclass(frozen=True, slots=True)
class TotalsResult:
    subtotal: float | None = None
    vat_total: float | None = None
    vat_breakdown: list[VatLine] = field(default_factory=list)
    grand_total: float | None = None
    source: TotalSource | None = None
    rule: str | None = None


_LOOKAHEAD = 2

_VAT_TOTAL_LABELS = ["topkdv", "toplam kdv", "kdv toplam", "kdv toplami"]
_SUBTOTAL_LABELS = ["ara toplam", "ara toplami"]
_VAT_LINE = re.compile(
    rf"(?<![A-Za-z])KDV\s*(?:%\s?(?P<r1>\d{{1,2}})|(?P<r2>\d{{1,2}})\s?%)\s*[:=]?\s*\*?\s*(?P<amount>{AMOUNT_TOKEN})",
    re.IGNORECASE,
)


def extract_totals(lines: ReceiptLines, strategy: ChainStrategy) -> TotalsResult:
    grand, rule = _grand_total(lines, strategy)
    source = TotalSource.PRINTED if grand is not None else None
    if grand is None:
        grand = _largest_amount(lines)
        source = TotalSource.MAX_AMOUNT if grand is not None else None
        rule = "max_amount" if grand is not None else None
    logger.debug("grand total {} via {}", grand, rule)

    return TotalsResult(
        subtotal=_labelled_amount(lines, _SUBTOTAL_LABELS),
        vat_total=_labelled_amount(lines, _VAT_TOTAL_LABELS),
        vat_breakdown=vat_breakdown(lines),
        grand_total=grand,
        source=source,
        rule=rule,
    )


def _grand_total(lines: ReceiptLines, strategy: ChainStrategy) -> tuple[float | None, str | None]:
    order = range(len(lines) - 1, -1, -1) if strategy.scan_bottom_up else range(len(lines))
    for rule in strategy.total_rules:
        for i in order:
            amount = _rule_amount(lines, i, rule)
            if amount is not None:
                return amount, rule.keyword
    return None, None


def _rule_amount(lines: ReceiptLines, i: int, rule: TotalRule) -> float | None:
    view = lines.views[i]
    m = find_keyword(view, rule.keyword)
    if not m or contains_any(view, rule.exclude) or _is_vat_total(view):
        return None
    amount = amount_after(lines, i, m.end())
    if amount is None or amount <= 0:
        return None
    return amount


def amount_after(lines: ReceiptLines, i: int, offset: int) -> float | None:
    """Last amount after `offset` on line i, else the first amount on the next two lines."""
    amounts = find_amounts(lines.raw[i][offset:])
    if amounts:
        return amounts[-1]
    for j in range(i + 1, min(len(lines), i + 1 + _LOOKAHEAD)):
        if _is_vat_total(lines.views[j]):
            break
        amounts = find_amounts(lines.raw[j])
        if amounts:
            return amounts[0]
    return None


def _labelled_amount(lines: ReceiptLines, labels: list[str]) -> float | None:
    for i in range(len(lines) - 1, -1, -1):
        view = lines.views[i]
        for label in labels:
            m = find_keyword(view, label)
            if m:
                amount = amount_after(lines, i, m.end())
                if amount is not None:
                    return amount
    return None


def _is_vat_total(view: str) -> bool:
    return contains_any(view, _VAT_TOTAL_LABELS)


def vat_breakdown(lines: ReceiptLines) -> list[VatLine]:
    out: list[VatLine] = []
    for raw in lines.raw:
        for m in _VAT_LINE.finditer(raw):
            amount = parse_amount(m.group("amount"))
            if amount is None:
                continue
            rate = float(m.group("r1") or m.group("r2"))
            out.append(VatLine(rate=rate, amount=amount))
    return out


def _largest_amount(lines: ReceiptLines) -> float | None:
    amounts = [a for raw in lines.raw for a in find_amounts(raw) if a > 0]
    return max(amounts) if amounts else None
