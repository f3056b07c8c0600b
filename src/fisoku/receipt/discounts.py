from __future__ import annotations

import re

from ..models import Discount
from ..rules.loader import ChainStrategy, RuleSet
from ..rules.numeric import AMOUNT, bare_amount, find_amounts
from .items import is_discount_line
from .lines import ReceiptLines


_LOOKAHEAD = 2


def extract_discounts(lines: ReceiptLines, strategy: ChainStrategy, ruleset: RuleSet) -> list[Discount]:
    """Every discount keyword line becomes one Discount with a negative amount.

    The amount is taken from the line itself, or from one of the next two lines
    when those carry nothing but an amount.
    """
    keywords = ruleset.keywords.discounts + strategy.discount_keywords
    out: list[Discount] = []
    for i, (raw, view) in enumerate(zip(lines.raw, lines.views)):
        if not is_discount_line(view, keywords):
            continue
        amounts = find_amounts(raw)
        amount = amounts[-1] if amounts else _lookahead_amount(lines, i)
        if not amount:
            continue
        out.append(Discount(description=_description(raw), amount=-abs(amount)))
    return out


def _lookahead_amount(lines: ReceiptLines, index: int) -> float | None:
    for j in range(index + 1, min(len(lines), index + 1 + _LOOKAHEAD)):
        amount = bare_amount(lines.raw[j])
        if amount is not None:
            return amount
        if any(ch.isalpha() for ch in lines.raw[j]):
            break
    return None


def _description(raw: str) -> str:
    text = AMOUNT.sub("", raw)
    text = re.sub(r"\s+", " ", text).strip(" *:-")
    return text or raw.strip()
