from __future__ import annotations

import re
from dataclasses import dataclass

from loguru import logger

from ..models import PaymentMethod
from ..rules.loader import ChainStrategy, RuleSet
from ..rules.normalization import contains_any, contains_keyword
from .lines import ReceiptLines


@dataclass(frozen=True, slots=True)
class CardMatch:
    last4: str
    bin: str | None = None

    @property
    def masked(self) -> str:
        return f"---{self.last4}"

    @property
    def scheme(self) -> str | None:
        return card_scheme(self.bin)


@dataclass(frozen=True, slots=True)
class PaymentResult:
    method: PaymentMethod
    card: CardMatch | None = None
    strategy: str | None = None


_PAN_PATTERNS = [
    re.compile(r"(?<!\d)(?P<bin>\d{4,6})\*{4,10}(?P<last4>\d{4})(?!\d)"),
    re.compile(r"[Xx]{4}\s?[Xx]{4}\s?[Xx]{4}\s?(?P<last4>\d{4})(?!\d)"),
    re.compile(r"\*{6,}(?P<last4>\d{4})(?!\d)"),
]

_PRE_TOTAL_WINDOW = 3


def find_card(line: str) -> CardMatch | None:
    for pattern in _PAN_PATTERNS:
        m = pattern.search(line)
        if m:
            groups = m.groupdict()
            return CardMatch(last4=groups["last4"], bin=groups.get("bin"))
    return None


def card_scheme(bin_digits: str | None) -> str | None:
    if not bin_digits:
        return None
    if bin_digits.startswith("4"):
        return "Visa"
    if bin_digits[:2] in {"34", "37"}:
        return "Amex"
    if bin_digits.startswith("9792"):
        return "Troy"
    if bin_digits.startswith("6011") or bin_digits.startswith("65"):
        return "Discover"
    two = int(bin_digits[:2])
    if 51 <= two <= 55 or 22 <= two <= 27:
        return "Mastercard"
    return None


def extract_payment(lines: ReceiptLines, strategy: ChainStrategy, ruleset: RuleSet) -> PaymentResult:
    card, how = _locate_card(lines, strategy)
    kw = ruleset.keywords

    if any(contains_any(view, kw.cash) for view in lines.views):
        if card:
            logger.debug("cash keyword present, ignoring masked card ---{}", card.last4)
        return PaymentResult(method=PaymentMethod.CASH)
    if card:
        return PaymentResult(method=PaymentMethod.CARD, card=card, strategy=how)
    if any(contains_any(view, kw.card) for view in lines.views):
        return PaymentResult(method=PaymentMethod.CARD)
    return PaymentResult(method=PaymentMethod.UNKNOWN)


def _locate_card(lines: ReceiptLines, strategy: ChainStrategy) -> tuple[CardMatch | None, str | None]:
    if strategy.pan_before_total:
        total_idx = _last_plain_tutar(lines)
        if total_idx is not None:
            for i in range(total_idx - 1, max(-1, total_idx - 1 - _PRE_TOTAL_WINDOW), -1):
                card = find_card(lines.raw[i])
                if card:
                    return card, "before_total"

    for i, view in enumerate(lines.views):
        if not contains_any(view, strategy.pan_anchors):
            continue
        for j in (i, i - 1, i + 1):
            if 0 <= j < len(lines):
                card = find_card(lines.raw[j])
                if card:
                    return card, "anchor"

    for raw in lines.raw:
        card = find_card(raw)
        if card:
            return card, "anywhere"
    return None, None


def _last_plain_tutar(lines: ReceiptLines) -> int | None:
    for i in range(len(lines) - 1, -1, -1):
        view = lines.views[i]
        if contains_keyword(view, "tutar") and not contains_any(view, ["kdv", "ind", "indirim"]):
            return i
    return None
