from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from ..models import LineItem
from ..rules.loader import ChainStrategy, RuleSet
from ..rules.normalization import contains_any, contains_keyword, normalize_name
from ..rules.numeric import AMOUNT_TOKEN, bare_amount, find_amounts, parse_amount, parse_number
from .lines import ReceiptLines
from .payment import find_card


class SectionState(str, Enum):
    BEFORE = "before_section"
    IN = "in_section"
    AFTER = "after_section"


@dataclass(slots=True)
class _Draft:
    name: str
    qty: float
    unit_price: float | None
    line_total: float
    raw_lines: list[str]
    product_code: str | None = None
    weighed: bool = False


@dataclass(slots=True)
class _PendingWeight:
    name: str | None
    qty: float
    unit_price: float
    raw: str


@dataclass(slots=True)
class _PendingQuantity:
    qty: float
    unit_price: float | None
    raw: str


@dataclass(slots=True)
class _Scanner:
    drafts: list[_Draft] = field(default_factory=list)
    name: str | None = None
    name_raw: str | None = None
    code: str | None = None
    weight: _PendingWeight | None = None
    quantity: _PendingQuantity | None = None
    skip_bare_price: bool = False

    def clear(self) -> None:
        self.name = self.name_raw = self.code = None
        self.weight = None
        self.quantity = None


_LETTER = r"A-Za-zÇĞİÖŞÜçğıöşü"
_MONEY = rf"(?:{AMOUNT_TOKEN})"

_WEIGHT = re.compile(
    rf"^(?P<name>.*?)\s*(?P<qty>\d+[.,]\d{{1,3}})\s*KG\s*[xX]\s*(?P<unit>{_MONEY})"
    rf"(?:\s*TL(?:\s*/\s*KG)?)?(?:\s*\*\s*(?P<total>{_MONEY}))?\s*$",
    re.IGNORECASE,
)
# "BEYAZ PEYNIR 0,500 KG *45,00": the starred amount is the line total
_WEIGHED_TOTAL = re.compile(
    rf"^(?P<name>.*?)\s*(?P<qty>\d+[.,]\d{{1,3}})\s*KG\s*\*\s*(?P<total>{_MONEY})\s*$",
    re.IGNORECASE,
)
_MULTIPLIER = re.compile(
    rf"^(?P<name>.*[{_LETTER}].*?)\s+[xX]\s?(?P<n>\d{{1,3}})\s*\*\s*(?P<total>{_MONEY})\s*$"
)
_QUANTITY_LINE = re.compile(
    rf"^(?P<n>\d{{1,3}})\s*(?:AD(?:ET)?\.?)?\s*[xX*]\s*(?P<unit>{_MONEY})(?:\s*TL)?\s*$",
    re.IGNORECASE,
)
_SINGLE_PRICE = re.compile(rf"^(?P<name>.*[{_LETTER}].*?)\s*\*\s*(?P<amount>{_MONEY})\s*$")

_BARCODE_PREFIX = re.compile(r"^(?P<code>\d{6,14})\s+")
_TRAILING_VAT = re.compile(r"\s*%\s?\d{1,2}\s*$")
_HAS_LETTER = re.compile(rf"[{_LETTER}]")

_NOISE_PATTERNS = [
    re.compile(r"^\d{8,14}$"),
    re.compile(r"^[\d\s.,:/#*-]+$"),
    re.compile(r"^[A-Z]{2,4}\d+$"),
    re.compile(r"^%\s?\d{1,2}$"),
]


def extract_items(lines: ReceiptLines, strategy: ChainStrategy, ruleset: RuleSet) -> list[LineItem]:
    discount_keywords = ruleset.keywords.discounts + strategy.discount_keywords
    start, end = item_section(lines, strategy, discount_keywords)
    logger.debug("item section for {}: lines {}..{}", strategy.chain.value, start, end)

    scan = _Scanner()
    for i in range(start, end):
        _scan_line(scan, lines.raw[i], lines.views[i], discount_keywords, ruleset)

    if scan.weight is not None:
        _close_weight(scan, total=None, raw=None)
    return group_items(scan.drafts, ruleset)


def item_section(
    lines: ReceiptLines, strategy: ChainStrategy, discount_keywords: list[str] | None = None
) -> tuple[int, int]:
    """Return [start, end) line indices of the item section.

    BeforeSection until the first start marker, InSection until the next end
    marker, AfterSection for the rest. No start marker: the whole text.
    """
    start_marker = lines.first_index(strategy.item_start)
    state = SectionState.IN if start_marker is None else SectionState.BEFORE
    start, end = 0, len(lines)

    for i, view in enumerate(lines.views):
        if state is SectionState.BEFORE:
            if i == start_marker:
                state = SectionState.IN
                start = i + 1
            continue
        if contains_any(view, strategy.item_end) and not is_discount_line(view, discount_keywords or []):
            state = SectionState.AFTER
            end = i
            break
    return start, max(start, end)


def is_discount_line(view: str, keywords: list[str]) -> bool:
    """Discount keyword present and not a summary line ("INDIRIM TOPLAMI")."""
    if contains_keyword(view, "toplam") or contains_keyword(view, "toplami"):
        return False
    return contains_any(view, keywords)


def _scan_line(scan: _Scanner, raw: str, view: str, discount_keywords: list[str], ruleset: RuleSet) -> None:
    skip_bare = scan.skip_bare_price
    scan.skip_bare_price = False

    if is_discount_line(view, discount_keywords):
        _close_weight(scan, total=None, raw=None)
        scan.clear()
        # the amount is printed on the following line
        scan.skip_bare_price = not find_amounts(raw)
        return

    if contains_any(view, ruleset.keywords.noise):
        return

    m = _WEIGHT.match(raw)
    if m:
        _close_weight(scan, total=None, raw=None)
        name = _clean_name(m.group("name")) or None
        qty = parse_number(m.group("qty")) or 0.0
        unit = parse_amount(m.group("unit")) or 0.0
        if name is None and scan.name:
            name = scan.name
        scan.weight = _PendingWeight(name=name, qty=qty, unit_price=unit, raw=raw)
        if m.group("total"):
            _close_weight(scan, total=parse_amount(m.group("total")), raw=None)
        return

    m = _WEIGHED_TOTAL.match(raw)
    if m:
        _close_weight(scan, total=None, raw=None)
        total = parse_amount(m.group("total"))
        if total is None or total < 0:
            scan.clear()
            return
        name = _clean_name(m.group("name")) or scan.name
        qty = parse_number(m.group("qty")) or 0.0
        unit = round(total / qty, 2) if qty else total
        scan.weight = _PendingWeight(name=name, qty=qty, unit_price=unit, raw=raw)
        _close_weight(scan, total=total, raw=None)
        return

    m = _MULTIPLIER.match(raw)
    if m:
        _close_weight(scan, total=None, raw=None)
        total = parse_amount(m.group("total"))
        n = parse_number(m.group("n")) or 1.0
        if total is not None and total >= 0:
            code, name = _split_code(m.group("name"))
            _emit(scan, name, n, round(total / n, 2) if n else None, total, [raw], code)
        return

    m = _QUANTITY_LINE.match(raw)
    if m:
        _close_weight(scan, total=None, raw=None)
        scan.quantity = _PendingQuantity(
            qty=parse_number(m.group("n")) or 1.0, unit_price=parse_amount(m.group("unit")), raw=raw
        )
        return

    m = _SINGLE_PRICE.match(raw)
    if m:
        _close_weight(scan, total=None, raw=None)
        amount = parse_amount(m.group("amount"))
        if amount is None or amount < 0:
            scan.clear()
            return
        code, name = _split_code(m.group("name"))
        raw_lines = [raw]
        qty, unit_price = 1.0, amount
        if scan.quantity is not None:
            qty, unit_price = scan.quantity.qty, scan.quantity.unit_price
            raw_lines.insert(0, scan.quantity.raw)
        _emit(scan, name, qty, unit_price, amount, raw_lines, code)
        return

    amount = bare_amount(raw)
    if amount is not None:
        if skip_bare or amount < 0:
            _close_weight(scan, total=None, raw=None)
            scan.clear()
            return
        if scan.weight is not None:
            _close_weight(scan, total=amount, raw=raw)
        elif scan.name is not None:
            raw_lines = [scan.name_raw or scan.name]
            qty, unit_price = 1.0, amount
            if scan.quantity is not None:
                qty, unit_price = scan.quantity.qty, scan.quantity.unit_price
                raw_lines.append(scan.quantity.raw)
            raw_lines.append(raw)
            _emit(scan, scan.name, qty, unit_price, amount, raw_lines, scan.code)
        return

    if find_card(raw) or any(p.search(raw) for p in _NOISE_PATTERNS):
        return

    if _HAS_LETTER.search(raw) and len(raw.strip()) > 2:
        _close_weight(scan, total=None, raw=None)
        scan.code, scan.name = _split_code(raw)
        scan.name_raw = raw


def _close_weight(scan: _Scanner, *, total: float | None, raw: str | None) -> None:
    weight = scan.weight
    if weight is None:
        return
    raw_lines = [ln for ln in (scan.name_raw if weight.name == scan.name else None, weight.raw, raw) if ln]
    line_total = total if total is not None else round(weight.qty * weight.unit_price, 2)
    name = weight.name or scan.name or weight.raw
    scan.drafts.append(
        _Draft(
            name=name,
            qty=weight.qty,
            unit_price=weight.unit_price,
            line_total=line_total,
            raw_lines=raw_lines,
            product_code=scan.code if weight.name == scan.name else None,
            weighed=True,
        )
    )
    scan.clear()


def _emit(
    scan: _Scanner,
    name: str,
    qty: float,
    unit_price: float | None,
    total: float,
    raw_lines: list[str],
    code: str | None,
) -> None:
    if name:
        scan.drafts.append(
            _Draft(
                name=name,
                qty=qty,
                unit_price=unit_price,
                line_total=total,
                raw_lines=raw_lines,
                product_code=code,
            )
        )
    scan.clear()


def _split_code(value: str) -> tuple[str | None, str]:
    m = _BARCODE_PREFIX.match(value.strip())
    if m:
        return m.group("code"), _clean_name(value.strip()[m.end() :])
    return None, _clean_name(value)


def _clean_name(value: str) -> str:
    value = _TRAILING_VAT.sub("", value or "")
    return re.sub(r"\s+", " ", value).strip(" *-:")


def group_items(drafts: list[_Draft], ruleset: RuleSet) -> list[LineItem]:
    """Coalesce drafts with the same normalized name and unit, in first-seen order."""
    groups: dict[tuple[str, bool], _Draft] = {}
    for draft in drafts:
        _, _, name_norm = normalize_name(draft.name, ruleset.normalization)
        key = (name_norm or draft.name.casefold(), draft.weighed)
        existing = groups.get(key)
        if existing is None:
            groups[key] = _Draft(
                name=draft.name,
                qty=draft.qty,
                unit_price=draft.unit_price,
                line_total=draft.line_total,
                raw_lines=list(draft.raw_lines),
                product_code=draft.product_code,
                weighed=draft.weighed,
            )
            continue
        existing.qty = round(existing.qty + draft.qty, 3)
        existing.line_total = round(existing.line_total + draft.line_total, 2)
        existing.raw_lines.extend(draft.raw_lines)
        if existing.unit_price != draft.unit_price:
            existing.unit_price = None
        existing.product_code = existing.product_code or draft.product_code

    return [
        LineItem(
            name=d.name,
            qty=f"{d.qty:.3f} KG" if d.weighed else _plain_qty(d.qty),
            unit_price=d.unit_price,
            line_total=round(d.line_total, 2),
            raw_line="\n".join(d.raw_lines),
            product_code=d.product_code,
        )
        for d in groups.values()
    ]


def _plain_qty(qty: float) -> float:
    return round(float(qty), 3)
