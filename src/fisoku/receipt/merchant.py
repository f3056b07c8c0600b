from __future__ import annotations

import re
from dataclasses import dataclass, field

from ..models import AddressParsed, Chain
from ..rules.loader import ChainStrategy, RuleSet
from ..rules.merchants import match_brand
from ..rules.normalization import contains_any, find_keyword, fold_turkish
from .lines import ReceiptLines


@dataclass(frozen=True, slots=True)
class MerchantResult:
    name: str | None
    branch: str | None = None
    address_full: str | None = None
    address_parsed: AddressParsed = field(default_factory=AddressParsed)
    tax_id: str | None = None
    phone: str | None = None
    warnings: list[str] = field(default_factory=list)


_HEADER_FALLBACK = 10
_NAME_SCAN = 5

_STORE_CODE = re.compile(r"^(\d{3,5})\s*-\s*(?=\S)")
_TAX_ID = re.compile(r"(?<!\d)(\d{10,11})(?!\d)")
_MERSIS = re.compile(r"(?<!\d)(\d{16})(?!\d)")
_PHONE = re.compile(r"(\+?\d[\d\s()/-]{7,}\d)")
_LETTER = re.compile(r"[A-Za-zÇĞİÖŞÜçğıöşü]")

_NEIGHBORHOOD_WORDS = {"mah", "mahalle", "mahallesi", "mh"}
_STREET_WORDS = {
    "cad", "cadde", "caddesi", "cd",
    "sok", "sokak", "sokagi", "sk",
    "bulv", "bulvar", "bulvari", "blv",
}
_TAX_LABELS = ["v.d", "vd", "vkn", "vergi no", "vergi dairesi", "vergi"]
_PHONE_LABELS = ["tel", "telefon"]


def extract_merchant(lines: ReceiptLines, strategy: ChainStrategy, ruleset: RuleSet) -> MerchantResult:
    header_end = _header_end(lines, strategy)
    kw = ruleset.keywords

    warnings: list[str] = []
    name_index: int | None = None
    name = strategy.display_name if strategy.chain is not Chain.UNKNOWN else None
    if name is None:
        name, name_index = _name_from_lines(lines, header_end, ruleset)
        if name is None:
            warnings.append("Merchant name not found")
    else:
        name_index = 0 if lines.raw else None

    address_lines: list[str] = []
    branch: str | None = None
    for i in range(header_end):
        raw, view = lines.raw[i], lines.views[i]
        code = _STORE_CODE.match(raw)
        if code and branch is None:
            branch = code.group(1)
            raw = raw[code.end() :]
            view = view[code.end() :]
        if contains_any(view, kw.address_exclude):
            continue
        if _is_address_line(view, kw.address_markers, kw.cities):
            address_lines.append(raw)
            continue
        if branch is None and i != name_index and contains_any(view, kw.branch):
            branch = raw

    address_full = ", ".join(address_lines) if address_lines else None
    return MerchantResult(
        name=name,
        branch=branch,
        address_full=address_full,
        address_parsed=parse_address(address_full or "", kw.cities),
        tax_id=_tax_id(lines),
        phone=_phone(lines),
        warnings=warnings,
    )


def _header_end(lines: ReceiptLines, strategy: ChainStrategy) -> int:
    start = lines.first_index(strategy.item_start)
    if start is not None:
        return start
    return min(len(lines), _HEADER_FALLBACK)


def _name_from_lines(lines: ReceiptLines, header_end: int, ruleset: RuleSet) -> tuple[str | None, int | None]:
    scan = min(max(header_end, 1), _NAME_SCAN, len(lines))
    for i in range(scan):
        brand = match_brand(lines.raw[i], ruleset)
        if brand:
            return brand, i

    kw = ruleset.keywords
    for i in range(scan):
        raw, view = lines.raw[i], lines.views[i]
        if raw[:1].isdigit() or _is_address_line(view, kw.address_markers, kw.cities):
            continue
        if len(raw) > 3 and _LETTER.search(raw):
            cleaned = clean_merchant_name(raw, kw.legal_suffixes)
            if cleaned:
                return cleaned, i
    return None, None


def clean_merchant_name(name: str, legal_suffixes: list[str]) -> str:
    words = name.split()
    while words and fold_turkish(words[-1]).rstrip(".") in {s.rstrip(".") for s in legal_suffixes}:
        words.pop()
    return " ".join(words).strip(" -.,")


def _is_address_line(view: str, markers: list[str], cities: list[str]) -> bool:
    return contains_any(view, markers) or contains_any(view, cities)


def parse_address(address: str, cities: list[str]) -> AddressParsed:
    """Split an address into neighborhood, street, district and city.

    Works word by word on the folded text and slices the original by the same
    spans, so the parsed parts keep their Turkish spelling.
    """
    if not address:
        return AddressParsed()
    folded = fold_turkish(address)
    words = [(m.start(), m.end()) for m in re.finditer(r"[^\s,]+", folded)]

    neighborhood = street = district = city = None
    segment_start: int | None = None
    for start, end in words:
        word = folded[start:end].rstrip(".")
        if word in _NEIGHBORHOOD_WORDS:
            if segment_start is not None and neighborhood is None:
                neighborhood = address[segment_start:start].strip(" ,-")
            segment_start = None
            continue
        if word in _STREET_WORDS:
            if segment_start is not None and street is None:
                street = address[segment_start:start].strip(" ,-")
            segment_start = None
            continue
        if "/" in word:
            left, _, right = word.partition("/")
            if right in cities:
                slash = start + len(left)
                city = address[slash + 1 : end].strip(" ,.")
                if left and not any(ch.isdigit() for ch in left):
                    district = address[start:slash].strip(" ,.")
                segment_start = None
                continue
        if word in cities and city is None:
            city = address[start:end].strip(" ,.")
            segment_start = None
            continue
        if any(ch.isdigit() for ch in word) or word.startswith("no"):
            segment_start = None
            continue
        if segment_start is None:
            segment_start = start

    return AddressParsed(
        street=street or None,
        neighborhood=neighborhood or None,
        district=district or None,
        city=city or None,
    )


def _tax_id(lines: ReceiptLines) -> str | None:
    for raw, view in zip(lines.raw, lines.views):
        for label in _TAX_LABELS:
            m = find_keyword(view, label)
            if not m:
                continue
            found = _TAX_ID.search(raw[m.end() :])
            if found:
                return found.group(1)
    for raw, view in zip(lines.raw, lines.views):
        m = find_keyword(view, "mersis")
        if m:
            found = _MERSIS.search(raw[m.end() :].replace(" ", ""))
            if found:
                return found.group(1)
    return None


def _phone(lines: ReceiptLines) -> str | None:
    for raw, view in zip(lines.raw, lines.views):
        for label in _PHONE_LABELS:
            m = find_keyword(view, label)
            if not m:
                continue
            found = _PHONE.search(raw[m.end() :])
            if found:
                return re.sub(r"\s+", " ", found.group(1)).strip()
    return None
