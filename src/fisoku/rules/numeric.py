from __future__ import annotations

import re


# 1.234,56 | 1234,56 | 46.95 | -5,00 ; two decimals, optional thousands dots.
AMOUNT_TOKEN = r"-?\s?(?:\d{1,3}(?:\.\d{3})+|\d+)[.,]\d{2}"
AMOUNT = re.compile(rf"(?<![\d.,])(?P<amount>{AMOUNT_TOKEN})(?!\d|[.,]\d)")

_BARE = re.compile(rf"^\s*\*?\s*(?P<amount>{AMOUNT_TOKEN})\s*(?:TL|TRY|₺)?\s*$", re.IGNORECASE)
_CURRENCY = re.compile(r"₺|\bTL\b|\bTRY\b", re.IGNORECASE)
_THOUSANDS_COMMA = re.compile(r"^-?\d{1,3}(?:\.\d{3})+,\d{2}$")
_PLAIN = re.compile(r"^-?\d+(?:[.,]\d+)?$")
_QTY_UNIT = re.compile(
    r"(?P<qty>\d+(?:[.,]\d+)?)\s*(?P<unit>adet|kg|gr|g|lt|l|ml|cl|pk|paket|kutu)?\b",
    re.IGNORECASE,
)


def parse_amount(value: str) -> float | None:
    """Parse a Turkish-formatted money string: "46,95", "₺12,00", "1.234,56 TL", "*-5,00"."""
    if not value:
        return None
    s = _CURRENCY.sub("", value)
    s = s.replace("*", "").replace(" ", "").strip()
    if not s:
        return None

    if _THOUSANDS_COMMA.match(s):
        s = s.replace(".", "").replace(",", ".")
    elif "," in s and "." in s:
        # 1,234.56
        s = s.replace(",", "")
    else:
        s = s.replace(",", ".")

    if not _PLAIN.match(s):
        return None
    try:
        return round(float(s), 2)
    except ValueError:
        return None


def find_amounts(line: str) -> list[float]:
    out = []
    for m in AMOUNT.finditer(line):
        value = parse_amount(m.group("amount"))
        if value is not None:
            out.append(value)
    return out


def bare_amount(line: str) -> float | None:
    """Amount of a line that holds nothing else: "*134,75", "-5,00", "12,00 TL"."""
    m = _BARE.match(line or "")
    return parse_amount(m.group("amount")) if m else None


def is_money(value: str) -> bool:
    s = _CURRENCY.sub("", value or "").replace("*", "").strip()
    if not s:
        return False
    return re.fullmatch(AMOUNT_TOKEN, s) is not None


def parse_quantity_unit(value: str) -> tuple[float | None, str | None]:
    m = _QTY_UNIT.search(value or "")
    if not m:
        return None, None
    qty = parse_number(m.group("qty"))
    unit = m.group("unit").lower() if m.group("unit") else None
    return qty, unit


def parse_number(value: str) -> float | None:
    value = value.strip().replace(",", ".")
    try:
        return float(value)
    except ValueError:
        return None
