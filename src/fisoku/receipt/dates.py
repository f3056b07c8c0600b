from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from ..rules.normalization import find_keyword
from .lines import ReceiptLines


@dataclass(frozen=True, slots=True)
class DateTimeResult:
    date: str | None
    time: str | None
    date_strategy: str | None = None
    time_strategy: str | None = None
    warnings: list[str] = field(default_factory=list)


_DATE = re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4}|\d{2})(?!\d)")
_BARE_DATE = re.compile(r"(?<!\d)(\d{1,2})[./-](\d{1,2})[./-](\d{4})(?!\d)")
_ISO_DATE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
_LABELLED_TIME = re.compile(r"(?<!\d)(\d{1,2})[:.](\d{2})(?::\d{2})?(?:\s*([AaPp])\.?\s?[Mm]\.?)?(?![\d])")
_BARE_TIME = re.compile(r"(?<!\d)([01]?\d|2[0-3]):([0-5]\d)(?!\d)")

_DATE_LABEL = "tarih"
_TIME_LABEL = "saat"


def extract_datetime(lines: ReceiptLines) -> DateTimeResult:
    d, d_strategy = _combined(lines)
    t, t_strategy = _combined_time(lines)

    if d is None:
        d = _labelled(lines, _DATE_LABEL, _first_date)
        d_strategy = "labelled" if d else None
    if t is None:
        t = _labelled(lines, _TIME_LABEL, _first_labelled_time)
        t_strategy = "labelled" if t else None

    if d is None:
        d = _bare_date(lines)
        d_strategy = "bare" if d else None
    if t is None:
        t = _bare_time(lines)
        t_strategy = "bare" if t else None

    warnings = []
    if d is None:
        warnings.append("Purchase date not found")
    if t is None:
        warnings.append("Purchase time not found")
    return DateTimeResult(date=d, time=t, date_strategy=d_strategy, time_strategy=t_strategy, warnings=warnings)


def _combined(lines: ReceiptLines) -> tuple[str | None, str | None]:
    for raw, view in zip(lines.raw, lines.views):
        d_label = find_keyword(view, _DATE_LABEL)
        t_label = find_keyword(view, _TIME_LABEL)
        if not d_label or not t_label or t_label.start() < d_label.end():
            continue
        d = _first_date(raw[d_label.end() : t_label.start()])
        if d:
            return d, "combined"
    return None, None


def _combined_time(lines: ReceiptLines) -> tuple[str | None, str | None]:
    for raw, view in zip(lines.raw, lines.views):
        d_label = find_keyword(view, _DATE_LABEL)
        t_label = find_keyword(view, _TIME_LABEL)
        if not d_label or not t_label or t_label.start() < d_label.end():
            continue
        t = _first_labelled_time(raw[t_label.end() :])
        if t:
            return t, "combined"
    return None, None


def _labelled(lines: ReceiptLines, label: str, parse) -> str | None:
    for i, (raw, view) in enumerate(zip(lines.raw, lines.views)):
        m = find_keyword(view, label)
        if not m:
            continue
        value = parse(raw[m.end() :])
        if value is None and i + 1 < len(lines):
            # label printed alone, value on the next line
            value = parse(lines.raw[i + 1])
        if value:
            return value
    return None


def _bare_date(lines: ReceiptLines) -> str | None:
    for raw in lines.raw:
        for m in _BARE_DATE.finditer(raw):
            value = _format_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
            if value:
                return value
        for m in _ISO_DATE.finditer(raw):
            value = _format_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
            if value:
                return value
    return None


def _bare_time(lines: ReceiptLines) -> str | None:
    for raw in lines.raw:
        m = _BARE_TIME.search(raw)
        if m:
            return f"{int(m.group(1)):02d}:{m.group(2)}"
    return None


def _first_date(fragment: str) -> str | None:
    for m in _DATE.finditer(fragment):
        year = int(m.group(3))
        if len(m.group(3)) == 2:
            year += 2000
        value = _format_date(int(m.group(1)), int(m.group(2)), year)
        if value:
            return value
    return None


def _first_labelled_time(fragment: str) -> str | None:
    for m in _LABELLED_TIME.finditer(fragment):
        value = to_24h(int(m.group(1)), int(m.group(2)), m.group(3))
        if value:
            return value
    return None


def to_24h(hour: int, minute: int, meridiem: str | None = None) -> str | None:
    if meridiem:
        pm = meridiem.upper() == "P"
        if hour < 1 or hour > 12:
            if not (pm and hour > 12):
                return None
        elif pm and hour != 12:
            hour += 12
        elif not pm and hour == 12:
            hour = 0
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return f"{hour:02d}:{minute:02d}"


def _format_date(day: int, month: int, year: int) -> str | None:
    try:
        date(year, month, day)
    except ValueError:
        return None
    return f"{day:02d}/{month:02d}/{year:04d}"
