from __future__ import annotations

import re
from dataclasses import dataclass

from ..rules.normalization import find_keyword
from .lines import ReceiptLines


@dataclass(frozen=True, slots=True)
class ReceiptIdentifiers:
    receipt_no: str | None = None
    pos_id: str | None = None
    cashier_id: str | None = None


_RECEIPT_LABELS = ["fis no", "belge no", "fis sira no", "sira no"]
_POS_LABELS = ["pos no", "pos id", "terminal no", "terminal id", "t.no"]
_CASHIER_LABELS = ["kasiyer no", "kasiyer"]

_CODE = re.compile(r"^\s*[:#.]?\s*([A-Za-z0-9][A-Za-z0-9/-]*)")
_FREE = re.compile(r"^\s*[:#.]?\s*(.*\S)")


def extract_identifiers(lines: ReceiptLines) -> ReceiptIdentifiers:
    return ReceiptIdentifiers(
        receipt_no=_labelled_value(lines, _RECEIPT_LABELS, _CODE),
        pos_id=_labelled_value(lines, _POS_LABELS, _CODE),
        cashier_id=_labelled_value(lines, _CASHIER_LABELS, _FREE, max_len=40),
    )


def _labelled_value(
    lines: ReceiptLines, labels: list[str], pattern: re.Pattern[str], *, max_len: int = 32
) -> str | None:
    for raw, view in zip(lines.raw, lines.views):
        for label in labels:
            m = find_keyword(view, label)
            if not m:
                continue
            found = pattern.match(raw[m.end() :])
            if found and any(ch.isalnum() for ch in found.group(1)):
                return found.group(1)[:max_len].strip()
    return None
