from __future__ import annotations

from dataclasses import dataclass

from ..rules.normalization import contains_any, keyword_view


@dataclass(frozen=True, slots=True)
class ReceiptLines:
    """Non-empty, stripped receipt lines paired with their keyword views.

    `raw[i]` is the original text (amounts are parsed from here); `views[i]`
    is the folded, alpha-normalized text used for keyword checks only.
    """

    raw: list[str]
    views: list[str]

    @classmethod
    def from_text(cls, text: str) -> "ReceiptLines":
        raw = [ln.strip() for ln in text.splitlines()]
        raw = [ln for ln in raw if ln]
        return cls(raw=raw, views=[keyword_view(ln) for ln in raw])

    def __len__(self) -> int:
        return len(self.raw)

    def first_index(self, keywords: list[str], *, start: int = 0) -> int | None:
        for i in range(start, len(self.views)):
            if contains_any(self.views[i], keywords):
                return i
        return None

    def last_index(self, keywords: list[str]) -> int | None:
        for i in range(len(self.views) - 1, -1, -1):
            if contains_any(self.views[i], keywords):
                return i
        return None
