from __future__ import annotations

from .loader import RuleSet
from .normalization import clean_text


def match_brand(line: str, ruleset: RuleSet, *, max_distance: int = 2) -> str | None:
    """Map a (possibly OCR-broken) header line to a brand display name.

    Tries, in order: exact match of the squashed line against a variant,
    variant contained in the line, then edit distance <= max_distance.
    """
    squashed = _squash(line)
    if len(squashed) < 3:
        return None

    candidates = _brand_candidates(ruleset)
    for variant, brand in candidates:
        if squashed == variant:
            return brand
    for variant, brand in candidates:
        if len(variant) >= 3 and variant in squashed:
            return brand
    for variant, brand in candidates:
        if len(variant) < 4 or abs(len(squashed) - len(variant)) > max_distance:
            continue
        if levenshtein(squashed, variant) <= max_distance:
            return brand
    return None


def _brand_candidates(ruleset: RuleSet) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    for strategy in ruleset.known_chains:
        brand = strategy.display_name or strategy.chain.value
        for variant in strategy.brand_variants:
            out.append((_squash(variant), brand))
    for merchant in ruleset.merchants.merchants:
        for name in merchant.names:
            out.append((_squash(name), merchant.id))
    # Longer variants first so "carrefoursa" beats "carrefour".
    out.sort(key=lambda pair: len(pair[0]), reverse=True)
    return out


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _squash(value: str) -> str:
    return clean_text(value).replace(" ", "")
