from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

from .loader import NormalizationRules


_TURKISH_FOLD = str.maketrans(
    {
        "İ": "i",
        "I": "i",
        "ı": "i",
        "Ğ": "g",
        "ğ": "g",
        "Ş": "s",
        "ş": "s",
        "Ç": "c",
        "ç": "c",
        "Ö": "o",
        "ö": "o",
        "Ü": "u",
        "ü": "u",
    }
)

# Digits OCR commonly produces in place of letters. Keyword detection only.
_ALPHA_FOLD = str.maketrans({"0": "O", "1": "I", "5": "S", "8": "B"})

_NON_ALNUM = re.compile(r"[^0-9a-zA-Z]+")
_WS = re.compile(r"\s+")


def fold_turkish(value: str) -> str:
    """Lowercase and map Turkish letters to ASCII, one character in, one out.

    The output has the same length as the input, so a match position found in
    the folded text addresses the same characters of the original.
    """
    folded = value.translate(_TURKISH_FOLD)
    out = []
    for ch in folded:
        low = ch.lower()
        out.append(low if len(low) == 1 else ch)
    return "".join(out)


def alpha_normalize(value: str) -> str:
    return value.translate(_ALPHA_FOLD)


def keyword_view(line: str) -> str:
    """Folded, alpha-normalized view of a line for keyword and marker matching.

    Never parse amounts out of this view.
    """
    return fold_turkish(alpha_normalize(line))


def normalize_text(text: str, rules: NormalizationRules) -> str:
    """Fold the whole text and canonicalize known misspellings of chain names."""
    lines = []
    for line in text.splitlines():
        folded = _WS.sub(" ", fold_turkish(line)).strip()
        if folded:
            lines.append(_apply_synonyms_raw(folded, rules))
    return "\n".join(lines)


def contains_keyword(view: str, keyword: str) -> bool:
    return _keyword_pattern(keyword).search(view) is not None


def find_keyword(view: str, keyword: str) -> re.Match[str] | None:
    return _keyword_pattern(keyword).search(view)


def contains_any(view: str, keywords: list[str]) -> bool:
    return any(contains_keyword(view, kw) for kw in keywords)


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    parts = [re.escape(p) for p in keyword.split() if p]
    body = r"\s*".join(parts)
    return re.compile(rf"(?<![a-z0-9]){body}(?![a-z0-9])")


def clean_text(value: str) -> str:
    value = fold_turkish(value)
    value = unicodedata.normalize("NFKD", value)
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = _NON_ALNUM.sub(" ", value)
    value = _WS.sub(" ", value).strip()
    return value


def tokenize(clean_value: str) -> list[str]:
    if not clean_value:
        return []
    return [t for t in clean_value.split(" ") if t]


def normalize_name(name_raw: str, rules: NormalizationRules) -> tuple[str, list[str], str]:
    name_clean = clean_text(name_raw)
    name_clean = _apply_synonyms(name_clean, rules)
    tokens = tokenize(name_clean)

    tokens = [t for t in tokens if t not in rules.stopwords]

    name_norm = "_".join(tokens) if tokens else ""
    return name_clean, tokens, name_norm


def _apply_synonyms(name_clean: str, rules: NormalizationRules) -> str:
    out = name_clean
    for raw_key, raw_value in rules.synonyms.items():
        key = clean_text(raw_key)
        value = clean_text(raw_value)
        if not key or not value:
            continue
        key_parts = [re.escape(p) for p in key.split(" ") if p]
        if not key_parts:
            continue
        sep = r"\s+"
        pattern = rf"\b{sep.join(key_parts)}\b"
        out = re.sub(pattern, value, out)
    out = _WS.sub(" ", out).strip()
    return out


def _apply_synonyms_raw(folded: str, rules: NormalizationRules) -> str:
    out = folded
    for raw_key, raw_value in rules.synonyms.items():
        key = fold_turkish(raw_key).strip()
        if not key:
            continue
        out = re.sub(rf"(?<![a-z0-9]){re.escape(key)}(?![a-z0-9])", fold_turkish(raw_value), out)
    return out
