from hypothesis import given, settings
from hypothesis import strategies as st

from fisoku.classification.format_detector import detect_format
from fisoku.models import Chain
from fisoku.rules.loader import RuleSet

from receipts import BIM, CARREFOURSA, CORNER_SHOP, MIGROS, SOK_SIMPLE


MIGROS_KEYWORDS = ["migros ticaret", "migros", "mersis no", "ortak pos"]


def _text(keywords: list[str]) -> str:
    # a separator line keeps keywords from running into each other
    return "\n--\n".join(keywords)


def test_detects_each_chain(ruleset: RuleSet) -> None:
    assert detect_format(SOK_SIMPLE, ruleset).chain is Chain.SOK
    assert detect_format(MIGROS, ruleset).chain is Chain.MIGROS
    assert detect_format(BIM, ruleset).chain is Chain.BIM
    assert detect_format(CARREFOURSA, ruleset).chain is Chain.CARREFOURSA


def test_confidence_is_matched_over_declared(ruleset: RuleSet) -> None:
    detection = detect_format(MIGROS, ruleset)

    assert detection.confidence == 0.75
    assert sorted(detection.matched) == ["migros", "migros ticaret", "ortak pos"]
    assert detect_format(BIM, ruleset).confidence == 1.0


def test_unknown_when_nothing_matches(ruleset: RuleSet) -> None:
    detection = detect_format(CORNER_SHOP, ruleset)

    assert detection.chain is Chain.UNKNOWN
    assert detection.confidence == 0.0
    assert detect_format("", ruleset).chain is Chain.UNKNOWN


def test_alpha_view_catches_digit_substitutions(ruleset: RuleSet) -> None:
    detection = detect_format("M1GR0S T1CARET A.S.\nORTAK P0S", ruleset)

    assert detection.chain is Chain.MIGROS
    assert "ortak pos" in detection.matched


@settings(max_examples=50, deadline=None)
@given(st.lists(st.booleans(), min_size=len(MIGROS_KEYWORDS), max_size=len(MIGROS_KEYWORDS)))
def test_confidence_is_monotonic_in_matched_keywords(ruleset: RuleSet, mask: list[bool]) -> None:
    subset = [kw for kw, keep in zip(MIGROS_KEYWORDS, mask) if keep]
    base = detect_format(_text(subset), ruleset).confidence

    for extra in MIGROS_KEYWORDS:
        if extra in subset:
            continue
        grown = [kw for kw in MIGROS_KEYWORDS if kw in subset or kw == extra]
        assert detect_format(_text(grown), ruleset).confidence >= base
