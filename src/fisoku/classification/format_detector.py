from __future__ import annotations

from loguru import logger

from ..models import Chain, FormatDetection
from ..rules.loader import RuleSet
from ..rules.normalization import alpha_normalize, contains_keyword, normalize_text


def detect_format(text: str, ruleset: RuleSet) -> FormatDetection:
    """Score the text against each chain's discriminative keywords.

    confidence = matched keywords / declared keywords for that chain. The best
    chain wins, ties go to the earlier declaration. Nothing matched -> Unknown.
    """
    normalized = normalize_text(text, ruleset.normalization)
    if not normalized:
        return FormatDetection(chain=Chain.UNKNOWN, confidence=0.0)
    alpha_view = normalize_text(alpha_normalize(text), ruleset.normalization)

    best: FormatDetection | None = None
    for strategy in ruleset.known_chains:
        if not strategy.detect:
            continue
        matched = [
            kw
            for kw in strategy.detect
            if contains_keyword(normalized, kw) or contains_keyword(alpha_view, kw)
        ]
        score = len(matched) / len(strategy.detect)
        logger.trace("format {}: {}/{} {}", strategy.chain.value, len(matched), len(strategy.detect), matched)
        if score > 0 and (best is None or score > best.confidence):
            best = FormatDetection(chain=strategy.chain, confidence=score, matched=matched)

    if best is None:
        return FormatDetection(chain=Chain.UNKNOWN, confidence=0.0)
    logger.debug("detected format {} ({:.2f})", best.chain.value, best.confidence)
    return best
