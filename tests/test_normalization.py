from fisoku.rules.loader import NormalizationRules
from fisoku.rules.normalization import (
    alpha_normalize,
    contains_keyword,
    fold_turkish,
    keyword_view,
    normalize_name,
    normalize_text,
)


def test_normalize_name_applies_stopwords_and_synonyms() -> None:
    rules = NormalizationRules(
        stopwords={"adet", "tl"},
        synonyms={"cikolatasi": "cikolata"},
    )

    name_clean, tokens, name_norm = normalize_name("ÜLKER ÇİKOLATASI 2 ADET", rules)

    assert name_clean == "ulker cikolata 2 adet"
    assert tokens == ["ulker", "cikolata", "2"]
    assert name_norm == "ulker_cikolata_2"


def test_fold_turkish_maps_letters_and_preserves_length() -> None:
    raw = "İĞNE ŞİŞ ÇÖP ÜZÜM ıIi"
    folded = fold_turkish(raw)

    assert folded == "igne sis cop uzum iii"
    assert len(folded) == len(raw)


def test_normalize_text_canonicalizes_chain_misspellings() -> None:
    rules = NormalizationRules(stopwords=set(), synonyms={"m1gros": "migros", "carref0ur": "carrefour"})

    out = normalize_text("M1GROS  TİCARET\n\nCARREF0UR SA", rules)

    assert out == "migros ticaret\ncarrefour sa"


def test_alpha_normalize_only_touches_ambiguous_digits() -> None:
    assert alpha_normalize("M1GR0S 5OK B8M 2347") == "MIGROS SOK BBM 2347"


def test_keyword_view_recovers_ocr_broken_keywords() -> None:
    assert contains_keyword(keyword_view("T0PLAM *12,50"), "toplam")
    assert contains_keyword(keyword_view("ŞOK MARKETLER"), "sok marketler")


def test_contains_keyword_respects_word_boundaries() -> None:
    assert contains_keyword("ara toplam *10,00", "toplam")
    assert not contains_keyword("indirim toplami", "toplam")
    assert not contains_keyword("topkdv *1,20", "kdv")
    assert contains_keyword("toplam  kdv", "toplam kdv")
