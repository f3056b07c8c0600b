import pytest

from fisoku.rules.numeric import bare_amount, find_amounts, is_money, parse_amount, parse_quantity_unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("46,95", 46.95),
        ("₺12,00", 12.0),
        ("1.234,56", 1234.56),
        ("123,50 TL", 123.5),
        ("*-5,00", -5.0),
        ("46.95", 46.95),
        ("1,234.56", 1234.56),
    ],
)
def test_parse_amount_turkish_formats(raw: str, expected: float) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "TL", "12,3,4"])
def test_parse_amount_rejects_garbage(raw: str) -> None:
    assert parse_amount(raw) is None


def test_find_amounts_skips_dates_weights_and_card_numbers() -> None:
    assert find_amounts("TARİH: 09.01.2025") == []
    assert find_amounts("0.550 KG x 245,00 TL/KG *134,75") == [245.0, 134.75]
    assert find_amounts("#521824******9016") == []
    assert find_amounts("TOPLAM *1.234,56") == [1234.56]


def test_bare_amount_only_for_amount_only_lines() -> None:
    assert bare_amount("*134,75") == 134.75
    assert bare_amount("*-5,00") == -5.0
    assert bare_amount("12,00 TL") == 12.0
    assert bare_amount("EKMEK *3,00") is None


def test_is_money_and_quantity_unit() -> None:
    assert is_money("*4,25")
    assert not is_money("4,2")
    assert parse_quantity_unit("1,5 kg") == (1.5, "kg")
    assert parse_quantity_unit("2 adet") == (2.0, "adet")
