import pytest

from fisoku.models import Chain, PaymentMethod
from fisoku.receipt.lines import ReceiptLines
from fisoku.receipt.payment import card_scheme, extract_payment, find_card
from fisoku.rules.loader import RuleSet

from receipts import BIM, CARREFOURSA, CORNER_SHOP, MIGROS, SOK_SIMPLE


def _payment(text: str, ruleset: RuleSet, chain: Chain):
    return extract_payment(ReceiptLines.from_text(text), ruleset.strategy_for(chain), ruleset)


@pytest.mark.parametrize(
    ("line", "last4", "bin_digits"),
    [
        ("521824******9016", "9016", "521824"),
        ("#521824******9016 TEK POS", "9016", "521824"),
        ("494314******4645 ORTAK POS", "4645", "494314"),
        ("KART NO: XXXX XXXX XXXX 1234", "1234", None),
        ("**********5678", "5678", None),
    ],
)
def test_find_card_masks(line: str, last4: str, bin_digits: str | None) -> None:
    card = find_card(line)

    assert card is not None
    assert card.last4 == last4
    assert card.bin == bin_digits
    assert card.masked == f"---{last4}"


def test_find_card_ignores_plain_numbers() -> None:
    assert find_card("ONAY KODU: 789456") is None
    assert find_card("8690504012345") is None


@pytest.mark.parametrize(
    ("bin_digits", "scheme"),
    [
        ("494314", "Visa"),
        ("521824", "Mastercard"),
        ("222100", "Mastercard"),
        ("979200", "Troy"),
        ("374245", "Amex"),
        ("601100", "Discover"),
        ("123456", None),
        (None, None),
    ],
)
def test_card_scheme(bin_digits: str | None, scheme: str | None) -> None:
    assert card_scheme(bin_digits) == scheme


def test_card_next_to_pos_anchor(ruleset: RuleSet) -> None:
    sok = _payment(SOK_SIMPLE, ruleset, Chain.SOK)
    assert sok.method is PaymentMethod.CARD
    assert (sok.card.last4, sok.card.scheme, sok.strategy) == ("9016", "Mastercard", "anchor")

    migros = _payment(MIGROS, ruleset, Chain.MIGROS)
    assert (migros.card.last4, migros.card.scheme) == ("4645", "Visa")


def test_card_printed_before_total(ruleset: RuleSet) -> None:
    payment = _payment(CARREFOURSA, ruleset, Chain.CARREFOURSA)

    assert payment.method is PaymentMethod.CARD
    assert payment.card.last4 == "1234"
    assert payment.strategy == "before_total"


def test_cash_receipts(ruleset: RuleSet) -> None:
    assert _payment(BIM, ruleset, Chain.BIM).method is PaymentMethod.CASH
    assert _payment(CORNER_SHOP, ruleset, Chain.UNKNOWN).method is PaymentMethod.CASH


def test_cash_keyword_drops_card_details(ruleset: RuleSet) -> None:
    payment = _payment("NAKİT *50,00\n521824******9016", ruleset, Chain.UNKNOWN)

    assert payment.method is PaymentMethod.CASH
    assert payment.card is None


def test_card_keyword_without_number(ruleset: RuleSet) -> None:
    payment = _payment("KREDİ KARTI\nTOPLAM *10,00", ruleset, Chain.UNKNOWN)

    assert payment.method is PaymentMethod.CARD
    assert payment.card is None


def test_unknown_payment(ruleset: RuleSet) -> None:
    assert _payment("EKMEK *3,00", ruleset, Chain.UNKNOWN).method is PaymentMethod.UNKNOWN
