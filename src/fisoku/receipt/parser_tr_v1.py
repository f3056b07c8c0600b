from __future__ import annotations

from dataclasses import dataclass

from ..classification.format_detector import detect_format
from ..models import Discount, FormatDetection, LineItem
from ..rules.loader import ChainStrategy, RuleSet
from .dates import DateTimeResult, extract_datetime
from .discounts import extract_discounts
from .identifiers import ReceiptIdentifiers, extract_identifiers
from .items import extract_items
from .lines import ReceiptLines
from .merchant import MerchantResult, extract_merchant
from .payment import PaymentResult, extract_payment
from .totals import TotalsResult, extract_totals


@dataclass(frozen=True, slots=True)
class ParsedReceipt:
    detection: FormatDetection
    strategy: ChainStrategy
    merchant: MerchantResult
    datetime: DateTimeResult
    identifiers: ReceiptIdentifiers
    payment: PaymentResult
    items: list[LineItem]
    discounts: list[Discount]
    totals: TotalsResult


def parse_receipt_text(text: str, ruleset: RuleSet) -> ParsedReceipt:
    detection = detect_format(text, ruleset)
    strategy = ruleset.strategy_for(detection.chain)
    lines = ReceiptLines.from_text(text)

    return ParsedReceipt(
        detection=detection,
        strategy=strategy,
        merchant=extract_merchant(lines, strategy, ruleset),
        datetime=extract_datetime(lines),
        identifiers=extract_identifiers(lines),
        payment=extract_payment(lines, strategy, ruleset),
        items=extract_items(lines, strategy, ruleset),
        discounts=extract_discounts(lines, strategy, ruleset),
        totals=extract_totals(lines, strategy),
    )
