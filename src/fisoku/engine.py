from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from .models import (
    Chain,
    MerchantInfo,
    ParseResult,
    ReceiptMeta,
    SourceInfo,
    TotalSource,
    Totals,
)
from .project_paths import ProjectPaths
from .receipt.parser_tr_v1 import ParsedReceipt, parse_receipt_text
from .receipt.reconcile import Reconciliation, reconcile
from .rules.loader import RuleSet


@dataclass(frozen=True, slots=True)
class ReceiptEngine:
    ruleset: RuleSet

    @classmethod
    def from_rules_dir(cls, rules_dir: Path | None = None) -> "ReceiptEngine":
        rules_dir = rules_dir or ProjectPaths.detect().rules_dir
        return cls(RuleSet.load_from_dir(rules_dir))

    def parse_text(self, text: str) -> ParseResult:
        parsed = parse_receipt_text(text, self.ruleset)
        rec = reconcile(parsed.items, parsed.discounts, parsed.totals.grand_total, parsed.totals.source)

        result = ParseResult(
            merchant=_merchant(parsed),
            receipt=_receipt_meta(parsed),
            items=parsed.items,
            discounts=parsed.discounts,
            totals=Totals(
                subtotal=parsed.totals.subtotal,
                vat_total=parsed.totals.vat_total,
                vat_breakdown=parsed.totals.vat_breakdown,
                grand_total=rec.grand_total,
                grand_total_source=rec.source,
            ),
            computed_totals=rec.computed,
            source=SourceInfo(
                format_detected=parsed.detection.chain,
                confidence=round(parsed.detection.confidence, 2),
                warnings=_warnings(parsed, rec),
            ),
            raw_text=text,
        )
        logger.debug(
            "parsed {} receipt: {} items, total {} ({}), {} warnings",
            result.source.format_detected.value,
            len(result.items),
            result.totals.grand_total,
            result.totals.grand_total_source,
            len(result.source.warnings),
        )
        return result


def _merchant(parsed: ParsedReceipt) -> MerchantInfo:
    m = parsed.merchant
    return MerchantInfo(
        name=m.name,
        branch=m.branch,
        address_full=m.address_full,
        address_parsed=m.address_parsed,
        tax_id=m.tax_id,
        phone=m.phone,
    )


def _receipt_meta(parsed: ParsedReceipt) -> ReceiptMeta:
    card = parsed.payment.card
    return ReceiptMeta(
        date=parsed.datetime.date,
        time=parsed.datetime.time,
        receipt_no=parsed.identifiers.receipt_no,
        pos_id=parsed.identifiers.pos_id,
        cashier_id=parsed.identifiers.cashier_id,
        payment_method=parsed.payment.method,
        card_last4_masked=card.masked if card else None,
        card_last4=card.last4 if card else None,
        card_scheme=card.scheme if card else None,
    )


def _warnings(parsed: ParsedReceipt, rec: Reconciliation) -> list[str]:
    warnings: list[str] = []
    if parsed.detection.chain is Chain.UNKNOWN:
        warnings.append("Receipt format not recognized")
    warnings.extend(parsed.merchant.warnings)
    warnings.extend(parsed.datetime.warnings)

    if not parsed.items:
        warnings.append("No items extracted")

    if parsed.totals.grand_total is None:
        warnings.append("Grand total not found")
    elif parsed.totals.source is TotalSource.MAX_AMOUNT and rec.source is TotalSource.MAX_AMOUNT:
        warnings.append("Grand total taken from the largest amount on the receipt")
    if rec.source is TotalSource.COMPUTED:
        warnings.append("Grand total computed from items and discounts")

    computed = rec.computed
    if not computed.reconciles:
        if parsed.totals.grand_total is None:
            warnings.append("Totals do not reconcile: no total to compare against")
        else:
            warnings.append(
                f"Totals do not reconcile: computed {computed.computed_total:.2f}"
                f" vs extracted {parsed.totals.grand_total:.2f}"
            )
    return warnings
