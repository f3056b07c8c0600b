from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Chain(str, Enum):
    MIGROS = "Migros"
    BIM = "Bim"
    SOK = "Sok"
    CARREFOURSA = "CarrefourSA"
    UNKNOWN = "Unknown"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    UNKNOWN = "Unknown"


class TotalSource(str, Enum):
    PRINTED = "printed"
    MAX_AMOUNT = "max_amount"
    COMPUTED = "computed"


class FormatDetection(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain: Chain = Chain.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matched: tuple[str, ...] = ()


class AddressParsed(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str | None = None
    neighborhood: str | None = None
    district: str | None = None
    city: str | None = None


class MerchantInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    branch: str | None = None
    address_full: str | None = None
    address_parsed: AddressParsed = Field(default_factory=AddressParsed)
    tax_id: str | None = None
    phone: str | None = None


class ReceiptMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str | None = None
    time: str | None = None
    receipt_no: str | None = None
    pos_id: str | None = None
    cashier_id: str | None = None
    payment_method: PaymentMethod = PaymentMethod.UNKNOWN
    card_last4_masked: str | None = None
    card_last4: str | None = None
    card_scheme: str | None = None

    @model_validator(mode="after")
    def _card_fields_need_card(self) -> "ReceiptMeta":
        has_card_fields = any([self.card_last4_masked, self.card_last4, self.card_scheme])
        if has_card_fields and self.payment_method is not PaymentMethod.CARD:
            raise ValueError("card details are only valid for card payments")
        return self


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    qty: float | str
    unit_price: float | None = None
    line_total: float
    raw_line: str
    product_code: str | None = None


class Discount(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    amount: float

    @field_validator("amount")
    @classmethod
    def _non_positive(cls, value: float) -> float:
        if value > 0:
            raise ValueError("discount amount must be <= 0")
        return value


class VatLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    rate: float
    amount: float


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: float | None = None
    vat_total: float | None = None
    vat_breakdown: tuple[VatLine, ...] = ()
    grand_total: float | None = None
    grand_total_source: TotalSource | None = None


class ComputedTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    items_sum: float
    discounts_sum: float
    computed_total: float
    difference: float | None = None
    tolerance: float
    reconciles: bool


class SourceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    format_detected: Chain = Chain.UNKNOWN
    confidence: float = 0.0
    warnings: tuple[str, ...] = ()


class ParseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchant: MerchantInfo
    receipt: ReceiptMeta
    items: tuple[LineItem, ...]
    discounts: tuple[Discount, ...]
    totals: Totals
    computed_totals: ComputedTotals
    source: SourceInfo
    raw_text: str


class OcrErrorResponse(BaseModel):
    success: bool = False
    error: str
    source: SourceInfo = Field(default_factory=SourceInfo)
