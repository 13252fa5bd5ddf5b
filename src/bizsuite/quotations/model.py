from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_CURRENCY, INVOICE_DUE_DAYS, QUOTATION_PREFIX
from ..core.enums import InvoiceStatus, QuotationStatus
from ..core.party import PartyRef
from ..core.result import Result, invalid_transition, ok, validation_failed

ZERO = Decimal("0.00")
OPEN_STATUSES = (QuotationStatus.DRAFT, QuotationStatus.SENT)


def to_money(value) -> Decimal:
    """Quantize to 2 decimal places with HALF_UP rounding."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def generate_quotation_number(last_number: Optional[str], *, today: date, prefix: str = QUOTATION_PREFIX) -> str:
    """Next ``QUO-YYYYMM-NNNN`` number; the sequence restarts every month."""
    period = f"{prefix}-{today:%Y%m}-"
    sequence = 1
    if last_number and last_number.startswith(period):
        sequence = int(last_number[-4:]) + 1
    return f"{period}{sequence:04d}"


@dataclass(frozen=True)
class QuotationItem:
    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return to_money(Decimal(self.quantity) * Decimal(self.unit_price))


@dataclass(frozen=True)
class Invoice:
    invoice_id: int
    billable: PartyRef
    owner_id: Optional[int]
    issue_date: date
    due_date: date
    items: tuple[QuotationItem, ...] = ()
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    currency: str = DEFAULT_CURRENCY
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: Optional[str] = None
    terms: Optional[str] = None
    quotation_id: Optional[int] = None


@dataclass(frozen=True)
class Quotation:
    quotation_id: int
    quotation_number: str
    owner_id: Optional[int]
    issue_date: date
    expiry_date: date
    lead_id: Optional[int] = None
    client_id: Optional[int] = None
    items: tuple[QuotationItem, ...] = ()
    tax_rate: Decimal = ZERO
    discount_amount: Decimal = ZERO
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    currency: str = DEFAULT_CURRENCY
    status: QuotationStatus = QuotationStatus.DRAFT
    notes: Optional[str] = None
    terms: Optional[str] = None
    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    converted_to_invoice_id: Optional[int] = None
    converted_at: Optional[datetime] = None

    def calculate_totals(self) -> "Quotation":
        # Discount comes off after tax.
        subtotal = to_money(sum((item.line_total for item in self.items), ZERO))
        tax = to_money(subtotal * Decimal(self.tax_rate) / 100)
        total = to_money(subtotal + tax - Decimal(self.discount_amount))
        return replace(self, subtotal=subtotal, tax_amount=tax, total_amount=total)

    def add_item(self, item: QuotationItem) -> Result["Quotation"]:
        if self.status != QuotationStatus.DRAFT:
            return invalid_transition("Items can only be added to draft quotations")
        problems = [p for p in (require_non_empty(item.description, "Description"),) if p]
        if Decimal(item.quantity) <= 0:
            problems.append("Quantity must be greater than zero")
        if Decimal(item.unit_price) < 0:
            problems.append("Unit price cannot be negative")
        if problems:
            return validation_failed(problems)
        return ok(replace(self, items=self.items + (item,)).calculate_totals())

    def send(self, *, now: datetime) -> Result["Quotation"]:
        if self.status != QuotationStatus.DRAFT:
            return invalid_transition(f"Quotation is {self.status.value}, only drafts can be sent")
        if not self.items:
            return validation_failed(["Quotation has no items"])
        return ok(replace(self, status=QuotationStatus.SENT, sent_at=now))

    def accept(self, *, now: datetime) -> Result["Quotation"]:
        if self.status != QuotationStatus.SENT:
            return invalid_transition(f"Quotation is {self.status.value}, only sent quotations can be accepted")
        return ok(replace(self, status=QuotationStatus.ACCEPTED, accepted_at=now))

    def reject(self, reason: Optional[str] = None, *, now: datetime) -> Result["Quotation"]:
        if self.status != QuotationStatus.SENT:
            return invalid_transition(f"Quotation is {self.status.value}, only sent quotations can be rejected")
        return ok(replace(self, status=QuotationStatus.REJECTED, rejected_at=now, rejection_reason=reason))

    def is_expired(self, today: date) -> bool:
        """Derived from the expiry date; the stored status is left alone."""
        return self.expiry_date < today and self.status in OPEN_STATUSES

    def days_until_expiry(self, today: date) -> int:
        return max(0, (self.expiry_date - today).days)

    def is_converted(self) -> bool:
        return self.converted_to_invoice_id is not None or self.converted_at is not None

    def can_convert_to_invoice(self) -> bool:
        return self.status == QuotationStatus.ACCEPTED and not self.is_converted()

    def convert_to_invoice(
        self,
        client_id: Optional[int],
        invoice_id: int = 0,
        *,
        now: datetime,
        due_days: int = INVOICE_DUE_DAYS,
    ) -> Result[tuple[Invoice, "Quotation"]]:
        if self.is_converted():
            return invalid_transition("Quotation has already been converted to an invoice")
        if self.status != QuotationStatus.ACCEPTED:
            return invalid_transition("Only accepted quotations can be converted to an invoice")
        client_id = client_id or self.client_id
        if not client_id:
            return validation_failed(["Lead must be converted to client before creating invoice"])

        today = now.date()
        invoice = Invoice(
            invoice_id=invoice_id,
            billable=PartyRef.client(client_id),
            owner_id=self.owner_id,
            issue_date=today,
            due_date=today + timedelta(days=due_days),
            items=self.items,
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            discount_amount=self.discount_amount,
            total_amount=self.total_amount,
            currency=self.currency,
            notes=self.notes,
            terms=self.terms,
            quotation_id=self.quotation_id,
        )
        converted = replace(
            self,
            client_id=client_id,
            converted_to_invoice_id=invoice_id or None,
            converted_at=now,
        )
        return ok((invoice, converted))
