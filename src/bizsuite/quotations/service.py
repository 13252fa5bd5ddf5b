from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_CURRENCY, INVOICE_DUE_DAYS, QUOTATION_PREFIX, QUOTATION_VALIDITY_DAYS
from ..core.result import Result, invalid_transition, not_found, ok, validation_failed
from ..notifications.service import Notifier
from .model import ZERO, Invoice, Quotation, QuotationItem, generate_quotation_number
from .repository import LeadDirectory, QuotationRepository

logger = logging.getLogger(__name__)


class QuotationService:
    def __init__(
        self,
        quotations: QuotationRepository,
        *,
        leads: Optional[LeadDirectory] = None,
        notifier: Optional[Notifier] = None,
        invoice_due_days: int = INVOICE_DUE_DAYS,
    ):
        self._quotations = quotations
        self._leads = leads
        self._notifier = notifier
        self._due_days = invoice_due_days

    def create(
        self,
        *,
        owner_id: Optional[int],
        lead_id: Optional[int] = None,
        client_id: Optional[int] = None,
        items: tuple[QuotationItem, ...] = (),
        tax_rate: Decimal = ZERO,
        discount_amount: Decimal = ZERO,
        currency: str = DEFAULT_CURRENCY,
        expiry_date: Optional[date] = None,
        notes: Optional[str] = None,
        terms: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Result[Quotation]:
        now = now or now_local()
        today = now.date()
        if lead_id is None and client_id is None:
            return validation_failed(["A quotation needs a lead or a client"])
        if expiry_date is not None and expiry_date < today:
            return validation_failed(["Expiry date cannot be in the past"])
        if Decimal(tax_rate) < 0 or Decimal(discount_amount) < 0:
            return validation_failed(["Tax rate and discount cannot be negative"])

        quotation = Quotation(
            quotation_id=0,
            quotation_number=generate_quotation_number(
                self._quotations.last_number(f"{QUOTATION_PREFIX}-{today:%Y%m}-"), today=today
            ),
            owner_id=owner_id,
            issue_date=today,
            expiry_date=expiry_date or today + timedelta(days=QUOTATION_VALIDITY_DAYS),
            lead_id=lead_id,
            client_id=client_id,
            tax_rate=Decimal(tax_rate),
            discount_amount=Decimal(discount_amount),
            currency=currency,
            notes=notes,
            terms=terms,
        )
        for item in items:
            result = quotation.add_item(item)
            if not result:
                return result
            quotation = result.value

        quotation = quotation.calculate_totals()
        quotation = replace(quotation, quotation_id=self._quotations.add(quotation))
        logger.info("Quotation %s created (%s %s)", quotation.quotation_number, quotation.total_amount, currency)
        return ok(quotation)

    def add_item(self, quotation_id: int, item: QuotationItem) -> Result[Quotation]:
        return self._transition(quotation_id, lambda q: q.add_item(item))

    def recalculate(self, quotation_id: int) -> Result[Quotation]:
        return self._transition(quotation_id, lambda q: ok(q.calculate_totals()))

    def send(self, quotation_id: int, *, now: Optional[datetime] = None) -> Result[Quotation]:
        now = now or now_local()
        return self._transition(quotation_id, lambda q: q.send(now=now))

    def accept(self, quotation_id: int, *, now: Optional[datetime] = None) -> Result[Quotation]:
        now = now or now_local()
        result = self._transition(quotation_id, lambda q: q.accept(now=now))
        if result and self._notifier:
            quotation = result.value
            self._notifier.notify(
                [quotation.owner_id],
                "Quotation accepted",
                f"Quotation {quotation.quotation_number} has been accepted.",
                {"quotation_id": quotation.quotation_id, "total_amount": str(quotation.total_amount)},
            )
        return result

    def reject(
        self,
        quotation_id: int,
        *,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Result[Quotation]:
        now = now or now_local()
        return self._transition(quotation_id, lambda q: q.reject(reason, now=now))

    def convert_to_invoice(
        self,
        quotation_id: int,
        *,
        client_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Result[Invoice]:
        now = now or now_local()
        quotation = self._quotations.get(int(quotation_id))
        if not quotation:
            return not_found("Quotation not found")

        if not client_id and not quotation.client_id and quotation.lead_id and self._leads:
            client_id = self._leads.converted_client_id(quotation.lead_id)

        result = quotation.convert_to_invoice(client_id, now=now, due_days=self._due_days)
        if not result:
            logger.debug("Quotation %s: %s", quotation_id, result.error.message)
            return result

        invoice, converted = result.value
        invoice_id = self._quotations.save_conversion(converted, invoice)
        if invoice_id is None:
            logger.warning("Quotation %s was converted concurrently", quotation_id)
            return invalid_transition("Quotation has already been converted to an invoice")

        logger.info("Quotation %s converted to invoice %s", quotation.quotation_number, invoice_id)
        return ok(replace(invoice, invoice_id=invoice_id))

    def _transition(self, quotation_id: int, guard: Callable[[Quotation], Result[Quotation]]) -> Result[Quotation]:
        quotation = self._quotations.get(int(quotation_id))
        if not quotation:
            return not_found("Quotation not found")

        result = guard(quotation)
        if not result:
            logger.debug("Quotation %s: %s", quotation_id, result.error.message)
            return result
        if not self._quotations.update(result.value, expected_status=quotation.status):
            logger.warning("Quotation %s changed concurrently", quotation_id)
            return invalid_transition("Quotation was modified by another request")
        if result.value.status != quotation.status:
            logger.info(
                "Quotation %s: %s -> %s", quotation.quotation_number, quotation.status.value, result.value.status.value
            )
        return result
