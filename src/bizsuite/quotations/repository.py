from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import QuotationStatus
from .model import Invoice, Quotation


class QuotationRepository(Protocol):
    def get(self, quotation_id: int) -> Optional[Quotation]:
        raise NotImplementedError

    def last_number(self, prefix: str) -> Optional[str]:
        """Highest quotation number starting with ``prefix``."""

        raise NotImplementedError

    def add(self, quotation: Quotation) -> int:
        raise NotImplementedError

    def update(self, quotation: Quotation, *, expected_status: QuotationStatus) -> bool:
        """Store status, totals and items when the stored status still matches."""

        raise NotImplementedError

    def save_conversion(self, quotation: Quotation, invoice: Invoice) -> Optional[int]:
        """Insert the invoice and mark the quotation converted in one transaction.

        Returns the new invoice id, or ``None`` when the quotation was already
        converted (nothing is written in that case).
        """

        raise NotImplementedError


class LeadDirectory(Protocol):
    def converted_client_id(self, lead_id: int) -> Optional[int]:
        raise NotImplementedError
