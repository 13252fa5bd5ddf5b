from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

from bizsuite.core.enums import PartyKind, QuotationStatus
from bizsuite.core.result import ErrorKind
from bizsuite.notifications.service import Notifier
from bizsuite.quotations.model import Quotation, QuotationItem, generate_quotation_number, to_money
from bizsuite.quotations.service import QuotationService

NOW = datetime(2025, 4, 14, 11, 0)


class FakeQuotationRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, Quotation] = {}
        self.invoices = []

    def get(self, quotation_id):
        return self.items.get(int(quotation_id))

    def last_number(self, prefix):
        numbers = sorted(q.quotation_number for q in self.items.values() if q.quotation_number.startswith(prefix))
        return numbers[-1] if numbers else None

    def add(self, quotation):
        qid = self._next_id
        self._next_id += 1
        self.items[qid] = replace(quotation, quotation_id=qid)
        return qid

    def update(self, quotation, *, expected_status):
        stored = self.items.get(quotation.quotation_id)
        if not stored or stored.status != expected_status:
            return False
        self.items[quotation.quotation_id] = quotation
        return True

    def save_conversion(self, quotation, invoice):
        stored = self.items[quotation.quotation_id]
        if stored.is_converted():
            return None
        self.invoices.append(invoice)
        invoice_id = len(self.invoices)
        self.items[quotation.quotation_id] = replace(quotation, converted_to_invoice_id=invoice_id)
        return invoice_id


class FakeLeads:
    def __init__(self, mapping):
        self._mapping = mapping

    def converted_client_id(self, lead_id):
        return self._mapping.get(lead_id)


class RecordingGateway:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


ITEMS = (
    QuotationItem("Consulting hour", Decimal("2"), Decimal("10.00")),
    QuotationItem("Setup fee", Decimal("1"), Decimal("5.00")),
)


def _service(leads=None, gateway=None):
    repo = FakeQuotationRepo()
    service = QuotationService(
        repo,
        leads=FakeLeads(leads or {}),
        notifier=Notifier(gateway) if gateway else None,
    )
    return service, repo


def _accepted(service, **overrides):
    values = dict(owner_id=3, client_id=11, items=ITEMS, now=NOW)
    values.update(overrides)
    quotation = service.create(**values).unwrap()
    service.send(quotation.quotation_id, now=NOW)
    return service.accept(quotation.quotation_id, now=NOW).unwrap()


def test_totals_apply_tax_then_discount():
    service, _ = _service()

    quotation = service.create(
        owner_id=3, client_id=11, items=ITEMS, tax_rate=Decimal("10"), discount_amount=Decimal("2.00"), now=NOW
    ).unwrap()

    assert quotation.subtotal == Decimal("25.00")
    assert quotation.tax_amount == Decimal("2.50")
    assert quotation.total_amount == Decimal("25.50")


def test_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert QuotationItem("x", Decimal("3"), Decimal("0.335")).line_total == Decimal("1.01")


def test_numbers_are_sequential_per_month():
    assert generate_quotation_number(None, today=date(2025, 4, 1)) == "QUO-202504-0001"
    assert generate_quotation_number("QUO-202504-0041", today=date(2025, 4, 30)) == "QUO-202504-0042"
    assert generate_quotation_number("QUO-202504-0041", today=date(2025, 5, 1)) == "QUO-202505-0001"

    service, _ = _service()
    first = service.create(owner_id=3, client_id=11, now=NOW).unwrap()
    second = service.create(owner_id=3, client_id=11, now=NOW).unwrap()
    assert (first.quotation_number, second.quotation_number) == ("QUO-202504-0001", "QUO-202504-0002")


def test_create_defaults_expiry_and_needs_a_party():
    service, _ = _service()

    quotation = service.create(owner_id=3, lead_id=5, now=NOW).unwrap()

    assert quotation.expiry_date == date(2025, 5, 14)
    assert service.create(owner_id=3, now=NOW).kind == ErrorKind.VALIDATION_FAILED


def test_items_only_on_drafts():
    service, _ = _service()
    quotation = _accepted(service)

    result = service.add_item(quotation.quotation_id, QuotationItem("Extra", Decimal("1"), Decimal("1")))

    assert result.kind == ErrorKind.INVALID_TRANSITION


def test_send_requires_items():
    service, _ = _service()
    empty = service.create(owner_id=3, client_id=11, now=NOW).unwrap()

    assert service.send(empty.quotation_id, now=NOW).kind == ErrorKind.VALIDATION_FAILED


def test_second_reject_is_a_noop():
    service, repo = _service()
    quotation = service.create(owner_id=3, client_id=11, items=ITEMS, now=NOW).unwrap()
    service.send(quotation.quotation_id, now=NOW)

    first = service.reject(quotation.quotation_id, reason="Too expensive", now=NOW)
    second = service.reject(quotation.quotation_id, reason="Changed mind", now=datetime(2025, 4, 20))

    assert first
    assert second.kind == ErrorKind.INVALID_TRANSITION
    stored = repo.get(quotation.quotation_id)
    assert stored.rejection_reason == "Too expensive"
    assert stored.rejected_at == NOW


def test_accept_notifies_owner():
    gateway = RecordingGateway()
    service, _ = _service(gateway=gateway)

    _accepted(service)

    assert [(n.recipient_user_id, n.title) for n in gateway.sent] == [(3, "Quotation accepted")]


def test_convert_copies_totals_and_blocks_second_conversion():
    service, repo = _service()
    quotation = _accepted(service, tax_rate=Decimal("10"))

    invoice = service.convert_to_invoice(quotation.quotation_id, now=NOW).unwrap()

    assert invoice.invoice_id == 1
    assert invoice.billable.kind == PartyKind.CLIENT
    assert invoice.total_amount == Decimal("27.50")
    assert invoice.due_date == date(2025, 5, 14)
    assert len(invoice.items) == 2
    assert repo.get(quotation.quotation_id).converted_to_invoice_id == 1

    again = service.convert_to_invoice(quotation.quotation_id, now=NOW)
    assert again.kind == ErrorKind.INVALID_TRANSITION
    assert len(repo.invoices) == 1


def test_convert_requires_accepted():
    service, _ = _service()
    draft = service.create(owner_id=3, client_id=11, items=ITEMS, now=NOW).unwrap()

    assert service.convert_to_invoice(draft.quotation_id, now=NOW).kind == ErrorKind.INVALID_TRANSITION


def test_convert_for_lead_needs_converted_client():
    service, repo = _service(leads={6: 42})
    unconverted = _accepted(service, client_id=None, lead_id=5)
    converted = _accepted(service, client_id=None, lead_id=6)

    failed = service.convert_to_invoice(unconverted.quotation_id, now=NOW)
    invoice = service.convert_to_invoice(converted.quotation_id, now=NOW).unwrap()

    assert failed.kind == ErrorKind.VALIDATION_FAILED
    assert failed.error.message == "Lead must be converted to client before creating invoice"
    assert invoice.billable.id == 42
    assert repo.get(converted.quotation_id).client_id == 42


def test_is_expired_is_derived_without_touching_status():
    service, repo = _service()
    quotation = service.create(owner_id=3, client_id=11, items=ITEMS, expiry_date=date(2025, 4, 20), now=NOW).unwrap()

    assert not quotation.is_expired(date(2025, 4, 20))
    assert quotation.is_expired(date(2025, 4, 21))
    assert quotation.days_until_expiry(date(2025, 4, 18)) == 2
    assert repo.get(quotation.quotation_id).status == QuotationStatus.DRAFT
