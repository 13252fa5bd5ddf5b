from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from bizsuite.core.enums import PartyKind, TicketPriority, TicketStatus
from bizsuite.core.party import Party, PartyRef
from bizsuite.core.result import ErrorKind
from bizsuite.notifications.service import Notifier
from bizsuite.support.model import SLAPolicy, Ticket
from bizsuite.support.service import TicketService

NOW = datetime(2025, 2, 10, 9, 0)

STANDARD = SLAPolicy(sla_policy_id=1, name="Standard", response_time_hours=4, resolution_time_hours=24, is_default=True)
PREMIUM = SLAPolicy(sla_policy_id=2, name="Premium", response_time_hours=1, resolution_time_hours=8)


class FakeTicketRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, Ticket] = {}
        self.comments = []
        self.log = []

    def get(self, ticket_id):
        return self.items.get(int(ticket_id))

    def add(self, ticket):
        tid = self._next_id
        self._next_id += 1
        self.items[tid] = replace(ticket, ticket_id=tid)
        return tid

    def update(self, ticket, *, expected_status):
        stored = self.items.get(ticket.ticket_id)
        if not stored or stored.status != expected_status:
            return False
        self.items[ticket.ticket_id] = ticket
        self.log.append(("ticket", ticket.status))
        return True

    def add_comment(self, comment):
        self.comments.append(comment)
        self.log.append(("comment", comment.content))
        return len(self.comments)

    def list_comments(self, ticket_id):
        return [c for c in self.comments if c.ticket_id == ticket_id]


class FakeSLARepo:
    def __init__(self, *policies, category_defaults=None):
        self._items = {p.sla_policy_id: p for p in policies}
        self._category_defaults = category_defaults or {}

    def get(self, sla_policy_id):
        return self._items.get(int(sla_policy_id))

    def get_default(self):
        return next((p for p in self._items.values() if p.is_default), None)

    def default_for_category(self, category_id):
        policy_id = self._category_defaults.get(category_id)
        return self._items.get(policy_id) if policy_id else None


class FakeRoles:
    def __init__(self, *user_ids):
        self._user_ids = list(user_ids)

    def users_with_role(self, role):
        return self._user_ids


class FakeParties:
    def resolve(self, ref):
        if ref.kind == PartyKind.CLIENT:
            return Party(ref=ref, display_name="Acme", user_id=500)
        return None


class RecordingGateway:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


def _service(gateway=None, sla=None):
    tickets = FakeTicketRepo()
    notifier = Notifier(gateway, FakeRoles(1, 2, 3)) if gateway else None
    service = TicketService(tickets, sla or FakeSLARepo(STANDARD, PREMIUM), notifier=notifier, parties=FakeParties())
    return service, tickets


def _create(service, **overrides):
    values = dict(title="Printer jam", description="Tray 2 is stuck", created_by=2, now=NOW)
    values.update(overrides)
    return service.create(**values).unwrap()


def test_create_uses_default_sla_and_notifies_agents_except_creator():
    gateway = RecordingGateway()
    service, _ = _service(gateway)

    ticket = _create(service)

    assert ticket.status == TicketStatus.OPEN
    assert ticket.sla_policy_id == 1
    assert ticket.due_date == NOW + timedelta(hours=24)
    assert sorted(n.recipient_user_id for n in gateway.sent) == [1, 3]


def test_category_default_sla_is_preferred_over_global_default():
    service, _ = _service(sla=FakeSLARepo(STANDARD, PREMIUM, category_defaults={9: 2}))

    ticket = _create(service, category_id=9, priority=TicketPriority.URGENT)

    assert ticket.sla_policy_id == 2
    assert ticket.due_date == NOW + timedelta(hours=8)


def test_create_requires_title():
    service, _ = _service()

    assert service.create(title=" ", description="x", created_by=1, now=NOW).kind == ErrorKind.VALIDATION_FAILED


def test_unknown_sla_kind_raises():
    with pytest.raises(ValueError):
        STANDARD.calculate_due_date(NOW, "weekly")


def test_resolve_then_close_sets_timestamps():
    service, _ = _service()
    ticket = _create(service)

    resolved = service.change_status(ticket.ticket_id, TicketStatus.RESOLVED, now=NOW + timedelta(hours=3)).unwrap()
    closed = service.change_status(ticket.ticket_id, TicketStatus.CLOSED, now=NOW + timedelta(hours=5)).unwrap()

    assert resolved.resolution_time_minutes == 180
    assert closed.closed_at == NOW + timedelta(hours=5)
    assert service.change_status(ticket.ticket_id, TicketStatus.OPEN, now=NOW).kind == ErrorKind.INVALID_TRANSITION


def test_close_validates_rating():
    service, tickets = _service()
    ticket = _create(service)

    bad = service.close(ticket.ticket_id, rating=6, now=NOW)
    good = service.close(ticket.ticket_id, rating=5, feedback="Quick fix", now=NOW).unwrap()

    assert bad.kind == ErrorKind.VALIDATION_FAILED
    assert good.status == TicketStatus.CLOSED
    assert good.satisfaction_rating == 5


def test_public_comment_on_closed_ticket_stores_ticket_first_and_keeps_closed_at():
    service, tickets = _service()
    ticket = _create(service)
    service.close(ticket.ticket_id, now=NOW + timedelta(hours=1))
    tickets.log.clear()

    updated, comment = service.add_comment(
        ticket.ticket_id, author_id=2, content="Still broken", now=NOW + timedelta(hours=2)
    ).unwrap()

    assert tickets.log == [("ticket", TicketStatus.OPEN), ("comment", "Still broken")]
    assert updated.status == TicketStatus.OPEN
    assert updated.closed_at == NOW + timedelta(hours=1)
    assert comment.comment_id == 1

    reopened, note = service.reopen(ticket.ticket_id, "Customer replied", author_id=1, now=NOW).unwrap()
    assert reopened.closed_at is None
    assert note.content == "Ticket reopened. Reason: Customer replied"
    assert note.is_system


def test_internal_comment_leaves_ticket_untouched():
    service, tickets = _service()
    ticket = _create(service)

    service.add_comment(ticket.ticket_id, author_id=1, content="Check firmware", is_internal=True, now=NOW)

    stored = tickets.get(ticket.ticket_id)
    assert stored.first_response_at is None
    assert tickets.log == [("comment", "Check firmware")]


def test_first_public_comment_records_response_time():
    service, _ = _service()
    ticket = _create(service)

    updated, _ = service.add_comment(
        ticket.ticket_id, author_id=1, content="Looking into it", now=NOW + timedelta(minutes=45)
    ).unwrap()

    assert updated.response_time_minutes == 45
    later, _ = service.add_comment(ticket.ticket_id, author_id=1, content="Fixed?", now=NOW + timedelta(hours=2)).unwrap()
    assert later.first_response_at == NOW + timedelta(minutes=45)


def test_reopen_requires_reason_and_finished_ticket():
    service, _ = _service()
    ticket = _create(service)

    assert service.reopen(ticket.ticket_id, "Still failing", now=NOW).kind == ErrorKind.INVALID_TRANSITION
    service.change_status(ticket.ticket_id, TicketStatus.RESOLVED, now=NOW)
    assert service.reopen(ticket.ticket_id, "", now=NOW).kind == ErrorKind.VALIDATION_FAILED
    reopened, _ = service.reopen(ticket.ticket_id, "Still failing", now=NOW).unwrap()
    assert reopened.status == TicketStatus.OPEN
    assert reopened.resolved_at is None


def test_comment_notifies_assignee_and_requester_but_not_author():
    gateway = RecordingGateway()
    service, _ = _service(gateway)
    ticket = _create(service, requester=PartyRef.client(4))
    service.assign(ticket.ticket_id, 7)
    gateway.sent.clear()

    service.add_comment(ticket.ticket_id, author_id=7, content="On it", now=NOW)

    assert [n.recipient_user_id for n in gateway.sent] == [500]


def test_assign_and_escalate():
    service, _ = _service()
    ticket = _create(service)

    service.assign(ticket.ticket_id, 7).unwrap()
    assert service.assign(ticket.ticket_id, 7).kind == ErrorKind.INVALID_TRANSITION

    escalated = service.escalate(ticket.ticket_id, 9, now=NOW).unwrap()
    assert escalated.assigned_to == 9
    assert escalated.escalation_level == 1


def test_sla_status_reports_breaches():
    service, _ = _service()
    ticket = _create(service)

    status = service.sla_status(ticket.ticket_id, now=NOW + timedelta(hours=30)).unwrap()

    assert status == {
        "ticket_id": ticket.ticket_id,
        "overdue": True,
        "response_breached": True,
        "resolution_breached": True,
    }


def test_reopen_clears_satisfaction_feedback():
    service, tickets = _service()
    ticket = _create(service)
    service.close(ticket.ticket_id, rating=2, feedback="Slow", now=NOW + timedelta(hours=1))

    reopened, _ = service.reopen(ticket.ticket_id, "Problem is back", now=NOW + timedelta(days=1)).unwrap()

    stored = tickets.get(ticket.ticket_id)
    assert reopened == stored
    assert (stored.satisfaction_rating, stored.satisfaction_feedback) == (None, None)
    assert (stored.closed_at, stored.resolved_at, stored.resolution_time_minutes) == (None, None, None)
    assert stored.status == TicketStatus.OPEN
