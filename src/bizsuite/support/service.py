from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.validators import collect, require_non_empty
from ..core.constants import SUPPORT_AGENT_ROLE
from ..core.enums import TicketPriority, TicketStatus
from ..core.party import PartyRef, PartyResolver
from ..core.result import Result, invalid_transition, not_found, ok, validation_failed
from ..notifications.service import Notifier
from .model import SLAPolicy, Ticket, TicketComment
from .repository import SLAPolicyRepository, TicketRepository

logger = logging.getLogger(__name__)


class TicketService:
    def __init__(
        self,
        tickets: TicketRepository,
        sla_policies: SLAPolicyRepository,
        *,
        notifier: Optional[Notifier] = None,
        parties: Optional[PartyResolver] = None,
        agent_role: str = SUPPORT_AGENT_ROLE,
    ):
        self._tickets = tickets
        self._sla = sla_policies
        self._notifier = notifier
        self._parties = parties
        self._agent_role = agent_role

    def create(
        self,
        *,
        title: str,
        description: str,
        created_by: Optional[int],
        requester: Optional[PartyRef] = None,
        category_id: Optional[int] = None,
        priority: TicketPriority = TicketPriority.MEDIUM,
        sla_policy_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Result[Ticket]:
        now = now or now_local()
        problems = collect(require_non_empty(title, "Title"), require_non_empty(description, "Description"))
        if problems:
            return validation_failed(problems)

        policy = self._resolve_sla(sla_policy_id, category_id)
        ticket = Ticket(
            ticket_id=0,
            title=title.strip(),
            description=description.strip(),
            created_by=created_by,
            requester=requester,
            category_id=category_id,
            priority=priority,
            status=TicketStatus.OPEN,
            sla_policy_id=policy.sla_policy_id if policy else None,
            due_date=policy.calculate_due_date(now, "resolution") if policy else None,
            created_at=now,
        )
        ticket = replace(ticket, ticket_id=self._tickets.add(ticket))
        logger.info("Ticket %s created (priority %s, sla %s)", ticket.ticket_id, priority.value, ticket.sla_policy_id)

        if self._notifier:
            self._notifier.notify_role(
                self._agent_role,
                "New support ticket",
                f"New ticket created: {ticket.title}",
                {"ticket_id": ticket.ticket_id, "priority": priority.value},
                exclude=[created_by],
            )
        return ok(ticket)

    def change_status(self, ticket_id: int, status: TicketStatus, *, now: Optional[datetime] = None) -> Result[Ticket]:
        now = now or now_local()
        return self._transition(ticket_id, lambda t: t.change_status(status, now=now))

    def close(
        self,
        ticket_id: int,
        *,
        rating: Optional[int] = None,
        feedback: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Result[Ticket]:
        now = now or now_local()
        return self._transition(ticket_id, lambda t: t.close(rating, feedback, now=now))

    def assign(self, ticket_id: int, user_id: int) -> Result[Ticket]:
        result = self._transition(ticket_id, lambda t: t.assign(user_id))
        if result:
            self._notify(
                [user_id],
                "Ticket assigned",
                f"You have been assigned to ticket: {result.value.title}",
                result.value,
            )
        return result

    def escalate(self, ticket_id: int, to_user_id: int, *, now: Optional[datetime] = None) -> Result[Ticket]:
        now = now or now_local()
        result = self._transition(ticket_id, lambda t: t.escalate(to_user_id, now=now))
        if result:
            self._notify(
                [to_user_id],
                "Ticket escalated",
                f"Ticket has been escalated to you: {result.value.title}",
                result.value,
            )
        return result

    def reopen(
        self,
        ticket_id: int,
        reason: str,
        *,
        author_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Result[tuple[Ticket, TicketComment]]:
        now = now or now_local()
        return self._with_comment(ticket_id, lambda t: t.reopen(reason, now=now, author_id=author_id))

    def add_comment(
        self,
        ticket_id: int,
        *,
        author_id: Optional[int],
        content: str,
        is_internal: bool = False,
        is_solution: bool = False,
        now: Optional[datetime] = None,
    ) -> Result[tuple[Ticket, TicketComment]]:
        now = now or now_local()
        result = self._with_comment(
            ticket_id,
            lambda t: t.add_comment(author_id, content, now=now, is_internal=is_internal, is_solution=is_solution),
        )
        if result and not is_internal:
            ticket, _ = result.value
            recipients = [ticket.assigned_to, self._requester_user(ticket)]
            self._notify(
                [u for u in recipients if u != author_id],
                "New ticket comment",
                f"New comment on ticket: {ticket.title}",
                ticket,
            )
        return result

    def comments(self, ticket_id: int) -> list[TicketComment]:
        return list(self._tickets.list_comments(int(ticket_id)))

    def sla_status(self, ticket_id: int, *, now: Optional[datetime] = None) -> Result[dict]:
        now = now or now_local()
        ticket = self._tickets.get(int(ticket_id))
        if not ticket:
            return not_found("Ticket not found")
        policy = self._sla.get(ticket.sla_policy_id) if ticket.sla_policy_id else None
        return ok(
            {
                "ticket_id": ticket.ticket_id,
                "overdue": ticket.is_overdue(now),
                "response_breached": bool(policy and policy.is_response_breached(ticket, now)),
                "resolution_breached": bool(policy and policy.is_resolution_breached(ticket, now)),
            }
        )

    def _resolve_sla(self, sla_policy_id: Optional[int], category_id: Optional[int]) -> Optional[SLAPolicy]:
        if sla_policy_id is not None:
            policy = self._sla.get(int(sla_policy_id))
            if policy:
                return policy
        if category_id is not None:
            policy = self._sla.default_for_category(int(category_id))
            if policy:
                return policy
        return self._sla.get_default()

    def _transition(self, ticket_id: int, guard: Callable[[Ticket], Result[Ticket]]) -> Result[Ticket]:
        ticket = self._tickets.get(int(ticket_id))
        if not ticket:
            return not_found("Ticket not found")

        result = guard(ticket)
        if not result:
            logger.debug("Ticket %s: %s", ticket_id, result.error.message)
            return result
        return self._save(ticket, result.value).map(lambda _: result.value)

    def _with_comment(
        self,
        ticket_id: int,
        guard: Callable[[Ticket], Result[tuple[Ticket, TicketComment]]],
    ) -> Result[tuple[Ticket, TicketComment]]:
        ticket = self._tickets.get(int(ticket_id))
        if not ticket:
            return not_found("Ticket not found")

        result = guard(ticket)
        if not result:
            logger.debug("Ticket %s: %s", ticket_id, result.error.message)
            return result

        updated, comment = result.value
        # Ticket state is stored before the comment that caused it.
        if updated != ticket:
            saved = self._save(ticket, updated)
            if not saved:
                return saved
        comment = replace(comment, comment_id=self._tickets.add_comment(comment))
        return ok((updated, comment))

    def _save(self, current: Ticket, updated: Ticket) -> Result[Ticket]:
        if not self._tickets.update(updated, expected_status=current.status):
            logger.warning("Ticket %s changed concurrently", current.ticket_id)
            return invalid_transition("Ticket was modified by another request")
        if updated.status != current.status:
            logger.info("Ticket %s: %s -> %s", current.ticket_id, current.status.value, updated.status.value)
        return ok(updated)

    def _requester_user(self, ticket: Ticket) -> Optional[int]:
        if ticket.requester is None or self._parties is None:
            return None
        try:
            party = self._parties.resolve(ticket.requester)
        except Exception:
            logger.exception("Could not resolve requester %s of ticket %s", ticket.requester, ticket.ticket_id)
            return None
        return party.user_id if party else None

    def _notify(self, recipients, title: str, message: str, ticket: Ticket) -> None:
        if not self._notifier:
            return
        self._notifier.notify(recipients, title, message, {"ticket_id": ticket.ticket_id, "status": ticket.status.value})
