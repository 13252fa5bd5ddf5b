from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import minutes_between
from ..common.validators import require_non_empty, require_range
from ..core.enums import TicketPriority, TicketStatus
from ..core.party import PartyRef
from ..core.result import Result, invalid_transition, ok, validation_failed

# Status changes allowed through change_status(); closed -> open goes through reopen().
TRANSITIONS = {
    TicketStatus.OPEN: {TicketStatus.IN_PROGRESS, TicketStatus.PENDING, TicketStatus.RESOLVED},
    TicketStatus.IN_PROGRESS: {TicketStatus.OPEN, TicketStatus.PENDING, TicketStatus.RESOLVED},
    TicketStatus.PENDING: {TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED},
    TicketStatus.RESOLVED: {TicketStatus.CLOSED},
    TicketStatus.CLOSED: set(),
}

FINISHED = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


@dataclass(frozen=True)
class TicketComment:
    comment_id: int
    ticket_id: int
    author_id: Optional[int]
    content: str
    is_internal: bool = False
    is_solution: bool = False
    is_system: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Ticket:
    """Support ticket.

    open <-> in_progress <-> pending -> resolved -> closed, and closed -> open
    through ``reopen``. ``close`` has no status precondition.
    """

    ticket_id: int
    title: str
    description: str
    created_by: Optional[int]
    requester: Optional[PartyRef] = None
    assigned_to: Optional[int] = None
    category_id: Optional[int] = None
    priority: TicketPriority = TicketPriority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    sla_policy_id: Optional[int] = None
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    first_response_at: Optional[datetime] = None
    response_time_minutes: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_time_minutes: Optional[int] = None
    closed_at: Optional[datetime] = None
    satisfaction_rating: Optional[int] = None
    satisfaction_feedback: Optional[str] = None
    escalation_level: int = 0
    escalated_at: Optional[datetime] = None

    def change_status(self, new_status: TicketStatus, *, now: datetime) -> Result["Ticket"]:
        if new_status == self.status:
            return invalid_transition(f"Ticket is already {self.status.value}")
        if new_status not in TRANSITIONS[self.status]:
            return invalid_transition(f"Cannot move ticket from {self.status.value} to {new_status.value}")

        changes = {"status": new_status}
        if new_status == TicketStatus.RESOLVED and self.resolved_at is None:
            changes["resolved_at"] = now
            changes["resolution_time_minutes"] = minutes_between(self.created_at, now)
        elif new_status == TicketStatus.CLOSED and self.closed_at is None:
            changes["closed_at"] = now
        return ok(replace(self, **changes))

    def close(
        self,
        rating: Optional[int] = None,
        feedback: Optional[str] = None,
        *,
        now: datetime,
    ) -> Result["Ticket"]:
        if rating is not None:
            problem = require_range(rating, "Rating", 1, 5)
            if problem:
                return validation_failed([problem])
        return ok(
            replace(
                self,
                status=TicketStatus.CLOSED,
                closed_at=now,
                satisfaction_rating=rating,
                satisfaction_feedback=feedback,
            )
        )

    def reopen(
        self,
        reason: str,
        *,
        now: datetime,
        author_id: Optional[int] = None,
    ) -> Result[tuple["Ticket", TicketComment]]:
        problem = require_non_empty(reason, "Reason")
        if problem:
            return validation_failed([problem])
        if self.status not in FINISHED and self.closed_at is None and self.resolved_at is None:
            return invalid_transition("Only resolved or closed tickets can be reopened")

        reopened = replace(
            self,
            status=TicketStatus.OPEN,
            closed_at=None,
            resolved_at=None,
            resolution_time_minutes=None,
            satisfaction_rating=None,
            satisfaction_feedback=None,
        )
        comment = TicketComment(
            comment_id=0,
            ticket_id=self.ticket_id,
            author_id=author_id,
            content=f"Ticket reopened. Reason: {reason.strip()}",
            is_system=True,
            created_at=now,
        )
        return ok((reopened, comment))

    def add_comment(
        self,
        author_id: Optional[int],
        content: str,
        *,
        now: datetime,
        is_internal: bool = False,
        is_solution: bool = False,
    ) -> Result[tuple["Ticket", TicketComment]]:
        """Returns the ticket as it must be stored *before* the comment.

        A public comment on a closed ticket moves it back to ``open`` but
        keeps ``closed_at`` until an explicit ``reopen``.
        """
        problem = require_non_empty(content, "Content")
        if problem:
            return validation_failed([problem])

        ticket = self
        if not is_internal:
            if ticket.status == TicketStatus.CLOSED:
                ticket = replace(ticket, status=TicketStatus.OPEN)
            if ticket.first_response_at is None:
                ticket = replace(
                    ticket,
                    first_response_at=now,
                    response_time_minutes=minutes_between(self.created_at, now),
                )

        comment = TicketComment(
            comment_id=0,
            ticket_id=self.ticket_id,
            author_id=author_id,
            content=content.strip(),
            is_internal=is_internal,
            is_solution=is_solution,
            created_at=now,
        )
        return ok((ticket, comment))

    def assign(self, user_id: int) -> Result["Ticket"]:
        if self.status == TicketStatus.CLOSED:
            return invalid_transition("Closed tickets cannot be assigned")
        if self.assigned_to == user_id:
            return invalid_transition("Ticket is already assigned to this user")
        return ok(replace(self, assigned_to=int(user_id)))

    def escalate(self, to_user_id: int, *, now: datetime) -> Result["Ticket"]:
        if self.status in FINISHED:
            return invalid_transition(f"Cannot escalate a {self.status.value} ticket")
        return ok(
            replace(
                self,
                assigned_to=int(to_user_id),
                escalation_level=self.escalation_level + 1,
                escalated_at=now,
            )
        )

    def is_overdue(self, now: datetime) -> bool:
        return self.due_date is not None and self.due_date < now and self.status not in FINISHED


@dataclass(frozen=True)
class SLAPolicy:
    sla_policy_id: int
    name: str
    response_time_hours: int
    resolution_time_hours: int
    is_default: bool = False
    is_active: bool = True

    def calculate_due_date(self, start: datetime, kind: str = "resolution") -> datetime:
        if kind == "response":
            return start + timedelta(hours=self.response_time_hours)
        if kind == "resolution":
            return start + timedelta(hours=self.resolution_time_hours)
        raise ValueError(f"Unknown SLA kind: {kind}")

    def is_response_breached(self, ticket: Ticket, now: datetime) -> bool:
        limit = self.response_time_hours * 60
        if ticket.first_response_at is not None:
            return minutes_between(ticket.created_at, ticket.first_response_at) > limit
        return minutes_between(ticket.created_at, now) > limit

    def is_resolution_breached(self, ticket: Ticket, now: datetime) -> bool:
        limit = self.resolution_time_hours * 60
        if ticket.resolved_at is not None:
            return minutes_between(ticket.created_at, ticket.resolved_at) > limit
        return minutes_between(ticket.created_at, now) > limit
