from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PartyKind, TicketPriority, TicketStatus
from ..core.party import PartyRef
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int, to_bool
from .model import SLAPolicy, Ticket, TicketComment
from .repository import SLAPolicyRepository, TicketRepository


def _ticket(r: dict) -> Ticket:
    requester = None
    if r.get("requester_kind") and r.get("requester_id") is not None:
        requester = PartyRef(PartyKind(r["requester_kind"]), int(r["requester_id"]))
    return Ticket(
        ticket_id=int(r["ticket_id"]),
        title=r["title"],
        description=r["description"],
        created_by=optional_int(r.get("created_by")),
        requester=requester,
        assigned_to=optional_int(r.get("assigned_to")),
        category_id=optional_int(r.get("category_id")),
        priority=TicketPriority(r["priority"]),
        status=TicketStatus(r["status"]),
        sla_policy_id=optional_int(r.get("sla_policy_id")),
        due_date=r.get("due_date"),
        created_at=r.get("created_at"),
        first_response_at=r.get("first_response_at"),
        response_time_minutes=optional_int(r.get("response_time_minutes")),
        resolved_at=r.get("resolved_at"),
        resolution_time_minutes=optional_int(r.get("resolution_time_minutes")),
        closed_at=r.get("closed_at"),
        satisfaction_rating=optional_int(r.get("satisfaction_rating")),
        satisfaction_feedback=r.get("satisfaction_feedback"),
        escalation_level=int(r.get("escalation_level") or 0),
        escalated_at=r.get("escalated_at"),
    )


class MySQLTicketRepository(TicketRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, ticket_id: int) -> Optional[Ticket]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM tickets WHERE ticket_id=%s", (int(ticket_id),))
            r = fetchone(cur)
            return _ticket(r) if r else None

    def add(self, ticket: Ticket) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tickets(
                    title, description, created_by, requester_kind, requester_id, assigned_to,
                    category_id, priority, status, sla_policy_id, due_date, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    ticket.title,
                    ticket.description,
                    ticket.created_by,
                    ticket.requester.kind.value if ticket.requester else None,
                    ticket.requester.id if ticket.requester else None,
                    ticket.assigned_to,
                    ticket.category_id,
                    ticket.priority.value,
                    ticket.status.value,
                    ticket.sla_policy_id,
                    ticket.due_date,
                    ticket.created_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, ticket: Ticket, *, expected_status: TicketStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tickets
                SET status=%s, assigned_to=%s, priority=%s,
                    first_response_at=%s, response_time_minutes=%s,
                    resolved_at=%s, resolution_time_minutes=%s, closed_at=%s,
                    satisfaction_rating=%s, satisfaction_feedback=%s,
                    escalation_level=%s, escalated_at=%s
                WHERE ticket_id=%s AND status=%s
                """,
                (
                    ticket.status.value,
                    ticket.assigned_to,
                    ticket.priority.value,
                    ticket.first_response_at,
                    ticket.response_time_minutes,
                    ticket.resolved_at,
                    ticket.resolution_time_minutes,
                    ticket.closed_at,
                    ticket.satisfaction_rating,
                    ticket.satisfaction_feedback,
                    ticket.escalation_level,
                    ticket.escalated_at,
                    ticket.ticket_id,
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def add_comment(self, comment: TicketComment) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO ticket_comments(ticket_id, author_id, content, is_internal, is_solution, is_system, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    comment.ticket_id,
                    comment.author_id,
                    comment.content,
                    int(comment.is_internal),
                    int(comment.is_solution),
                    int(comment.is_system),
                    comment.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_comments(self, ticket_id: int) -> Sequence[TicketComment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM ticket_comments WHERE ticket_id=%s ORDER BY created_at, comment_id",
                (int(ticket_id),),
            )
            return [
                TicketComment(
                    comment_id=int(r["comment_id"]),
                    ticket_id=int(r["ticket_id"]),
                    author_id=optional_int(r.get("author_id")),
                    content=r["content"],
                    is_internal=to_bool(r["is_internal"]),
                    is_solution=to_bool(r["is_solution"]),
                    is_system=to_bool(r["is_system"]),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]


def _policy(r: dict) -> SLAPolicy:
    return SLAPolicy(
        sla_policy_id=int(r["sla_policy_id"]),
        name=r["name"],
        response_time_hours=int(r["response_time_hours"]),
        resolution_time_hours=int(r["resolution_time_hours"]),
        is_default=to_bool(r["is_default"]),
        is_active=to_bool(r["is_active"]),
    )


class MySQLSLAPolicyRepository(SLAPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, sla_policy_id: int) -> Optional[SLAPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM sla_policies WHERE sla_policy_id=%s", (int(sla_policy_id),))
            r = fetchone(cur)
            return _policy(r) if r else None

    def get_default(self) -> Optional[SLAPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM sla_policies WHERE is_default=1 AND is_active=1 ORDER BY sla_policy_id LIMIT 1")
            r = fetchone(cur)
            return _policy(r) if r else None

    def default_for_category(self, category_id: int) -> Optional[SLAPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.*
                FROM ticket_categories c
                JOIN sla_policies p ON p.sla_policy_id = c.default_sla_policy_id
                WHERE c.category_id=%s AND p.is_active=1
                """,
                (int(category_id),),
            )
            r = fetchone(cur)
            return _policy(r) if r else None
