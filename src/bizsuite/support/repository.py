from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import TicketStatus
from .model import SLAPolicy, Ticket, TicketComment


class TicketRepository(Protocol):
    def get(self, ticket_id: int) -> Optional[Ticket]:
        raise NotImplementedError

    def add(self, ticket: Ticket) -> int:
        raise NotImplementedError

    def update(self, ticket: Ticket, *, expected_status: TicketStatus) -> bool:
        raise NotImplementedError

    def add_comment(self, comment: TicketComment) -> int:
        raise NotImplementedError

    def list_comments(self, ticket_id: int) -> Sequence[TicketComment]:
        raise NotImplementedError


class SLAPolicyRepository(Protocol):
    def get(self, sla_policy_id: int) -> Optional[SLAPolicy]:
        raise NotImplementedError

    def get_default(self) -> Optional[SLAPolicy]:
        raise NotImplementedError

    def default_for_category(self, category_id: int) -> Optional[SLAPolicy]:
        raise NotImplementedError
