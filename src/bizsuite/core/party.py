from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .enums import PartyKind


@dataclass(frozen=True)
class PartyRef:
    """Tagged reference to a user, client or lead (requester / billable)."""

    kind: PartyKind
    id: int

    @classmethod
    def user(cls, user_id: int) -> "PartyRef":
        return cls(PartyKind.USER, int(user_id))

    @classmethod
    def client(cls, client_id: int) -> "PartyRef":
        return cls(PartyKind.CLIENT, int(client_id))

    @classmethod
    def lead(cls, lead_id: int) -> "PartyRef":
        return cls(PartyKind.LEAD, int(lead_id))

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class Party:
    ref: PartyRef
    display_name: str
    email: Optional[str] = None
    # Login account behind the party, when it has one (used for notifications).
    user_id: Optional[int] = None


class PartyResolver(Protocol):
    def resolve(self, ref: PartyRef) -> Optional[Party]:
        raise NotImplementedError
