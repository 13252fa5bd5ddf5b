from __future__ import annotations

from typing import Optional

from ..core.enums import PartyKind
from ..core.party import Party, PartyRef, PartyResolver
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, optional_int

_LOOKUPS = {
    PartyKind.USER: "SELECT full_name AS name, email, user_id FROM users WHERE user_id=%s",
    PartyKind.CLIENT: "SELECT name, email, user_id FROM clients WHERE client_id=%s",
    PartyKind.LEAD: "SELECT name, email, NULL AS user_id FROM leads WHERE lead_id=%s",
}


class MySQLPartyResolver(PartyResolver):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def resolve(self, ref: PartyRef) -> Optional[Party]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_LOOKUPS[ref.kind], (int(ref.id),))
            r = fetchone(cur)
            if not r:
                return None
            return Party(ref=ref, display_name=r["name"], email=r.get("email"), user_id=optional_int(r.get("user_id")))
