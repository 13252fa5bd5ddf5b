from __future__ import annotations

import json
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Notification
from .repository import NotificationGateway, RecipientResolver


class MySQLNotificationGateway(NotificationGateway):
    """Stores in-app notifications; delivery channels read from this table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def send(self, notification: Notification) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO notifications(user_id, title, message, metadata) VALUES(%s,%s,%s,%s)",
                (
                    notification.recipient_user_id,
                    notification.title,
                    notification.message,
                    json.dumps(notification.metadata, default=str),
                ),
            )


class MySQLRoleRecipientResolver(RecipientResolver):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def users_with_role(self, role: str) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE role=%s AND is_active=1 ORDER BY user_id", (role,))
            return [int(r["user_id"]) for r in fetchall(cur)]
