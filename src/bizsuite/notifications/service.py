from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ..core.result import Result, dependency_unavailable, ok
from .model import Notification
from .repository import NotificationGateway, RecipientResolver

logger = logging.getLogger(__name__)


class Notifier:
    """Fire-and-forget notification dispatch.

    Never raises: delivery errors are logged and reported as a
    DEPENDENCY_UNAVAILABLE result that callers are free to ignore.
    """

    def __init__(self, gateway: NotificationGateway, recipients: Optional[RecipientResolver] = None):
        self._gateway = gateway
        self._recipients = recipients

    def notify(
        self,
        recipient_user_ids: Iterable[Optional[int]],
        title: str,
        message: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Result[int]:
        sent = 0
        failed: list[int] = []
        for user_id in dict.fromkeys(u for u in recipient_user_ids if u is not None):
            notification = Notification(
                recipient_user_id=int(user_id),
                title=title,
                message=message,
                metadata=dict(metadata or {}),
            )
            try:
                self._gateway.send(notification)
                sent += 1
            except Exception:
                logger.exception("Failed to deliver notification %r to user %s", title, user_id)
                failed.append(int(user_id))

        if failed:
            return dependency_unavailable(f"Notification delivery failed for {len(failed)} recipient(s)")
        return ok(sent)

    def notify_role(
        self,
        role: str,
        title: str,
        message: str,
        metadata: Optional[dict[str, Any]] = None,
        *,
        exclude: Iterable[Optional[int]] = (),
    ) -> Result[int]:
        if self._recipients is None:
            return dependency_unavailable("No recipient resolver configured")
        try:
            users = list(self._recipients.users_with_role(role))
        except Exception:
            logger.exception("Failed to resolve recipients for role %s", role)
            return dependency_unavailable(f"Could not resolve recipients for role {role}")

        excluded = set(exclude)
        return self.notify([u for u in users if u not in excluded], title, message, metadata)
