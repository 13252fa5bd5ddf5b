from __future__ import annotations

from typing import Protocol, Sequence

from .model import Notification


class NotificationGateway(Protocol):
    """Delivery collaborator. Implementations may raise; callers treat it as best-effort."""

    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class RecipientResolver(Protocol):
    def users_with_role(self, role: str) -> Sequence[int]:
        raise NotImplementedError
