from __future__ import annotations

from bizsuite.core.result import ErrorKind
from bizsuite.notifications.service import Notifier


class FlakyGateway:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, notification):
        if notification.recipient_user_id in self.failing:
            raise ConnectionError("smtp down")
        self.sent.append(notification)


class FakeRoles:
    def __init__(self, users=None, error=None):
        self._users = users or []
        self._error = error

    def users_with_role(self, role):
        if self._error:
            raise self._error
        return self._users


def test_delivers_once_per_recipient_and_skips_none():
    gateway = FlakyGateway()

    result = Notifier(gateway).notify([1, None, 2, 1], "Hi", "Hello", {"k": 1})

    assert result.value == 2
    assert [n.recipient_user_id for n in gateway.sent] == [1, 2]
    assert gateway.sent[0].metadata == {"k": 1}


def test_failing_gateway_reports_dependency_unavailable_without_raising():
    gateway = FlakyGateway(failing={2})

    result = Notifier(gateway).notify([1, 2, 3], "Hi", "Hello")

    assert result.kind == ErrorKind.DEPENDENCY_UNAVAILABLE
    assert [n.recipient_user_id for n in gateway.sent] == [1, 3]


def test_notify_role_excludes_users():
    gateway = FlakyGateway()

    Notifier(gateway, FakeRoles([4, 5, 6])).notify_role("support_agent", "New", "Ticket", exclude=[5])

    assert [n.recipient_user_id for n in gateway.sent] == [4, 6]


def test_notify_role_survives_resolver_failure():
    result = Notifier(FlakyGateway(), FakeRoles(error=RuntimeError("db gone"))).notify_role("x", "t", "m")

    assert result.kind == ErrorKind.DEPENDENCY_UNAVAILABLE


def test_notify_role_without_resolver():
    assert Notifier(FlakyGateway()).notify_role("x", "t", "m").kind == ErrorKind.DEPENDENCY_UNAVAILABLE
