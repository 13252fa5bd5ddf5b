"""In-process domain events.

Side effects that used to live in "before save" persistence hooks (late
detection, department headcount) are published as events after a mutation
and consumed by dedicated handlers, so guards stay pure.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, DefaultDict, List, Type

from ..common.datetime_utils import now_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: datetime = field(default_factory=now_local, kw_only=True)


Handler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous dispatcher; handlers run in subscription order."""

    def __init__(self):
        self._handlers: DefaultDict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for %s", handler, type(event).__name__)
                raise
