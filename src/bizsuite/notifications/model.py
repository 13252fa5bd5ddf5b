from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Notification:
    recipient_user_id: int
    title: str
    message: str
    metadata: dict[str, Any] = field(default_factory=dict)
    notification_id: Optional[int] = None
