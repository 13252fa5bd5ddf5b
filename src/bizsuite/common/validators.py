from __future__ import annotations

from typing import Optional


def require_non_empty(value: Optional[str], field_name: str) -> Optional[str]:
    if not value or not value.strip():
        return f"{field_name} is required"
    return None


def require_range(value: float, field_name: str, low: float, high: float) -> Optional[str]:
    if value is None or value < low or value > high:
        return f"{field_name} must be between {low} and {high}"
    return None


def collect(*messages: Optional[str]) -> list[str]:
    return [m for m in messages if m]
