"""Closed enumerations shared by models, services and schemas."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    MEMBER = "member"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    """Persist enum members by value so the stored strings match the API."""

    return [member.value for member in enum_cls]


__all__ = ["Role", "TicketStatus", "enum_values"]
