"""Authorization decisions. Pure functions: no I/O, no session access.

``actor`` and ``target`` are anything carrying ``id`` and ``role`` (normally a
``User`` row).
"""

from __future__ import annotations

from typing import Protocol

from ..core.choices import Role


class Principal(Protocol):
    id: int
    role: Role


def _is_admin(actor: Principal) -> bool:
    return Role(actor.role) is Role.ADMIN


def can_manage_users(actor: Principal) -> bool:
    return _is_admin(actor)


def can_mutate(actor: Principal, owner_id: int | None) -> bool:
    """Admins may change anything; everyone else only what they created."""

    if _is_admin(actor):
        return True
    return owner_id is not None and actor.id == owner_id


def can_change_role(actor: Principal) -> bool:
    return _is_admin(actor)


def can_demote(target: Principal, new_role: Role, admin_count: int) -> bool:
    """False only when the change would leave the system without an admin."""

    demoting = _is_admin(target) and Role(new_role) is Role.MEMBER
    return not (demoting and admin_count <= 1)


def can_delete_user(actor: Principal, target_id: int) -> bool:
    return _is_admin(actor) and actor.id != target_id


__all__ = [
    "Principal",
    "can_change_role",
    "can_delete_user",
    "can_demote",
    "can_manage_users",
    "can_mutate",
]
