"""User administration.

Uniqueness of email and username is checked inside the same transaction that
writes the row, and a role change can never leave the system without an admin.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.choices import Role
from ..core.errors import (
    EmailAlreadyInUse,
    LastAdminInvariantViolation,
    NotFound,
    PermissionDenied,
    StorageFailure,
    UsernameAlreadyInUse,
)
from ..core.security import hash_password
from ..crud import users as user_store
from ..db.session import transaction
from ..models.user import User
from .policy import can_change_role, can_delete_user, can_demote, can_manage_users

logger = logging.getLogger("helpdesk.users")


def _ensure_email_free(db: Session, email: str) -> None:
    if user_store.get_user_by_email(db, email) is not None:
        raise EmailAlreadyInUse()


def _ensure_username_free(db: Session, username: str) -> None:
    if user_store.get_user_by_username(db, username) is not None:
        raise UsernameAlreadyInUse()


@contextmanager
def _unique_violation_as_field_error(
    db: Session,
    *,
    email: str | None = None,
    username: str | None = None,
    exclude_id: int | None = None,
) -> Iterator[None]:
    """Report a unique key lost to a concurrent writer as the colliding field.

    Wraps ``transaction``: by the time ``StorageFailure`` arrives the session
    has been rolled back, so the lookup runs against committed rows.
    """

    try:
        yield
    except StorageFailure as exc:
        if not isinstance(exc.__cause__, IntegrityError):
            raise
        field = user_store.find_unique_conflict(db, email=email, username=username, exclude_id=exclude_id)
        if field == "email":
            raise EmailAlreadyInUse() from exc
        if field == "username":
            raise UsernameAlreadyInUse() from exc
        raise


def get_user(db: Session, user_id: int) -> User:
    user = user_store.get_user_by_id(db, user_id)
    if user is None:
        raise NotFound("user")
    return user


def list_users(db: Session) -> list[User]:
    return user_store.list_users(db)


def create_user(
    db: Session,
    actor: User,
    *,
    name: str,
    username: str,
    email: str,
    password: str,
    role: Role = Role.MEMBER,
) -> User:
    if not can_manage_users(actor):
        raise PermissionDenied("only admins can create users")
    with _unique_violation_as_field_error(db, email=email, username=username), transaction(db):
        _ensure_email_free(db, email)
        _ensure_username_free(db, username)
        user = user_store.create_user(
            db,
            name=name,
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=Role(role),
        )
    logger.info(
        "users.created",
        extra={"extra_data": {"user_id": user.id, "role": Role(role).value, "actor_id": actor.id}},
    )
    return user


def patch_user(
    db: Session,
    actor: User,
    target_id: int,
    *,
    name: str | None = None,
    username: str | None = None,
    email: str | None = None,
    role: Role | None = None,
) -> User:
    """Sparse update of a user. Members may edit themselves, except their role."""

    if not can_manage_users(actor) and actor.id != target_id:
        raise PermissionDenied("only admins can update other users")
    unique_guard = _unique_violation_as_field_error(db, email=email, username=username, exclude_id=target_id)
    with unique_guard, transaction(db):
        target = user_store.get_user_by_id(db, target_id)
        if target is None:
            raise NotFound("user")
        values: dict[str, object] = {}
        if name is not None and name != target.name:
            values["name"] = name
        if email is not None and email != target.email:
            _ensure_email_free(db, email)
            values["email"] = email
        if username is not None and username != target.username:
            _ensure_username_free(db, username)
            values["username"] = username
        if role is not None and Role(role) is not Role(target.role):
            if not can_change_role(actor):
                raise PermissionDenied("only admins can update roles")
            if not can_demote(target, Role(role), user_store.count_admins(db)):
                raise LastAdminInvariantViolation()
            values["role"] = Role(role)
        if values:
            user_store.update_user_by_id(db, target_id, values)
    if "role" in values:
        logger.info(
            "users.role_changed",
            extra={"extra_data": {"user_id": target_id, "role": values["role"].value, "actor_id": actor.id}},
        )
    elif values:
        logger.info(
            "users.patched",
            extra={"extra_data": {"user_id": target_id, "fields": sorted(values), "actor_id": actor.id}},
        )
    return target


def delete_user(db: Session, actor: User, target_id: int) -> None:
    if not can_delete_user(actor, target_id):
        if actor.id == target_id:
            raise PermissionDenied("you can't delete yourself")
        raise PermissionDenied("only admins can delete users")
    with transaction(db):
        if user_store.get_user_by_id(db, target_id) is None:
            raise NotFound("user")
        user_store.delete_user_by_id(db, target_id)
    logger.info("users.deleted", extra={"extra_data": {"user_id": target_id, "actor_id": actor.id}})
