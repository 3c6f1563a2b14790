"""Storage operations for users. Callers own the transaction; nothing here commits."""

from __future__ import annotations

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ..core.choices import Role
from ..models.assignment import Assignment
from ..models.comment import Comment
from ..models.label import Label
from ..models.ticket import Ticket
from ..models.user import User, UserSession


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalars().first()


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.execute(select(User).where(User.username == username)).scalars().first()


def list_users(db: Session) -> list[User]:
    return list(db.execute(select(User).order_by(User.id)).scalars().all())


def count_users(db: Session) -> int:
    return db.execute(select(func.count(User.id))).scalar_one()


def count_admins(db: Session) -> int:
    return db.execute(select(func.count(User.id)).where(User.role == Role.ADMIN)).scalar_one()


def create_user(
    db: Session,
    *,
    name: str,
    username: str,
    email: str,
    password_hash: str,
    role: Role,
) -> User:
    user = User(
        name=name,
        username=username,
        email=email,
        password_hash=password_hash,
        role=role,
    )
    db.add(user)
    db.flush()
    return user


def update_user_by_id(db: Session, user_id: int, values: dict) -> User | None:
    """Apply ``values`` to the user's columns. Unknown keys are ignored."""

    user = db.get(User, user_id)
    if user is None:
        return None
    for key, value in values.items():
        if key in {"name", "username", "email", "role", "password_hash"}:
            setattr(user, key, value)
    db.flush()
    return user


def delete_user_by_id(db: Session, user_id: int) -> bool:
    """Delete a user plus their sessions and assignments.

    Rows the user authored keep existing with the reference cleared.
    """

    db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    db.execute(delete(Assignment).where(Assignment.user_id == user_id))
    db.execute(update(Assignment).where(Assignment.assigned_by == user_id).values(assigned_by=None))
    db.execute(update(Ticket).where(Ticket.created_by == user_id).values(created_by=None))
    db.execute(update(Comment).where(Comment.user_id == user_id).values(user_id=None))
    db.execute(update(Label).where(Label.created_by == user_id).values(created_by=None))
    result = db.execute(delete(User).where(User.id == user_id))
    db.expire_all()
    return result.rowcount > 0


def find_unique_conflict(
    db: Session,
    *,
    email: str | None = None,
    username: str | None = None,
    exclude_id: int | None = None,
) -> str | None:
    """Name the unique column (``email`` or ``username``) another user already holds."""

    for field, column, value in (("email", User.email, email), ("username", User.username, username)):
        if value is None:
            continue
        stmt = select(User.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.execute(stmt).first() is not None:
            return field
    return None
