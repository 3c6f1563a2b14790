from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..models.user import UserSession


def create_session(db: Session, *, user_id: int, token_hash: str, expires_at: datetime) -> UserSession:
    session_row = UserSession(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
    db.add(session_row)
    db.flush()
    return session_row


def get_session_by_token_hash(db: Session, token_hash: str, *, now: datetime) -> UserSession | None:
    """Return the session for ``token_hash`` unless it has expired."""

    stmt = select(UserSession).where(
        UserSession.token_hash == token_hash,
        UserSession.expires_at > now,
    )
    return db.execute(stmt).scalars().first()


def delete_session_by_token_hash(db: Session, token_hash: str) -> bool:
    result = db.execute(delete(UserSession).where(UserSession.token_hash == token_hash))
    return result.rowcount > 0
