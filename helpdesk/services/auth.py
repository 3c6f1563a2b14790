"""Credential and session management.

Login issues an opaque random token and stores only its SHA-256 digest, so a
leaked database cannot be replayed as sessions. Authentication hashes the
presented token and looks for an unexpired row with that digest; a wrong,
unknown or expired token all produce the same ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..core.choices import Role
from ..core.errors import InvalidCredentials, SessionInvalidOrExpired, SetupAlreadyDone
from ..core.security import (
    burn_password_check,
    generate_session_token,
    hash_password,
    hash_token,
    session_expiry,
    utcnow,
    verify_password,
)
from ..crud import sessions as session_store
from ..crud import users as user_store
from ..db.session import transaction
from ..models.user import User

logger = logging.getLogger("helpdesk.auth")


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


def login(db: Session, email: str, password: str) -> LoginResult:
    user = user_store.get_user_by_email(db, email)
    if user is None:
        burn_password_check(password)
        logger.info("auth.login_failed", extra={"extra_data": {"reason": "unknown_email"}})
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info("auth.login_failed", extra={"extra_data": {"user_id": user.id, "reason": "bad_password"}})
        raise InvalidCredentials()

    token = generate_session_token()
    with transaction(db):
        session_store.create_session(
            db,
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=session_expiry(),
        )
    logger.info("auth.login", extra={"extra_data": {"user_id": user.id}})
    return LoginResult(token=token, user=user)


def authenticate(db: Session, token: str | None) -> User | None:
    if not token:
        return None
    session_row = session_store.get_session_by_token_hash(db, hash_token(token), now=utcnow())
    if session_row is None:
        return None
    return user_store.get_user_by_id(db, session_row.user_id)


def require_authenticated(db: Session, token: str | None) -> User:
    user = authenticate(db, token)
    if user is None:
        raise SessionInvalidOrExpired()
    return user


def logout(db: Session, token: str | None) -> bool:
    """Revoke the session behind ``token`` ahead of its expiry."""

    if not token:
        return False
    with transaction(db):
        removed = session_store.delete_session_by_token_hash(db, hash_token(token))
    if removed:
        logger.info("auth.logout")
    return removed


def is_setup_done(db: Session) -> bool:
    return user_store.count_users(db) > 0


def setup(db: Session, *, name: str, username: str, email: str, password: str) -> User:
    """Create the very first account, as admin. Refused once any user exists."""

    with transaction(db):
        if user_store.count_users(db) > 0:
            raise SetupAlreadyDone()
        user = user_store.create_user(
            db,
            name=name,
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=Role.ADMIN,
        )
    logger.info("auth.setup", extra={"extra_data": {"user_id": user.id}})
    return user


__all__ = [
    "LoginResult",
    "authenticate",
    "is_setup_done",
    "login",
    "logout",
    "require_authenticated",
    "setup",
]
