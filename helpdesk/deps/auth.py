from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..models.user import User
from ..services.auth import authenticate, require_authenticated


def session_token_from_request(request: Request) -> str | None:
    """The session token travels in a header; browsers send the cookie instead."""

    token = (request.headers.get(settings.SESSION_TOKEN_HEADER) or "").strip()
    if token:
        return token
    return (request.cookies.get(settings.SESSION_COOKIE_NAME) or "").strip() or None


def _set_principal(request: Request, user: User) -> None:
    principal = f"user:{user.id}"
    principal_ctx_var.set(principal)
    request.state.principal = principal


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    user = require_authenticated(db, session_token_from_request(request))
    _set_principal(request, user)
    return user


def optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    user = authenticate(db, session_token_from_request(request))
    if user is not None:
        _set_principal(request, user)
    return user
