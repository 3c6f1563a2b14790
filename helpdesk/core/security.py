from __future__ import annotations

import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt

from .config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""

    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long password.
        return False


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password(secrets.token_hex(16))


def burn_password_check(plain: str) -> None:
    """Spend one bcrypt verification when there is no user to check against."""

    verify_password(plain, _dummy_password_hash())


def generate_session_token() -> str:
    return secrets.token_hex(settings.SESSION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    digest = hashlib.sha256(token.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


def session_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(days=settings.SESSION_TTL_DAYS)
