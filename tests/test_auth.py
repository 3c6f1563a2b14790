"""Tests for login, session lookup, logout and first-run setup."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from helpdesk.core.choices import Role
from helpdesk.core.config import settings
from helpdesk.core.errors import InvalidCredentials, SessionInvalidOrExpired, SetupAlreadyDone
from helpdesk.core.security import hash_token, utcnow
from helpdesk.models.user import UserSession
from helpdesk.services import auth as auth_service

from conftest import DEFAULT_PASSWORD


def _session_count(db):
    return db.execute(select(func.count(UserSession.id))).scalar_one()


def test_login_then_authenticate_returns_same_user(db_session, member):
    result = auth_service.login(db_session, member.email, DEFAULT_PASSWORD)

    assert result.user.id == member.id
    assert auth_service.authenticate(db_session, result.token).id == member.id


def test_token_has_expected_entropy(db_session, member):
    token = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token
    assert len(token) == 2 * settings.SESSION_TOKEN_BYTES


def test_only_token_digest_is_stored(db_session, member):
    token = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token

    row = db_session.execute(select(UserSession)).scalars().one()
    assert row.token_hash == hash_token(token)
    assert row.token_hash != token
    assert token not in row.token_hash


def test_every_login_opens_a_new_session(db_session, member):
    first = auth_service.login(db_session, member.email, DEFAULT_PASSWORD)
    second = auth_service.login(db_session, member.email, DEFAULT_PASSWORD)

    assert first.token != second.token
    assert _session_count(db_session) == 2


def test_wrong_password_is_rejected(db_session, member):
    with pytest.raises(InvalidCredentials):
        auth_service.login(db_session, member.email, "not-the-password")
    assert _session_count(db_session) == 0


def test_unknown_email_looks_like_wrong_password(db_session, member):
    with pytest.raises(InvalidCredentials) as unknown:
        auth_service.login(db_session, "nobody@example.com", DEFAULT_PASSWORD)
    with pytest.raises(InvalidCredentials) as wrong:
        auth_service.login(db_session, member.email, "not-the-password")
    assert unknown.value.message == wrong.value.message


@pytest.mark.parametrize("token", [None, "", "garbage", "0" * 32])
def test_unknown_tokens_do_not_authenticate(db_session, member, token):
    assert auth_service.authenticate(db_session, token) is None


def test_expired_session_does_not_authenticate(db_session, member, monkeypatch):
    token = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token
    later = utcnow() + timedelta(days=settings.SESSION_TTL_DAYS, minutes=1)
    monkeypatch.setattr(auth_service, "utcnow", lambda: later)

    assert auth_service.authenticate(db_session, token) is None
    with pytest.raises(SessionInvalidOrExpired):
        auth_service.require_authenticated(db_session, token)


def test_session_is_valid_just_before_expiry(db_session, member, monkeypatch):
    token = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token
    earlier = utcnow() + timedelta(days=settings.SESSION_TTL_DAYS) - timedelta(minutes=1)
    monkeypatch.setattr(auth_service, "utcnow", lambda: earlier)

    assert auth_service.authenticate(db_session, token).id == member.id


def test_logout_revokes_only_that_session(db_session, member):
    first = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token
    second = auth_service.login(db_session, member.email, DEFAULT_PASSWORD).token

    assert auth_service.logout(db_session, first) is True
    assert auth_service.authenticate(db_session, first) is None
    assert auth_service.authenticate(db_session, second).id == member.id
    assert auth_service.logout(db_session, first) is False


def test_setup_creates_first_admin_once(db_session):
    assert not auth_service.is_setup_done(db_session)

    user = auth_service.setup(
        db_session, name="First Admin", username="first", email="first@example.com", password="s3cret-pass"
    )
    assert Role(user.role) is Role.ADMIN
    assert auth_service.is_setup_done(db_session)
    assert auth_service.login(db_session, "first@example.com", "s3cret-pass").user.id == user.id

    with pytest.raises(SetupAlreadyDone):
        auth_service.setup(
            db_session, name="Second", username="second", email="second@example.com", password="s3cret-pass"
        )
