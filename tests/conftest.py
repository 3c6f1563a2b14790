import itertools
import os
import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DB_URL", "sqlite://")
# Cheap hashes keep the suite fast; production uses the default cost.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from helpdesk.core.choices import Role
from helpdesk.core.security import hash_password
from helpdesk.crud import users as user_store
from helpdesk.db.session import Base, create_db_engine

# Ensure models are registered so metadata tables are created
from helpdesk import models as _models  # noqa: F401

DEFAULT_PASSWORD = "password123"


@pytest.fixture()
def db_session():
    engine = create_db_engine("sqlite://")
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def make_user(db_session):
    counter = itertools.count(1)

    def _make(role=Role.MEMBER, password=DEFAULT_PASSWORD, **overrides):
        n = next(counter)
        user = user_store.create_user(
            db_session,
            name=overrides.get("name", f"User {n}"),
            username=overrides.get("username", f"user{n}"),
            email=overrides.get("email", f"user{n}@example.com"),
            password_hash=hash_password(password),
            role=role,
        )
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def admin(make_user):
    return make_user(role=Role.ADMIN, name="Ada Admin", username="admin", email="admin@example.com")


@pytest.fixture()
def member(make_user):
    return make_user(name="Mel Member", username="mel", email="mel@example.com")


@pytest.fixture()
def other_member(make_user):
    return make_user(name="Otto Other", username="otto", email="otto@example.com")
