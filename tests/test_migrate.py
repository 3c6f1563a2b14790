import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from helpdesk.db.migrate import run_migrations
from helpdesk.db.session import Base, create_db_engine


def test_fresh_schema_needs_nothing(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    Base.metadata.create_all(bind=engine)

    assert run_migrations(engine) == []
    index_names = {index["name"] for index in inspect(engine).get_indexes("sessions")}
    assert "ix_sessions_token_hash" in index_names
    engine.dispose()


def test_missing_unique_index_is_restored(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'bare.db'}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE labels (id INTEGER PRIMARY KEY, name TEXT NOT NULL)"))

    assert run_migrations(engine) == ["ix_labels_name"]
    assert run_migrations(engine) == []

    with engine.begin() as conn:
        conn.execute(text("INSERT INTO labels (name) VALUES ('bug')"))
    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(text("INSERT INTO labels (name) VALUES ('bug')"))
    engine.dispose()
