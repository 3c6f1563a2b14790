"""SQLAlchemy engine, session factory and the transaction scope."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event, insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings
from ..core.errors import StorageFailure

# ``Base`` is the parent class for every SQLAlchemy model defined in helpdesk/models.
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """Build an engine; SQLite gets thread sharing and enforced foreign keys."""

    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live per connection, so every checkout must reuse one.
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on the success path only; any exception rolls everything back.

    Business errors propagate unchanged. Driver and constraint failures are
    reported as ``StorageFailure``.
    """

    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageFailure() from exc
    except BaseException:
        db.rollback()
        raise


def insert_ignoring_conflicts(db: Session, table, values: dict[str, Any]) -> None:
    """INSERT that silently keeps the existing row when a unique key collides.

    SQLite and PostgreSQL do this in one statement. Other dialects fall back to
    a SAVEPOINT so the conflict does not poison the enclosing transaction.
    """

    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    else:
        try:
            with db.begin_nested():
                db.execute(insert(table).values(**values))
        except IntegrityError:
            # Duplicate key: the existing row stands.
            pass
        return
    db.execute(dialect_insert(table).values(**values).on_conflict_do_nothing())
