"""Idempotent SQLite schema upkeep run at startup.

``Base.metadata.create_all`` never touches a table that already exists, so the
unique indexes the get-or-create paths depend on are (re)asserted here. Nothing
drops or rewrites data.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger("helpdesk.migrate")

# (table, index name, columns, unique)
REQUIRED_INDEXES: tuple[tuple[str, str, tuple[str, ...], bool], ...] = (
    ("assignments", "uq_assignments_ticket_user", ("ticket_id", "user_id"), True),
    ("sessions", "ix_sessions_token_hash", ("token_hash",), True),
    ("sessions", "ix_sessions_expires_at", ("expires_at",), False),
    ("labels", "ix_labels_name", ("name",), True),
    ("users", "ix_users_email", ("email",), True),
    ("users", "ix_users_username", ("username",), True),
)


def _index_names(engine: Engine, table: str) -> set[str]:
    # Named UNIQUE constraints count too: SQLite backs them with an index.
    inspector = inspect(engine)
    names = {index["name"] for index in inspector.get_indexes(table)}
    names.update(constraint["name"] for constraint in inspector.get_unique_constraints(table))
    return {name for name in names if name}


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> list[str]:
    """Create any missing required index on SQLite; returns the names created."""

    if engine.dialect.name != "sqlite":
        return []
    created: list[str] = []
    existing_tables = set(inspect(engine).get_table_names())
    for table, name, cols, unique in REQUIRED_INDEXES:
        if table not in existing_tables or name in _index_names(engine, table):
            continue
        _create_index_if_not_exists(engine, table, name, cols, unique=unique)
        created.append(name)
    if created:
        logger.info("db.indexes_created", extra={"extra_data": {"indexes": created}})
    return created
