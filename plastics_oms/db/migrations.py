"""Lightweight schema migrations for SQLite databases."""

from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Columns added after the first deployments; (table, column, DDL fragment).
LEGACY_COLUMN_BACKFILLS: list[tuple[str, str, str]] = [
    ("users", "full_name", "VARCHAR(255) NOT NULL DEFAULT ''"),
    ("orders", "source_type", "VARCHAR(16) NOT NULL DEFAULT 'stock'"),
    ("orders", "stock_ready_kg", "FLOAT NOT NULL DEFAULT 0"),
    ("orders", "production_ready_kg", "FLOAT NOT NULL DEFAULT 0"),
    ("orders", "closed_by", "INTEGER NULL"),
    ("orders", "closed_at", "DATETIME NULL"),
    ("order_tasks", "message", "TEXT NULL"),
    ("shipping_schedules", "carry_count", "INTEGER NOT NULL DEFAULT 0"),
]


def _sqlite_column_names(connection: Connection, table_name: str) -> set[str]:
    """Return column names for a SQLite table using PRAGMA table_info."""
    rows = connection.execute(text(f"PRAGMA table_info({table_name});")).mappings().all()
    return {str(row["name"]) for row in rows}


def table_exists(db: Session, table_name: str) -> bool:
    """Return whether ``table_name`` exists on the session's bound database."""
    return inspect(db.connection()).has_table(table_name)


def ensure_sqlite_schema(engine: Engine) -> None:
    """Apply lightweight schema updates for legacy SQLite databases."""
    if engine.dialect.name != "sqlite":
        return

    with engine.begin() as connection:
        table_rows = connection.execute(text("SELECT name FROM sqlite_master WHERE type='table';")).all()
        table_names: set[str] = {str(row[0]) for row in table_rows}

        for table_name, column_name, ddl in LEGACY_COLUMN_BACKFILLS:
            if table_name not in table_names:
                continue
            if column_name in _sqlite_column_names(connection, table_name):
                continue
            connection.execute(text(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl}"))
            logger.info("[MIGRATION] Added %s.%s", table_name, column_name)
