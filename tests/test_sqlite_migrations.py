"""Tests for lightweight SQLite schema migrations."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

import plastics_oms.main as main_module
from plastics_oms.db import session as db_session
from plastics_oms.db.migrations import ensure_sqlite_schema
from plastics_oms.main import app


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _create_legacy_schema(engine: Engine) -> None:
    with engine.begin() as connection:
        connection.execute(
            text(
                """
                CREATE TABLE users (
                    id INTEGER NOT NULL,
                    username VARCHAR(128) NOT NULL,
                    password_hash VARCHAR(255) NOT NULL,
                    role VARCHAR(32) NOT NULL,
                    email VARCHAR(255),
                    is_active BOOLEAN NOT NULL,
                    created_at DATETIME NOT NULL,
                    last_login_at DATETIME,
                    PRIMARY KEY (id),
                    UNIQUE (username)
                )
                """
            )
        )
        connection.execute(
            text(
                """
                CREATE TABLE orders (
                    id INTEGER NOT NULL,
                    order_no VARCHAR(16),
                    customer VARCHAR(255) NOT NULL,
                    product_type VARCHAR(255) NOT NULL,
                    micron FLOAT,
                    width FLOAT,
                    quantity FLOAT,
                    unit VARCHAR(16) NOT NULL DEFAULT 'kg',
                    trim_width FLOAT,
                    price NUMERIC(12, 2),
                    payment_term VARCHAR(64),
                    currency VARCHAR(8) NOT NULL DEFAULT 'TRY',
                    ship_date DATE,
                    priority VARCHAR(16) NOT NULL DEFAULT 'normal',
                    notes TEXT,
                    status VARCHAR(32) NOT NULL,
                    created_by INTEGER,
                    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (id)
                )
                """
            )
        )
        connection.execute(
            text(
                "INSERT INTO orders (id, order_no, customer, product_type, quantity, status) "
                "VALUES (1, 'ORD-000001', 'Legacy Ltd', 'BOPP', 500, 'confirmed')"
            )
        )


def _column_names(engine: Engine, table_name: str) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns(table_name)}


def test_ensure_sqlite_schema_backfills_legacy_columns(tmp_path: Path) -> None:
    engine = _build_test_engine(tmp_path / "legacy.db")
    _create_legacy_schema(engine)

    ensure_sqlite_schema(engine)
    ensure_sqlite_schema(engine)

    assert "full_name" in _column_names(engine, "users")
    assert {"source_type", "stock_ready_kg", "production_ready_kg", "closed_by", "closed_at"} <= _column_names(
        engine, "orders"
    )
    with engine.connect() as connection:
        row = connection.execute(
            text("SELECT source_type, stock_ready_kg, production_ready_kg FROM orders WHERE id = 1")
        ).one()
    assert row.source_type == "stock"
    assert row.stock_ready_kg == 0
    assert row.production_ready_kg == 0


def test_ensure_sqlite_schema_skips_missing_tables(tmp_path: Path) -> None:
    engine = _build_test_engine(tmp_path / "empty.db")

    ensure_sqlite_schema(engine)

    assert not inspect(engine).has_table("shipping_schedules")


def test_startup_upgrades_legacy_database(tmp_path: Path, monkeypatch) -> None:
    engine = _build_test_engine(tmp_path / "startup.db")
    _create_legacy_schema(engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    monkeypatch.setattr(main_module, "SessionLocal", testing_session_local)

    with TestClient(app) as client:
        login = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin123"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        order = client.get("/api/v1/orders/1", headers=headers)

    assert login.status_code == 200
    assert order.status_code == 200
    assert order.json()["source_type"] == "stock"
    assert order.json()["ready_metrics"]["is_ready"] is False
    assert inspect(engine).has_table("shipping_schedules")
