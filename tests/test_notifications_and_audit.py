"""Notification inbox, audit trail and stock ledger endpoint tests."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

import plastics_oms.main as main_module
from plastics_oms.core.security import get_password_hash
from plastics_oms.db import session as db_session
from plastics_oms.db.base import Base
from plastics_oms.main import app
from plastics_oms.models import Notification, StockItem, StockMovement, User
from plastics_oms.services.notification_service import notify_roles


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare_db(tmp_path: Path, monkeypatch, name: str) -> tuple[sessionmaker, dict[str, int]]:
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    monkeypatch.setattr(main_module, "SessionLocal", testing_session_local)

    ids: dict[str, int] = {}
    with testing_session_local() as db:
        for username, role, active in (
            ("boss", "ADMIN", True),
            ("accounting", "ACCOUNTING", True),
            ("warehouse", "WAREHOUSE", True),
            ("warehouse_old", "WAREHOUSE", False),
            ("production", "PRODUCTION", True),
        ):
            user = User(
                username=username,
                full_name=username.title(),
                password_hash=get_password_hash("secret123"),
                role=role,
                is_active=active,
            )
            db.add(user)
            db.flush()
            ids[username] = user.id
        db.commit()
    return testing_session_local, ids


def _login(client: TestClient, username: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": "secret123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_notify_roles_skips_inactive_users_and_actor(tmp_path: Path, monkeypatch) -> None:
    session_local, ids = _prepare_db(tmp_path, monkeypatch, "notify_roles.db")

    with session_local() as db:
        created = notify_roles(
            db,
            {"warehouse", "ADMIN"},
            title="Heads up",
            body="Truck arriving",
            type="info",
            ref_id=7,
            exclude_user_id=ids["boss"],
        )
        db.commit()

        assert [notification.user_id for notification in created] == [ids["warehouse"]]
        assert created[0].ref_id == "7"


def test_inbox_is_private_and_mark_read_ignores_foreign_ids(tmp_path: Path, monkeypatch) -> None:
    session_local, ids = _prepare_db(tmp_path, monkeypatch, "inbox.db")
    with session_local() as db:
        mine = Notification(user_id=ids["warehouse"], title="Mine", body="b", type="info")
        theirs = Notification(user_id=ids["production"], title="Theirs", body="b", type="info")
        db.add_all([mine, theirs])
        db.commit()
        mine_id, theirs_id = mine.id, theirs.id

    with TestClient(app) as client:
        headers = _login(client, "warehouse")
        inbox = client.get("/api/v1/notifications", headers=headers)
        marked = client.patch("/api/v1/notifications", json={"ids": [mine_id, theirs_id]}, headers=headers)
        noop = client.patch("/api/v1/notifications", json={"ids": []}, headers=headers)

    assert [row["title"] for row in inbox.json()] == ["Mine"]
    assert inbox.json()[0]["read"] is False
    assert marked.json() == {"success": True}
    assert noop.json() == {"success": True}
    with session_local() as db:
        assert db.get(Notification, mine_id).read is True
        assert db.get(Notification, theirs_id).read is False


def test_audit_trail_filters_and_permissions(tmp_path: Path, monkeypatch) -> None:
    session_local, ids = _prepare_db(tmp_path, monkeypatch, "audit.db")

    with TestClient(app) as client:
        accounting_headers = _login(client, "accounting")
        item = client.post(
            "/api/v1/stock",
            json={"product": "CPP", "micron": 25, "width": 1000, "kg": 750, "quantity": 3},
            headers=accounting_headers,
        ).json()
        client.patch(f"/api/v1/stock/{item['id']}", json={"kg": 700}, headers=_login(client, "boss"))

        inserts = client.get(
            "/api/v1/audit-logs",
            params={"table": "stock_items", "action": "insert"},
            headers=accounting_headers,
        )
        by_user = client.get("/api/v1/audit-logs", params={"user_id": ids["boss"]}, headers=accounting_headers)
        limited = client.get("/api/v1/audit-logs", params={"limit": 0}, headers=accounting_headers)
        forbidden = client.get("/api/v1/audit-logs", headers=_login(client, "warehouse"))

    assert [row["action"] for row in inserts.json()] == ["INSERT"]
    assert inserts.json()[0]["new_data"]["kg"] == 750
    assert [(row["table_name"], row["action"]) for row in by_user.json()] == [("stock_items", "UPDATE")]
    assert by_user.json()[0]["old_data"]["kg"] == 750
    assert len(limited.json()) == 1
    assert forbidden.status_code == 403


def test_stock_adjustments_write_movements(tmp_path: Path, monkeypatch) -> None:
    session_local, _ = _prepare_db(tmp_path, monkeypatch, "stock.db")

    with TestClient(app) as client:
        accounting_headers = _login(client, "accounting")
        admin_headers = _login(client, "boss")
        film = client.post("/api/v1/stock", json={"product": "BOPP", "kg": 500, "quantity": 1}, headers=accounting_headers)
        tape = client.post(
            "/api/v1/stock",
            json={"category": "tape", "product": "Tape 48mm", "kg": 0},
            headers=accounting_headers,
        )
        reduced = client.patch(f"/api/v1/stock/{film.json()['id']}", json={"kg": 420}, headers=admin_headers)
        accounting_edit = client.patch(
            f"/api/v1/stock/{film.json()['id']}",
            json={"kg": 1},
            headers=accounting_headers,
        )
        film_list = client.get("/api/v1/stock", headers=accounting_headers)
        tape_list = client.get("/api/v1/stock", params={"category": "tape"}, headers=accounting_headers)
        movements = client.get("/api/v1/stock/movements", params={"category": "film"}, headers=admin_headers)
        warehouse_movements = client.get("/api/v1/stock/movements", headers=_login(client, "warehouse"))
        removed = client.delete(f"/api/v1/stock/{tape.json()['id']}", headers=admin_headers)

    assert film.status_code == 201
    assert reduced.json()["kg"] == 420
    assert accounting_edit.status_code == 403
    assert [row["product"] for row in film_list.json()] == ["BOPP"]
    assert [row["product"] for row in tape_list.json()] == ["Tape 48mm"]
    assert [(row["movement_type"], row["kg"], row["reason"]) for row in movements.json()] == [
        ("out", 80.0, "adjustment"),
        ("in", 500.0, "stock_create"),
    ]
    assert warehouse_movements.status_code == 403
    assert removed.json() == {"success": True}

    with session_local() as db:
        tape_movements = db.scalars(
            select(StockMovement).where(StockMovement.stock_item_id == tape.json()["id"])
        ).all()
        assert tape_movements == []


def test_null_for_required_stock_fields_is_rejected(tmp_path: Path, monkeypatch) -> None:
    session_local, _ = _prepare_db(tmp_path, monkeypatch, "stock_null.db")

    with TestClient(app) as client:
        admin_headers = _login(client, "boss")
        item_id = client.post(
            "/api/v1/stock",
            json={"product": "CPP", "kg": 250, "quantity": 2, "lot_no": "L-7"},
            headers=admin_headers,
        ).json()["id"]

        rejected = [
            client.patch(f"/api/v1/stock/{item_id}", json={field: None}, headers=admin_headers)
            for field in ("category", "product", "kg", "quantity")
        ]
        cleared = client.patch(f"/api/v1/stock/{item_id}", json={"lot_no": None}, headers=admin_headers)

    assert [response.status_code for response in rejected] == [422, 422, 422, 422]
    assert cleared.status_code == 200
    assert cleared.json()["lot_no"] is None
    with session_local() as db:
        item = db.get(StockItem, item_id)
        assert item is not None
        assert item.kg == 250.0
        assert item.product == "CPP"
