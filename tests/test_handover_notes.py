"""Shift handover note tests against the real table and its virtual fallback."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

import plastics_oms.main as main_module
from plastics_oms.core.security import get_password_hash
from plastics_oms.db import session as db_session
from plastics_oms.db.base import Base
from plastics_oms.main import app
from plastics_oms.models import AuditLog, Notification, User
from plastics_oms.services.handover_service import VIRTUAL_TABLE, clamp_limit


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare_db(tmp_path: Path, monkeypatch, name: str) -> tuple[Engine, sessionmaker, dict[str, int]]:
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    monkeypatch.setattr(main_module, "SessionLocal", testing_session_local)

    ids: dict[str, int] = {}
    with testing_session_local() as db:
        for username, role in (
            ("sales", "SALES"),
            ("warehouse", "WAREHOUSE"),
            ("warehouse2", "WAREHOUSE"),
            ("production", "PRODUCTION"),
        ):
            user = User(
                username=username,
                full_name=username.title(),
                password_hash=get_password_hash("secret123"),
                role=role,
                is_active=True,
            )
            db.add(user)
            db.flush()
            ids[username] = user.id
        db.commit()
    return engine, testing_session_local, ids


def _login(client: TestClient, username: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": "secret123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _note(**overrides) -> dict:
    payload = {
        "department": "warehouse",
        "shift_date": "2026-03-02",
        "title": "Forklift battery low",
        "details": "Charge before the night shift starts.",
        "priority": "high",
    }
    payload.update(overrides)
    return payload


def _drop_handover_table(engine: Engine) -> None:
    with engine.begin() as connection:
        connection.execute(text("DROP TABLE handover_notes"))


def test_clamp_limit() -> None:
    assert clamp_limit(None) == 250
    assert clamp_limit(0) == 1
    assert clamp_limit(10_000) == 500


def test_department_workers_see_only_their_department(tmp_path: Path, monkeypatch) -> None:
    _, session_local, ids = _prepare_db(tmp_path, monkeypatch, "handover_scope.db")

    with TestClient(app) as client:
        warehouse_headers = _login(client, "warehouse")
        production_headers = _login(client, "production")

        created = client.post("/api/v1/handover-notes", json=_note(), headers=warehouse_headers)
        client.post(
            "/api/v1/handover-notes",
            json=_note(department="production", title="Line 2 stopped", shift_date="2026-03-03"),
            headers=production_headers,
        )
        foreign = client.post(
            "/api/v1/handover-notes",
            json=_note(department="production"),
            headers=warehouse_headers,
        )
        colleague_view = client.get("/api/v1/handover-notes", headers=_login(client, "warehouse2"))
        other_department = client.get(
            "/api/v1/handover-notes",
            params={"department": "production"},
            headers=warehouse_headers,
        )
        manager_view = client.get("/api/v1/handover-notes", params={"department": "all"}, headers=_login(client, "sales"))
        production_single = client.get(f"/api/v1/handover-notes/{created.json()['id']}", headers=production_headers)

    assert created.status_code == 201
    assert created.json()["status"] == "open"
    assert created.json()["creator"] == {"id": ids["warehouse"], "full_name": "Warehouse", "role": "WAREHOUSE"}
    assert foreign.status_code == 403
    assert [row["title"] for row in colleague_view.json()] == ["Forklift battery low"]
    assert other_department.status_code == 403
    assert [row["title"] for row in manager_view.json()] == ["Line 2 stopped", "Forklift battery low"]
    assert production_single.status_code == 403

    with session_local() as db:
        recipients = set(db.scalars(select(Notification.user_id).where(Notification.type == "handover_note")).all())
        assert ids["warehouse2"] in recipients
        assert ids["sales"] in recipients
        assert ids["warehouse"] not in recipients
        audit = db.scalar(select(AuditLog).where(AuditLog.table_name == "handover_notes").limit(1))
        assert audit is not None


def test_resolve_reopen_and_delete_rules(tmp_path: Path, monkeypatch) -> None:
    _, session_local, ids = _prepare_db(tmp_path, monkeypatch, "handover_resolve.db")

    with TestClient(app) as client:
        warehouse_headers = _login(client, "warehouse")
        colleague_headers = _login(client, "warehouse2")
        sales_headers = _login(client, "sales")
        note_id = client.post("/api/v1/handover-notes", json=_note(), headers=warehouse_headers).json()["id"]

        colleague_edit = client.patch(
            f"/api/v1/handover-notes/{note_id}",
            json={"title": "Changed by colleague"},
            headers=colleague_headers,
        )
        move_department = client.patch(
            f"/api/v1/handover-notes/{note_id}",
            json={"department": "shipping"},
            headers=warehouse_headers,
        )
        resolved = client.patch(
            f"/api/v1/handover-notes/{note_id}",
            json={"status": "resolved", "resolved_note": "  Battery swapped  "},
            headers=warehouse_headers,
        )
        creator_delete_resolved = client.delete(f"/api/v1/handover-notes/{note_id}", headers=warehouse_headers)
        reopened = client.patch(
            f"/api/v1/handover-notes/{note_id}",
            json={"status": "open"},
            headers=sales_headers,
        )
        filtered = client.get("/api/v1/handover-notes", params={"status": "open"}, headers=sales_headers)
        manager_delete = client.delete(f"/api/v1/handover-notes/{note_id}", headers=sales_headers)
        missing = client.get(f"/api/v1/handover-notes/{note_id}", headers=sales_headers)

    assert colleague_edit.status_code == 403
    assert move_department.status_code == 403
    assert resolved.status_code == 200
    assert resolved.json()["status"] == "resolved"
    assert resolved.json()["resolved_note"] == "Battery swapped"
    assert resolved.json()["resolver"]["id"] == ids["warehouse"]
    assert resolved.json()["resolved_at"] is not None
    assert creator_delete_resolved.status_code == 403
    assert reopened.json()["resolved_by"] is None
    assert reopened.json()["resolved_at"] is None
    assert reopened.json()["resolved_note"] is None
    assert [row["id"] for row in filtered.json()] == [note_id]
    assert manager_delete.json() == {"success": True}
    assert missing.status_code == 404


def test_creator_may_delete_open_note(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch, "handover_delete.db")

    with TestClient(app) as client:
        headers = _login(client, "warehouse")
        note_id = client.post("/api/v1/handover-notes", json=_note(), headers=headers).json()["id"]
        response = client.delete(f"/api/v1/handover-notes/{note_id}", headers=headers)

    assert response.json() == {"success": True}


def test_create_rejects_invalid_payload(tmp_path: Path, monkeypatch) -> None:
    _prepare_db(tmp_path, monkeypatch, "handover_invalid.db")

    with TestClient(app) as client:
        headers = _login(client, "warehouse")
        short_title = client.post("/api/v1/handover-notes", json=_note(title="ab"), headers=headers)
        unknown_department = client.post("/api/v1/handover-notes", json=_note(department="kitchen"), headers=headers)
        empty_patch = client.patch("/api/v1/handover-notes/1", json={}, headers=headers)

    assert short_title.status_code == 422
    assert unknown_department.status_code == 422
    assert empty_patch.status_code == 422


def test_virtual_table_serves_notes_when_table_is_missing(tmp_path: Path, monkeypatch) -> None:
    engine, session_local, ids = _prepare_db(tmp_path, monkeypatch, "handover_virtual.db")

    with TestClient(app) as client:
        _drop_handover_table(engine)
        warehouse_headers = _login(client, "warehouse")
        sales_headers = _login(client, "sales")

        first = client.post("/api/v1/handover-notes", json=_note(), headers=warehouse_headers)
        second = client.post(
            "/api/v1/handover-notes",
            json=_note(title="Dock door jammed", shift_date="2026-03-04"),
            headers=warehouse_headers,
        )
        note_id = first.json()["id"]

        listed = client.get("/api/v1/handover-notes", headers=_login(client, "warehouse2"))
        ranged = client.get(
            "/api/v1/handover-notes",
            params={"date_from": "2026-03-03", "date_to": "2026-03-31"},
            headers=sales_headers,
        )
        single = client.get(f"/api/v1/handover-notes/{note_id}", headers=warehouse_headers)
        production_single = client.get(f"/api/v1/handover-notes/{note_id}", headers=_login(client, "production"))
        resolved = client.patch(
            f"/api/v1/handover-notes/{note_id}",
            json={"status": "resolved", "resolved_note": "Done"},
            headers=sales_headers,
        )
        open_only = client.get("/api/v1/handover-notes", params={"status": "open"}, headers=sales_headers)
        deleted = client.delete(f"/api/v1/handover-notes/{second.json()['id']}", headers=warehouse_headers)
        after_delete = client.get("/api/v1/handover-notes", headers=sales_headers)

    assert first.status_code == 201
    assert isinstance(note_id, str)
    assert first.json()["status"] == "open"
    assert first.json()["shift_date"] == "2026-03-02"
    assert [row["title"] for row in listed.json()] == ["Dock door jammed", "Forklift battery low"]
    assert [row["title"] for row in ranged.json()] == ["Dock door jammed"]
    assert single.json()["creator"]["id"] == ids["warehouse"]
    assert production_single.status_code == 403
    assert resolved.json()["status"] == "resolved"
    assert resolved.json()["resolved_by"] == ids["sales"]
    assert resolved.json()["resolver"]["role"] == "SALES"
    assert [row["title"] for row in open_only.json()] == ["Dock door jammed"]
    assert deleted.json() == {"success": True}
    assert [row["id"] for row in after_delete.json()] == [note_id]

    with session_local() as db:
        actions = db.scalars(
            select(AuditLog.action).where(AuditLog.table_name == VIRTUAL_TABLE).order_by(AuditLog.id.asc())
        ).all()
        assert actions == ["INSERT", "INSERT", "UPDATE", "DELETE"]
        notified = db.scalar(select(Notification).where(Notification.type == "handover_note").limit(1))
        assert notified is not None
        assert notified.ref_id == note_id


@pytest.mark.parametrize("note_id", ["deadbeef", "12345"])
def test_virtual_lookup_of_unknown_note_is_not_found(tmp_path: Path, monkeypatch, note_id: str) -> None:
    engine, _, _ = _prepare_db(tmp_path, monkeypatch, "handover_virtual_missing.db")

    with TestClient(app) as client:
        _drop_handover_table(engine)
        response = client.get(f"/api/v1/handover-notes/{note_id}", headers=_login(client, "sales"))

    assert response.status_code == 404
