"""Shipping schedule endpoint tests."""

from datetime import timedelta
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
from plastics_oms.models import Notification, Order, ShippingSchedule, User
from plastics_oms.services.shipping_service import carry_over_overdue_schedules, mark_order_shipped
from plastics_oms.utils.time import today_utc


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare_db(tmp_path: Path, monkeypatch, name: str) -> tuple[sessionmaker, dict[str, int], int]:
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(main_module, "engine", engine)
    monkeypatch.setattr(main_module, "SessionLocal", testing_session_local)

    ids: dict[str, int] = {}
    with testing_session_local() as db:
        for username, role, full_name in (
            ("sales", "SALES", "Selin Sales"),
            ("shipping", "SHIPPING", "Sevki Shipping"),
            ("manager", "PRODUCTION", "Murat Bey - Fabrika Müdürü"),
            ("production", "PRODUCTION", "Pelin Production"),
        ):
            user = User(
                username=username,
                full_name=full_name,
                password_hash=get_password_hash("secret123"),
                role=role,
                is_active=True,
            )
            db.add(user)
            db.flush()
            ids[username] = user.id
        order = Order(
            order_no="ORD-000001",
            customer="Karadeniz Gida",
            product_type="CPP",
            quantity=800,
            source_type="stock",
            status="ready",
            created_by=ids["sales"],
        )
        db.add(order)
        db.commit()
        order_id = order.id
    return testing_session_local, ids, order_id


def _login(client: TestClient, username: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"username": username, "password": "secret123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_planning_notifies_shipping_and_lists_in_order(tmp_path: Path, monkeypatch) -> None:
    session_local, ids, order_id = _prepare_db(tmp_path, monkeypatch, "shipping_plan.db")
    today = today_utc().isoformat()

    with TestClient(app) as client:
        sales_headers = _login(client, "sales")
        late = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": today, "sequence_no": 2, "scheduled_time": "14:30"},
            headers=sales_headers,
        )
        untimed = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": today, "sequence_no": 1},
            headers=sales_headers,
        )
        early = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": today, "sequence_no": 1, "scheduled_time": "08:00"},
            headers=sales_headers,
        )
        shipper_create = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": today},
            headers=_login(client, "shipping"),
        )
        listed = client.get("/api/v1/shipping-schedules", headers=_login(client, "shipping"))
        production_list = client.get("/api/v1/shipping-schedules", headers=_login(client, "production"))

    assert late.status_code == 201
    assert late.json()["order"]["order_no"] == "ORD-000001"
    assert shipper_create.status_code == 403
    assert [row["id"] for row in listed.json()] == [early.json()["id"], untimed.json()["id"], late.json()["id"]]
    assert production_list.status_code == 403

    with session_local() as db:
        notified = db.scalars(select(Notification.user_id).where(Notification.type == "shipping_plan")).all()
        assert set(notified) == {ids["shipping"]}


def test_overdue_plans_are_carried_to_today(tmp_path: Path, monkeypatch) -> None:
    session_local, ids, order_id = _prepare_db(tmp_path, monkeypatch, "shipping_carry.db")
    today = today_utc()
    with session_local() as db:
        db.add_all(
            [
                ShippingSchedule(order_id=order_id, scheduled_date=today - timedelta(days=3), status="planned"),
                ShippingSchedule(order_id=order_id, scheduled_date=today - timedelta(days=3), status="cancelled"),
                ShippingSchedule(order_id=order_id, scheduled_date=today + timedelta(days=1), status="planned"),
            ]
        )
        db.commit()

    with TestClient(app) as client:
        listed = client.get("/api/v1/shipping-schedules", headers=_login(client, "manager"))

    assert listed.status_code == 200
    by_status = {(row["status"], row["scheduled_date"]): row for row in listed.json()}
    carried = by_status[("planned", today.isoformat())]
    assert carried["carry_count"] == 3
    assert ("cancelled", (today - timedelta(days=3)).isoformat()) in by_status
    assert by_status[("planned", (today + timedelta(days=1)).isoformat())]["carry_count"] == 0


def test_carry_over_counts_at_least_one_day(tmp_path: Path, monkeypatch) -> None:
    session_local, _, order_id = _prepare_db(tmp_path, monkeypatch, "shipping_carry_unit.db")
    today = today_utc()
    with session_local() as db:
        schedule = ShippingSchedule(
            order_id=order_id,
            scheduled_date=today - timedelta(days=1),
            status="planned",
            carry_count=2,
        )
        db.add(schedule)
        db.commit()

        assert carry_over_overdue_schedules(db, today) == 1
        assert carry_over_overdue_schedules(db, today) == 0
        db.refresh(schedule)
        assert schedule.carry_count == 3
        assert schedule.scheduled_date == today


def test_completion_ships_order_and_reopening_clears_it(tmp_path: Path, monkeypatch) -> None:
    session_local, ids, order_id = _prepare_db(tmp_path, monkeypatch, "shipping_complete.db")

    with TestClient(app) as client:
        schedule_id = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": today_utc().isoformat()},
            headers=_login(client, "sales"),
        ).json()["id"]
        shipping_headers = _login(client, "shipping")

        reschedule = client.patch(
            f"/api/v1/shipping-schedules/{schedule_id}",
            json={"sequence_no": 4},
            headers=shipping_headers,
        )
        completed = client.patch(
            f"/api/v1/shipping-schedules/{schedule_id}",
            json={"status": "completed"},
            headers=shipping_headers,
        )
        order_after_completion = completed.json()["order"]["status"]
        reopened = client.patch(
            f"/api/v1/shipping-schedules/{schedule_id}",
            json={"status": "planned"},
            headers=_login(client, "manager"),
        )
        missing = client.get("/api/v1/shipping-schedules/9999", headers=shipping_headers)

    assert reschedule.status_code == 403
    assert completed.json()["completed_by"] == ids["shipping"]
    assert completed.json()["completed_at"] is not None
    assert order_after_completion == "shipped"
    assert reopened.json()["completed_by"] is None
    assert reopened.json()["completed_at"] is None
    assert missing.status_code == 404


def test_null_for_required_schedule_fields_is_rejected(tmp_path: Path, monkeypatch) -> None:
    _, _, order_id = _prepare_db(tmp_path, monkeypatch, "shipping_null.db")
    scheduled_for = today_utc().isoformat()

    with TestClient(app) as client:
        manager_headers = _login(client, "manager")
        schedule_id = client.post(
            "/api/v1/shipping-schedules",
            json={"order_id": order_id, "scheduled_date": scheduled_for, "notes": "side door"},
            headers=manager_headers,
        ).json()["id"]

        rejected = [
            client.patch(f"/api/v1/shipping-schedules/{schedule_id}", json={field: None}, headers=manager_headers)
            for field in ("scheduled_date", "sequence_no", "status")
        ]
        cleared = client.patch(
            f"/api/v1/shipping-schedules/{schedule_id}",
            json={"notes": None, "scheduled_time": None},
            headers=manager_headers,
        )

    assert [response.status_code for response in rejected] == [422, 422, 422]
    assert cleared.status_code == 200
    assert cleared.json()["notes"] is None
    assert cleared.json()["scheduled_date"] == scheduled_for
    assert cleared.json()["status"] == "planned"


def test_mark_order_shipped_leaves_closed_orders_alone() -> None:
    closed = Order(customer="x", product_type="y", status="closed")
    ready = Order(customer="x", product_type="y", status="ready")

    assert mark_order_shipped(closed) is False
    assert closed.status == "closed"
    assert mark_order_shipped(ready) is True
    assert ready.status == "shipped"
    assert mark_order_shipped(None) is False
