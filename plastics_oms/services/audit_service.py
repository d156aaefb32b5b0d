"""Audit log helpers."""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from plastics_oms.models import AuditLog, User


def snapshot(row: Any) -> dict[str, Any]:
    """Return a JSON-safe dict of an ORM row's column values."""
    mapper = inspect(row).mapper
    return jsonable_encoder({attr.key: getattr(row, attr.key) for attr in mapper.column_attrs})


def log_action(
    db: Session,
    *,
    actor: User | None,
    action: str,
    table_name: str,
    record_id: int | str | None = None,
    old_data: dict[str, Any] | None = None,
    new_data: dict[str, Any] | None = None,
) -> None:
    db.add(
        AuditLog(
            user_id=actor.id if actor is not None else None,
            action=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_data=old_data,
            new_data=new_data,
        )
    )


def list_audit_logs(
    db: Session,
    *,
    table_name: str | None = None,
    action: str | None = None,
    user_id: int | None = None,
    limit: int = 200,
) -> list[AuditLog]:
    """Return audit rows newest first with optional equality filters."""
    stmt = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
    if table_name:
        stmt = stmt.where(AuditLog.table_name == table_name)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if user_id is not None:
        stmt = stmt.where(AuditLog.user_id == user_id)
    return list(db.scalars(stmt).all())
