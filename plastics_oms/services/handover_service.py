"""Shift handover notes, stored in ``handover_notes`` or its virtual table."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import HTTPException
from sqlalchemy import or_, select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from plastics_oms.db.errors import is_missing_table_error
from plastics_oms.models import HandoverNote, User
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.notification_service import notify_roles
from plastics_oms.services.rbac import HANDOVER_MANAGER_ROLES, can_manage_all_handover
from plastics_oms.services.virtual_store import virtual_table
from plastics_oms.utils.time import utc_now

logger = logging.getLogger(__name__)

VIRTUAL_TABLE = "virtual_handover_notes"
DEFAULT_LIMIT = 250
MAX_LIMIT = 500


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, int(limit)))


def _department_of(user: User) -> str:
    return str(user.role or "").lower()


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def can_access_note(user: User, row: dict[str, Any]) -> bool:
    if can_manage_all_handover(user):
        return True
    return (
        row.get("department") == _department_of(user)
        or _same_id(row.get("created_by"), user.id)
        or _same_id(row.get("resolved_by"), user.id)
    )


def _fallback_to_virtual(db: Session, exc: Exception) -> bool:
    if not is_missing_table_error(exc, HandoverNote.__tablename__):
        return False
    db.rollback()
    logger.info("[VIRTUAL] %s missing; using %s", HandoverNote.__tablename__, VIRTUAL_TABLE)
    return True


def _attach_people(db: Session, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    ids = {int(row[key]) for row in rows for key in ("created_by", "resolved_by") if row.get(key) is not None}
    profiles: dict[int, dict[str, Any]] = {}
    if ids:
        for person in db.scalars(select(User).where(User.id.in_(ids))).all():
            profiles[person.id] = {"id": person.id, "full_name": person.full_name, "role": person.role}

    def _profile(value: Any) -> dict[str, Any] | None:
        return profiles.get(int(value)) if value is not None else None

    return [{**row, "creator": _profile(row.get("created_by")), "resolver": _profile(row.get("resolved_by"))} for row in rows]


def _date_key(value: Any) -> str:
    return value.isoformat() if isinstance(value, date) else str(value or "")


def list_notes(
    db: Session,
    user: User,
    *,
    department: str | None = None,
    status: str | None = None,
    shift_date: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    manager = can_manage_all_handover(user)
    if department == "all":
        department = None
    if status == "all":
        status = None
    if not manager and department and department != _department_of(user):
        raise HTTPException(status_code=403, detail="You cannot view this department")
    limit = clamp_limit(limit)

    stmt = select(HandoverNote)
    if not manager:
        stmt = stmt.where(
            or_(
                HandoverNote.department == _department_of(user),
                HandoverNote.created_by == user.id,
                HandoverNote.resolved_by == user.id,
            )
        )
    if department:
        stmt = stmt.where(HandoverNote.department == department)
    if status:
        stmt = stmt.where(HandoverNote.status == status)
    if shift_date:
        stmt = stmt.where(HandoverNote.shift_date == shift_date)
    if date_from:
        stmt = stmt.where(HandoverNote.shift_date >= date_from)
    if date_to:
        stmt = stmt.where(HandoverNote.shift_date <= date_to)
    stmt = stmt.order_by(HandoverNote.shift_date.desc(), HandoverNote.created_at.desc()).limit(limit)

    try:
        rows = [snapshot(note) for note in db.scalars(stmt).all()]
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        rows = [row for row in virtual_table(db, VIRTUAL_TABLE).list_rows() if can_access_note(user, row)]
        if department:
            rows = [row for row in rows if row.get("department") == department]
        if status:
            rows = [row for row in rows if row.get("status") == status]
        if shift_date:
            rows = [row for row in rows if _date_key(row.get("shift_date")) == shift_date.isoformat()]
        if date_from:
            rows = [row for row in rows if _date_key(row.get("shift_date")) >= date_from.isoformat()]
        if date_to:
            rows = [row for row in rows if _date_key(row.get("shift_date")) <= date_to.isoformat()]
        rows.sort(key=lambda row: (_date_key(row.get("shift_date")), str(row.get("created_at") or "")), reverse=True)
        rows = rows[:limit]
    return _attach_people(db, rows)


def _load_note(db: Session, note_id: int | str) -> tuple[HandoverNote | None, dict[str, Any] | None, bool]:
    """Return ``(orm_row, snapshot, is_virtual)`` for a note id.

    Non-numeric ids can only name virtual rows.
    """
    if not str(note_id).isdigit():
        return None, virtual_table(db, VIRTUAL_TABLE).get_row(note_id), True
    try:
        note = db.get(HandoverNote, int(note_id))
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        return None, virtual_table(db, VIRTUAL_TABLE).get_row(note_id), True
    return note, (snapshot(note) if note is not None else None), False


def get_note(db: Session, user: User, note_id: int | str) -> dict[str, Any]:
    _, row, _ = _load_note(db, note_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Handover note not found")
    if not can_access_note(user, row):
        raise HTTPException(status_code=403, detail="Forbidden")
    return _attach_people(db, [row])[0]


def create_note(db: Session, user: User, payload: dict[str, Any]) -> dict[str, Any]:
    department = payload["department"]
    if not can_manage_all_handover(user) and department != _department_of(user):
        raise HTTPException(status_code=403, detail="You can only add handover notes for your own department")

    values = {
        "department": department,
        "shift_date": payload["shift_date"],
        "title": payload["title"].strip(),
        "details": payload["details"].strip(),
        "priority": payload.get("priority") or "normal",
        "status": "open",
        "created_by": user.id,
    }
    try:
        note = HandoverNote(**values)
        db.add(note)
        db.flush()
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        created = virtual_table(db, VIRTUAL_TABLE).insert_row(
            user.id, {**values, "resolved_by": None, "resolved_at": None, "resolved_note": None}
        )
    else:
        created = snapshot(note)
        log_action(db, actor=user, action="INSERT", table_name="handover_notes", record_id=note.id, new_data=created)

    notify_roles(
        db,
        {department.upper(), *HANDOVER_MANAGER_ROLES},
        title="New handover note",
        body=f"{department.upper()} | {values['title'][:120]}",
        type="handover_note",
        ref_id=created["id"],
        exclude_user_id=user.id,
    )
    db.commit()
    return _attach_people(db, [created])[0]


def _resolution_fields(user: User, patch: dict[str, Any]) -> dict[str, Any]:
    if patch.get("status") == "resolved":
        return {
            "resolved_by": user.id,
            "resolved_at": utc_now(),
            "resolved_note": (patch.get("resolved_note") or "").strip() or None,
        }
    if patch.get("status") == "open":
        return {"resolved_by": None, "resolved_at": None, "resolved_note": None}
    if "resolved_note" in patch:
        return {"resolved_note": (patch.get("resolved_note") or "").strip() or None}
    return {}


def update_note(db: Session, user: User, note_id: int | str, patch: dict[str, Any]) -> dict[str, Any]:
    note, before, is_virtual = _load_note(db, note_id)
    if before is None:
        raise HTTPException(status_code=404, detail="Handover note not found")
    if not can_access_note(user, before):
        raise HTTPException(status_code=403, detail="Forbidden")
    if not can_manage_all_handover(user):
        if not _same_id(before.get("created_by"), user.id):
            raise HTTPException(status_code=403, detail="You can only update notes you created")
        if patch.get("department") and patch["department"] != before.get("department"):
            raise HTTPException(status_code=403, detail="Department cannot be changed")

    changes = {key: value for key, value in patch.items() if key != "resolved_note" and value is not None}
    if changes.get("title") is not None:
        changes["title"] = changes["title"].strip()
    if changes.get("details") is not None:
        changes["details"] = changes["details"].strip()
    changes.update(_resolution_fields(user, patch))

    if is_virtual:
        updated = virtual_table(db, VIRTUAL_TABLE).update_row(user.id, note_id, changes)
        if updated is None:
            raise HTTPException(status_code=404, detail="Handover note not found")
        return _attach_people(db, [updated])[0]

    for key, value in changes.items():
        setattr(note, key, value)
    db.flush()
    after = snapshot(note)
    log_action(
        db,
        actor=user,
        action="UPDATE",
        table_name="handover_notes",
        record_id=note.id,
        old_data=before,
        new_data=after,
    )
    db.commit()
    return _attach_people(db, [after])[0]


def delete_note(db: Session, user: User, note_id: int | str) -> None:
    note, row, is_virtual = _load_note(db, note_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Handover note not found")
    creator_open_delete = _same_id(row.get("created_by"), user.id) and row.get("status") == "open"
    if not can_manage_all_handover(user) and not creator_open_delete:
        raise HTTPException(status_code=403, detail="You cannot delete this note")

    if is_virtual:
        virtual_table(db, VIRTUAL_TABLE).delete_row(user.id, note_id)
        return

    db.delete(note)
    log_action(db, actor=user, action="DELETE", table_name="handover_notes", record_id=note.id, old_data=row)
    db.commit()
