"""Direct messaging between staff, with a virtual-table fallback.

When ``direct_messages`` has not been created in a deployment, messages are
kept in the ``virtual_direct_messages`` virtual table instead.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy import or_, and_, select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from plastics_oms.db.errors import is_missing_table_error
from plastics_oms.models import DirectMessage, User
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.notification_service import notify_users
from plastics_oms.services.virtual_store import virtual_table
from plastics_oms.utils.time import utc_now, utc_now_iso

logger = logging.getLogger(__name__)

VIRTUAL_TABLE = "virtual_direct_messages"
THREAD_LIMIT = 400
INBOX_LIMIT = 800


def _fallback_to_virtual(db: Session, exc: Exception) -> bool:
    if not is_missing_table_error(exc, DirectMessage.__tablename__):
        return False
    db.rollback()
    logger.info("[VIRTUAL] %s missing; using %s", DirectMessage.__tablename__, VIRTUAL_TABLE)
    return True


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def _in_conversation(row: dict[str, Any], user_id: int, counterpart_id: int) -> bool:
    return (_same_id(row.get("sender_id"), user_id) and _same_id(row.get("recipient_id"), counterpart_id)) or (
        _same_id(row.get("sender_id"), counterpart_id) and _same_id(row.get("recipient_id"), user_id)
    )


def summarize_conversations(rows: list[dict[str, Any]], user_id: int) -> list[dict[str, Any]]:
    """Group messages (newest first) into one summary per counterpart."""
    by_counterpart: dict[str, dict[str, Any]] = {}
    for row in rows:
        incoming = _same_id(row.get("recipient_id"), user_id)
        counterpart_id = row["sender_id"] if incoming else row["recipient_id"]
        unread = 1 if incoming and row.get("read_at") is None else 0
        summary = by_counterpart.get(str(counterpart_id))
        if summary is None:
            by_counterpart[str(counterpart_id)] = {
                "counterpart_id": counterpart_id,
                "last_message": row["message"],
                "last_at": row["created_at"],
                "unread_count": unread,
            }
        else:
            summary["unread_count"] += unread
    return sorted(by_counterpart.values(), key=lambda item: str(item["last_at"]), reverse=True)


def _attach_counterparts(db: Session, summaries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    ids = {int(item["counterpart_id"]) for item in summaries}
    if not ids:
        return []
    users = db.scalars(select(User).where(User.id.in_(ids))).all()
    profiles = {user.id: {"id": user.id, "full_name": user.full_name, "role": user.role} for user in users}
    return [{**item, "counterpart": profiles.get(int(item["counterpart_id"]))} for item in summaries]


def list_thread(db: Session, user: User, counterpart_id: int) -> list[dict[str, Any]]:
    """Return the conversation oldest first and mark incoming messages read."""
    stmt = (
        select(DirectMessage)
        .where(
            or_(
                and_(DirectMessage.sender_id == user.id, DirectMessage.recipient_id == counterpart_id),
                and_(DirectMessage.sender_id == counterpart_id, DirectMessage.recipient_id == user.id),
            )
        )
        .order_by(DirectMessage.created_at.asc(), DirectMessage.id.asc())
        .limit(THREAD_LIMIT)
    )
    try:
        messages = list(db.scalars(stmt).all())
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        return _list_virtual_thread(db, user, counterpart_id)

    now = utc_now()
    for message in messages:
        if message.recipient_id == user.id and message.read_at is None:
            message.read_at = now
    db.commit()
    return [snapshot(message) for message in messages]


def _list_virtual_thread(db: Session, user: User, counterpart_id: int) -> list[dict[str, Any]]:
    store = virtual_table(db, VIRTUAL_TABLE)
    thread = sorted(
        (row for row in store.list_rows(limit=10000) if _in_conversation(row, user.id, counterpart_id)),
        key=lambda row: str(row.get("created_at")),
    )
    read_at = utc_now_iso()
    result: list[dict[str, Any]] = []
    for row in thread:
        if _same_id(row.get("recipient_id"), user.id) and row.get("read_at") is None:
            row = store.patch_loaded_row(user.id, row, {"read_at": read_at})
        result.append(row)
    return result


def list_conversations(db: Session, user: User) -> list[dict[str, Any]]:
    stmt = (
        select(DirectMessage)
        .where(or_(DirectMessage.sender_id == user.id, DirectMessage.recipient_id == user.id))
        .order_by(DirectMessage.created_at.desc(), DirectMessage.id.desc())
        .limit(INBOX_LIMIT)
    )
    try:
        rows = [snapshot(message) for message in db.scalars(stmt).all()]
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        rows = sorted(
            (
                row
                for row in virtual_table(db, VIRTUAL_TABLE).list_rows(limit=12000)
                if _same_id(row.get("sender_id"), user.id) or _same_id(row.get("recipient_id"), user.id)
            ),
            key=lambda row: str(row.get("created_at")),
            reverse=True,
        )
    return _attach_counterparts(db, summarize_conversations(rows, user.id))


def _ensure_parent_in_conversation(db: Session, user: User, recipient_id: int, parent_id: int | str) -> None:
    parent: dict[str, Any] | None
    if not str(parent_id).isdigit():
        parent = virtual_table(db, VIRTUAL_TABLE).get_row(parent_id)
    else:
        try:
            parent_row = db.get(DirectMessage, int(parent_id))
            parent = snapshot(parent_row) if parent_row is not None else None
        except (OperationalError, ProgrammingError) as exc:
            if not _fallback_to_virtual(db, exc):
                raise
            parent = virtual_table(db, VIRTUAL_TABLE).get_row(parent_id)

    if parent is None:
        raise HTTPException(status_code=404, detail="Reply target not found")
    if not _in_conversation(parent, user.id, recipient_id):
        raise HTTPException(status_code=400, detail="Reply target belongs to another conversation")


def send_message(
    db: Session,
    user: User,
    *,
    recipient_id: int,
    message: str,
    parent_id: int | str | None = None,
) -> dict[str, Any]:
    if recipient_id == user.id:
        raise HTTPException(status_code=400, detail="You cannot message yourself")
    if db.get(User, recipient_id) is None:
        raise HTTPException(status_code=404, detail="Recipient not found")
    if parent_id is not None:
        _ensure_parent_in_conversation(db, user, recipient_id, parent_id)

    text = message.strip()
    try:
        row = DirectMessage(
            sender_id=user.id,
            recipient_id=recipient_id,
            parent_id=int(parent_id) if parent_id is not None and str(parent_id).isdigit() else None,
            message=text,
        )
        db.add(row)
        db.flush()
    except (OperationalError, ProgrammingError) as exc:
        if not _fallback_to_virtual(db, exc):
            raise
        created = virtual_table(db, VIRTUAL_TABLE).insert_row(
            user.id,
            {
                "sender_id": user.id,
                "recipient_id": recipient_id,
                "parent_id": parent_id,
                "message": text,
                "read_at": None,
            },
        )
    else:
        created = snapshot(row)
        log_action(db, actor=user, action="INSERT", table_name="direct_messages", record_id=row.id, new_data=created)

    notify_users(
        db,
        [recipient_id],
        title="New direct message",
        body=f"{user.full_name or 'A colleague'}: {text[:140]}",
        type="direct_message",
        ref_id=created["id"],
    )
    db.commit()
    return created
