"""Virtual tables reconstructed by replaying the audit log.

Some deployments do not have every optional table yet. For those, rows are
written as INSERT/UPDATE/DELETE events to ``audit_logs`` under a virtual table
name and read back by folding the events in creation order. Only the latest
event for a record counts (last write wins, no field-level merge).

There is no locking: two concurrent updates of the same row both read the same
current state and the later appended event wins on the next read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import uuid4

from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from plastics_oms.core.config import settings
from plastics_oms.models.audit_log import AuditLog
from plastics_oms.utils.time import utc_now_iso

logger = logging.getLogger(__name__)

VirtualRow = dict[str, Any]


class EventStoreError(Exception):
    """Raised when events cannot be loaded from or appended to the event store."""


@dataclass(frozen=True)
class StoredEvent:
    id: int | str
    user_id: int | None
    action: str
    table_name: str
    record_id: str | None
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    created_at: datetime


class EventStore(Protocol):
    """Append-only event log read in creation order."""

    def append_event(
        self,
        *,
        user_id: int | None,
        action: str,
        table_name: str,
        record_id: str | None,
        old_data: dict[str, Any] | None,
        new_data: dict[str, Any] | None,
    ) -> StoredEvent:
        ...

    def query_events(self, table_name: str, limit: int) -> list[StoredEvent]:
        """Return up to ``limit`` events for ``table_name``, oldest first."""
        ...


class SqlAuditEventStore:
    """Event store backed by the ``audit_logs`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def append_event(
        self,
        *,
        user_id: int | None,
        action: str,
        table_name: str,
        record_id: str | None,
        old_data: dict[str, Any] | None,
        new_data: dict[str, Any] | None,
    ) -> StoredEvent:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_data=old_data,
            new_data=new_data,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("[VIRTUAL] Failed to append %s event for %s/%s", action, table_name, record_id)
            raise EventStoreError(str(exc)) from exc
        return _to_stored_event(entry)

    def query_events(self, table_name: str, limit: int) -> list[StoredEvent]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.table_name == table_name)
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
            .limit(limit)
        )
        try:
            rows = self.db.scalars(stmt).all()
        except SQLAlchemyError as exc:
            logger.exception("[VIRTUAL] Failed to load events for %s", table_name)
            raise EventStoreError(str(exc)) from exc
        return [_to_stored_event(row) for row in rows]


def _to_stored_event(row: AuditLog) -> StoredEvent:
    return StoredEvent(
        id=row.id,
        user_id=row.user_id,
        action=row.action,
        table_name=row.table_name,
        record_id=row.record_id,
        old_data=row.old_data,
        new_data=row.new_data,
        created_at=row.created_at,
    )


def reduce_latest(events: Iterable[StoredEvent]) -> list[VirtualRow]:
    """Fold events (already in creation order) into the current rows."""
    state: dict[str, VirtualRow] = {}
    for event in events:
        record_id = event.record_id or str((event.new_data or {}).get("id") or "")
        if not record_id:
            continue
        if event.action == "DELETE":
            state.pop(record_id, None)
            continue
        if event.new_data is not None:
            state[record_id] = {**event.new_data, "id": record_id}
    return list(state.values())


def row_matches(row: Mapping[str, Any], eq: Mapping[str, Any] | None) -> bool:
    """Equality filter; a field missing from the row compares as ``None``."""
    if not eq:
        return True
    return all(row.get(key) == value for key, value in eq.items())


class VirtualTableStore:
    """CRUD surface over one virtual table name."""

    def __init__(self, events: EventStore, table_name: str) -> None:
        self.events = events
        self.table_name = table_name

    def list_rows(self, eq: Mapping[str, Any] | None = None, limit: int | None = None) -> list[VirtualRow]:
        events = self.events.query_events(self.table_name, limit or settings.virtual_list_limit)
        return [row for row in reduce_latest(events) if row_matches(row, eq)]

    def get_row(self, row_id: str | int) -> VirtualRow | None:
        key = str(row_id)
        rows = self.list_rows(eq={"id": key}, limit=settings.virtual_get_limit)
        return next((row for row in rows if str(row.get("id") or "") == key), None)

    def insert_row(self, user_id: int | None, row: Mapping[str, Any]) -> VirtualRow:
        now = utc_now_iso()
        payload: VirtualRow = jsonable_encoder(dict(row))
        payload["id"] = str(payload.get("id") or uuid4().hex)
        payload["created_at"] = payload.get("created_at") or now
        payload["updated_at"] = payload.get("updated_at") or now

        self.events.append_event(
            user_id=user_id,
            action="INSERT",
            table_name=self.table_name,
            record_id=payload["id"],
            old_data=None,
            new_data=payload,
        )
        return payload

    def update_row(self, user_id: int | None, row_id: str | int, patch: Mapping[str, Any]) -> VirtualRow | None:
        key = str(row_id)
        current = self.get_row(key)
        if current is None:
            return None
        return self.patch_loaded_row(user_id, current, patch)

    def patch_loaded_row(self, user_id: int | None, current: VirtualRow, patch: Mapping[str, Any]) -> VirtualRow:
        """Append an UPDATE for a row the caller has already folded, without replaying again."""
        key = str(current["id"])
        next_row: VirtualRow = {**current, **jsonable_encoder(dict(patch)), "id": key, "updated_at": utc_now_iso()}
        self.events.append_event(
            user_id=user_id,
            action="UPDATE",
            table_name=self.table_name,
            record_id=key,
            old_data=current,
            new_data=next_row,
        )
        return next_row

    def delete_row(self, user_id: int | None, row_id: str | int) -> VirtualRow | None:
        key = str(row_id)
        current = self.get_row(key)
        if current is None:
            return None

        self.events.append_event(
            user_id=user_id,
            action="DELETE",
            table_name=self.table_name,
            record_id=key,
            old_data=current,
            new_data=None,
        )
        return current


def virtual_table(db: Session, table_name: str) -> VirtualTableStore:
    """Return a virtual table backed by the session's audit log."""
    return VirtualTableStore(SqlAuditEventStore(db), table_name)
