"""Shift handover note endpoints."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import User
from plastics_oms.schemas.handover import HandoverNoteCreate, HandoverNoteUpdate
from plastics_oms.services import handover_service
from plastics_oms.services.rbac import can_view_handover, ensure_permission

router: APIRouter = APIRouter()


@router.get("")
def list_notes(
    department: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    shift_date: date | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    ensure_permission(can_view_handover(current_user))
    return handover_service.list_notes(
        db,
        current_user,
        department=department,
        status=status_filter,
        shift_date=shift_date,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_note(
    payload: HandoverNoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_view_handover(current_user))
    return handover_service.create_note(db, current_user, payload.model_dump())


@router.get("/{note_id}")
def get_note(
    note_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_view_handover(current_user))
    return handover_service.get_note(db, current_user, note_id)


@router.patch("/{note_id}")
def update_note(
    note_id: str,
    payload: HandoverNoteUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_view_handover(current_user))
    return handover_service.update_note(db, current_user, note_id, payload.model_dump(exclude_unset=True))


@router.delete("/{note_id}")
def delete_note(
    note_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_permission(can_view_handover(current_user))
    handover_service.delete_note(db, current_user, note_id)
    return {"success": True}
