"""Production bobbin endpoints.

Deployments that predate ``production_bobbins`` record finished pieces only as
cutting entries. Single-bobbin reads, note edits and deletes then operate on
the order-piece cutting entry with the same id.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, ProgrammingError
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.errors import is_missing_table_error
from plastics_oms.db.session import get_db
from plastics_oms.models import CuttingEntry, Order, ProductionBobbin, User
from plastics_oms.schemas.production import BobbinCreate, BobbinRead, BobbinUpdate
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.rbac import can_use_bobbin_entry, ensure_permission, ensure_role
from plastics_oms.services.readiness_service import recalculate_production_ready_kg
from plastics_oms.utils.time import utc_now

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)

BOBBINS_TABLE = ProductionBobbin.__tablename__


def _bobbins_missing(db: Session, exc: Exception) -> bool:
    if not is_missing_table_error(exc, BOBBINS_TABLE):
        return False
    db.rollback()
    logger.info("[VIRTUAL] %s missing; serving cutting entries", BOBBINS_TABLE)
    return True


def _entry_as_bobbin(db: Session, entry: CuttingEntry) -> dict[str, Any]:
    order: Order | None = db.get(Order, entry.order_id)
    created_at = entry.created_at.isoformat() if entry.created_at else None
    return {
        "id": entry.id,
        "order_id": entry.order_id,
        "cutting_plan_id": entry.cutting_plan_id,
        "bobbin_no": entry.bobbin_label,
        "meter": 0,
        "kg": float(entry.cut_kg or 0),
        "fire_kg": 0,
        "product_type": order.product_type if order is not None else "",
        "micron": order.micron if order is not None else None,
        "width": order.width if order is not None else None,
        "status": "produced",
        "notes": entry.notes,
        "entered_by": entry.entered_by,
        "entered_at": created_at,
        "warehouse_in_by": None,
        "warehouse_in_at": None,
        "created_at": created_at,
        "updated_at": created_at,
    }


def _order_piece_or_404(db: Session, entry_id: int) -> CuttingEntry:
    entry: CuttingEntry | None = db.get(CuttingEntry, entry_id)
    if entry is None or not entry.is_order_piece:
        raise HTTPException(status_code=404, detail="Bobbin not found")
    return entry


def _serialize(bobbin: ProductionBobbin) -> dict[str, Any]:
    return BobbinRead.model_validate(bobbin).model_dump(mode="json")


def _status_changes(user: User, payload: BobbinUpdate) -> dict[str, Any]:
    """Translate a bobbin patch into column changes allowed for the user's role."""
    role = str(user.role or "").upper()
    fields = payload.model_fields_set
    changes: dict[str, Any] = {}

    if "notes" in fields:
        if role in {"ADMIN", "PRODUCTION"}:
            changes["notes"] = payload.notes
        elif payload.status is None:
            raise HTTPException(status_code=403, detail="Warehouse cannot edit bobbin notes")

    requested = payload.status
    if requested is not None:
        if role == "PRODUCTION" and requested not in {"produced", "ready"}:
            raise HTTPException(status_code=403, detail="Production cannot set this status")
        if role == "WAREHOUSE" and requested != "warehouse":
            raise HTTPException(status_code=403, detail="Warehouse can only receive bobbins")
        changes["status"] = requested
        if requested == "warehouse" and role in {"ADMIN", "WAREHOUSE"}:
            changes["warehouse_in_at"] = utc_now()
            changes["warehouse_in_by"] = user.id

    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    return changes


@router.get("")
def list_bobbins(
    order_id: int | None = None,
    cutting_plan_id: int | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    stmt = select(ProductionBobbin).order_by(ProductionBobbin.entered_at.desc(), ProductionBobbin.id.desc())
    if order_id is not None:
        stmt = stmt.where(ProductionBobbin.order_id == order_id)
    if cutting_plan_id is not None:
        stmt = stmt.where(ProductionBobbin.cutting_plan_id == cutting_plan_id)
    if status_filter and status_filter != "all":
        stmt = stmt.where(ProductionBobbin.status == status_filter)
    try:
        return [_serialize(bobbin) for bobbin in db.scalars(stmt).all()]
    except (OperationalError, ProgrammingError) as exc:
        if not _bobbins_missing(db, exc):
            raise

    if status_filter and status_filter not in {"all", "produced"}:
        return []
    fallback = select(CuttingEntry).where(CuttingEntry.is_order_piece.is_(True)).order_by(CuttingEntry.id.desc())
    if order_id is not None:
        fallback = fallback.where(CuttingEntry.order_id == order_id)
    if cutting_plan_id is not None:
        fallback = fallback.where(CuttingEntry.cutting_plan_id == cutting_plan_id)
    return [_entry_as_bobbin(db, entry) for entry in db.scalars(fallback).all()]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_bobbin(
    payload: BobbinCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_use_bobbin_entry(current_user))
    order: Order | None = db.get(Order, payload.order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    bobbin = ProductionBobbin(
        order_id=order.id,
        cutting_plan_id=payload.cutting_plan_id,
        bobbin_no=payload.bobbin_no.strip(),
        meter=payload.meter,
        kg=payload.kg,
        fire_kg=payload.fire_kg,
        product_type=order.product_type or "",
        micron=order.micron,
        width=order.width,
        status="produced",
        notes=payload.notes or None,
        entered_by=current_user.id,
    )
    db.add(bobbin)
    db.flush()
    recalculate_production_ready_kg(db, order)
    log_action(db, actor=current_user, action="INSERT", table_name=BOBBINS_TABLE, record_id=bobbin.id, new_data=snapshot(bobbin))
    db.commit()
    db.refresh(bobbin)
    return _serialize(bobbin)


@router.get("/{bobbin_id}")
def get_bobbin(
    bobbin_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        bobbin: ProductionBobbin | None = db.get(ProductionBobbin, bobbin_id)
    except (OperationalError, ProgrammingError) as exc:
        if not _bobbins_missing(db, exc):
            raise
        return _entry_as_bobbin(db, _order_piece_or_404(db, bobbin_id))
    if bobbin is None:
        raise HTTPException(status_code=404, detail="Bobbin not found")
    return _serialize(bobbin)


@router.patch("/{bobbin_id}")
def update_bobbin(
    bobbin_id: int,
    payload: BobbinUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_role(current_user, {"ADMIN", "PRODUCTION", "WAREHOUSE"})
    changes = _status_changes(current_user, payload)

    try:
        bobbin: ProductionBobbin | None = db.get(ProductionBobbin, bobbin_id)
    except (OperationalError, ProgrammingError) as exc:
        if not _bobbins_missing(db, exc):
            raise
        entry = _order_piece_or_404(db, bobbin_id)
        if "notes" in changes:
            entry.notes = changes["notes"]
        order: Order | None = db.get(Order, entry.order_id)
        if order is not None:
            recalculate_production_ready_kg(db, order)
        db.commit()
        return {**_entry_as_bobbin(db, entry), "status": changes.get("status", "produced")}

    if bobbin is None:
        raise HTTPException(status_code=404, detail="Bobbin not found")
    before = snapshot(bobbin)
    for key, value in changes.items():
        setattr(bobbin, key, value)
    order = db.get(Order, bobbin.order_id)
    if order is not None:
        recalculate_production_ready_kg(db, order)
    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name=BOBBINS_TABLE,
        record_id=bobbin.id,
        old_data=before,
        new_data=snapshot(bobbin),
    )
    db.commit()
    db.refresh(bobbin)
    return _serialize(bobbin)


@router.delete("/{bobbin_id}")
def delete_bobbin(
    bobbin_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_role(current_user, {"ADMIN"})
    try:
        bobbin: ProductionBobbin | None = db.get(ProductionBobbin, bobbin_id)
    except (OperationalError, ProgrammingError) as exc:
        if not _bobbins_missing(db, exc):
            raise
        entry = _order_piece_or_404(db, bobbin_id)
        order: Order | None = db.get(Order, entry.order_id)
        db.delete(entry)
        if order is not None:
            recalculate_production_ready_kg(db, order)
        db.commit()
        return {"success": True}

    if bobbin is None:
        raise HTTPException(status_code=404, detail="Bobbin not found")
    before = snapshot(bobbin)
    order = db.get(Order, bobbin.order_id)
    db.delete(bobbin)
    if order is not None:
        recalculate_production_ready_kg(db, order)
    log_action(db, actor=current_user, action="DELETE", table_name=BOBBINS_TABLE, record_id=bobbin_id, old_data=before)
    db.commit()
    return {"success": True}
