"""Warehouse intake of stock bobbins against orders."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import Order, OrderStockEntry, User
from plastics_oms.schemas.stock import OrderStockEntryCreate, OrderStockEntryRead
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.rbac import can_use_warehouse_entry, ensure_permission
from plastics_oms.services.readiness_service import recalculate_stock_ready_kg

router: APIRouter = APIRouter()


@router.get("", response_model=list[OrderStockEntryRead])
def list_entries(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[OrderStockEntryRead]:
    entries = db.scalars(
        select(OrderStockEntry)
        .where(OrderStockEntry.order_id == order_id)
        .order_by(OrderStockEntry.entered_at.desc(), OrderStockEntry.id.desc())
    ).all()
    return [OrderStockEntryRead.model_validate(entry) for entry in entries]


@router.post("", response_model=OrderStockEntryRead, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: OrderStockEntryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderStockEntryRead:
    ensure_permission(can_use_warehouse_entry(current_user))
    order: Order | None = db.get(Order, payload.order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    entry = OrderStockEntry(
        order_id=order.id,
        bobbin_label=payload.bobbin_label.strip(),
        kg=payload.kg,
        notes=payload.notes or None,
        entered_by=current_user.id,
    )
    db.add(entry)
    recalculate_stock_ready_kg(db, order)
    log_action(
        db,
        actor=current_user,
        action="INSERT",
        table_name="order_stock_entries",
        record_id=entry.id,
        new_data=snapshot(entry),
    )
    db.commit()
    db.refresh(entry)
    return OrderStockEntryRead.model_validate(entry)


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_permission(can_use_warehouse_entry(current_user))
    entry: OrderStockEntry | None = db.get(OrderStockEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Stock entry not found")

    before = snapshot(entry)
    order: Order | None = db.get(Order, entry.order_id)
    db.delete(entry)
    if order is not None:
        recalculate_stock_ready_kg(db, order)
    log_action(
        db,
        actor=current_user,
        action="DELETE",
        table_name="order_stock_entries",
        record_id=entry_id,
        old_data=before,
    )
    db.commit()
    return {"success": True}
