"""Cutting entries: each cut deducts the source bobbin and feeds readiness or stock."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import CuttingEntry, CuttingPlan, Order, StockItem, StockMovement, User
from plastics_oms.schemas.production import CuttingEntryCreate, CuttingEntryRead
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.rbac import can_manage_production_plans, ensure_permission
from plastics_oms.services.readiness_service import recalculate_production_ready_kg

router: APIRouter = APIRouter()


def _deduct_source_stock(db: Session, plan: CuttingPlan, entry: CuttingEntry, user: User) -> None:
    source: StockItem | None = db.get(StockItem, plan.source_stock_id) if plan.source_stock_id else None
    if source is None:
        return
    remaining = max(0.0, float(source.kg or 0) - entry.cut_kg)
    source.kg = remaining
    if remaining <= 0:
        source.quantity = 0
    db.add(
        StockMovement(
            stock_item_id=source.id,
            movement_type="out",
            kg=entry.cut_kg,
            quantity=0,
            reason="cutting_source",
            reference_type="cutting_entry",
            reference_id=str(entry.id),
            notes=f"Cut: {entry.bobbin_label}",
            created_by=user.id,
        )
    )


def _stock_leftover(db: Session, plan: CuttingPlan, entry: CuttingEntry, user: User) -> StockItem:
    leftover = StockItem(
        category="film",
        product=plan.source_product,
        micron=plan.source_micron,
        width=entry.cut_width,
        kg=entry.cut_kg,
        quantity=entry.cut_quantity,
        lot_no=entry.bobbin_label,
        notes=f"Cutting leftover - order {plan.order_id}",
    )
    db.add(leftover)
    db.flush()
    db.add(
        StockMovement(
            stock_item_id=leftover.id,
            movement_type="in",
            kg=entry.cut_kg,
            quantity=entry.cut_quantity,
            reason="cutting_leftover",
            reference_type="cutting_entry",
            reference_id=str(entry.id),
            notes=f"Cutting leftover: {entry.bobbin_label}",
            created_by=user.id,
        )
    )
    return leftover


@router.post("", response_model=CuttingEntryRead, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: CuttingEntryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CuttingEntryRead:
    ensure_permission(can_manage_production_plans(current_user))
    plan: CuttingPlan | None = db.get(CuttingPlan, payload.cutting_plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Cutting plan not found")

    entry = CuttingEntry(
        cutting_plan_id=plan.id,
        order_id=plan.order_id,
        source_stock_id=plan.source_stock_id,
        bobbin_label=payload.bobbin_label.strip(),
        cut_width=payload.cut_width,
        cut_kg=payload.cut_kg,
        cut_quantity=payload.cut_quantity,
        is_order_piece=payload.is_order_piece,
        machine_no=payload.machine_no or None,
        notes=payload.notes or None,
        entered_by=current_user.id,
    )
    db.add(entry)
    db.flush()

    _deduct_source_stock(db, plan, entry, current_user)
    if entry.is_order_piece:
        order: Order | None = db.get(Order, plan.order_id)
        if order is not None:
            recalculate_production_ready_kg(db, order)
    else:
        _stock_leftover(db, plan, entry, current_user)
    if plan.status == "planned":
        plan.status = "in_progress"

    log_action(db, actor=current_user, action="INSERT", table_name="cutting_entries", record_id=entry.id, new_data=snapshot(entry))
    db.commit()
    db.refresh(entry)
    return CuttingEntryRead.model_validate(entry)
