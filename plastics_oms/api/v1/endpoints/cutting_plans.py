"""Cutting plan endpoints for the production floor."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import CuttingEntry, CuttingPlan, Order, StockItem, StockMovement, User
from plastics_oms.schemas.production import CuttingEntryRead, CuttingPlanCreate, CuttingPlanRead, CuttingPlanUpdate
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.notification_service import notify_roles, notify_users
from plastics_oms.services.order_ready import TERMINAL_STATUSES
from plastics_oms.services.rbac import can_manage_production_plans, ensure_permission, ensure_role

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def _order_brief(order: Order | None) -> dict[str, Any] | None:
    if order is None:
        return None
    return {
        "id": order.id,
        "order_no": order.order_no,
        "customer": order.customer,
        "product_type": order.product_type,
        "quantity": order.quantity,
        "status": order.status,
    }


def _serialize_plan(db: Session, plan: CuttingPlan, *, with_entries: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = CuttingPlanRead.model_validate(plan).model_dump(mode="json")
    data["order"] = _order_brief(db.get(Order, plan.order_id))
    if with_entries:
        entries = db.scalars(
            select(CuttingEntry).where(CuttingEntry.cutting_plan_id == plan.id).order_by(CuttingEntry.id.asc())
        ).all()
        data["entries"] = [CuttingEntryRead.model_validate(entry).model_dump(mode="json") for entry in entries]
    return data


def _get_plan_or_404(db: Session, plan_id: int) -> CuttingPlan:
    plan: CuttingPlan | None = db.get(CuttingPlan, plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Cutting plan not found")
    return plan


@router.get("")
def list_plans(
    status_filter: str | None = Query(default=None, alias="status"),
    assigned_to: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    stmt = select(CuttingPlan).order_by(CuttingPlan.created_at.desc(), CuttingPlan.id.desc())
    if status_filter and status_filter != "all":
        stmt = stmt.where(CuttingPlan.status == status_filter)
    if assigned_to is not None:
        stmt = stmt.where(CuttingPlan.assigned_to == assigned_to)
    return [_serialize_plan(db, plan) for plan in db.scalars(stmt).all()]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_plan(
    payload: CuttingPlanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Plan a cut for an order and move the order into production."""
    ensure_permission(can_manage_production_plans(current_user))
    order: Order | None = db.get(Order, payload.order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    plan = CuttingPlan(**payload.model_dump(), status="planned", planned_by=current_user.id)
    db.add(plan)
    db.flush()

    if order.status not in TERMINAL_STATUSES and order.status != "ready":
        order.status = "in_production"
    if plan.assigned_to is not None:
        notify_users(
            db,
            [plan.assigned_to],
            title="New cutting plan",
            body=f"{order.order_no} - {order.customer}: a cutting plan was assigned to you.",
            type="task_assigned",
            ref_id=plan.id,
            exclude_user_id=current_user.id,
        )
    log_action(db, actor=current_user, action="INSERT", table_name="cutting_plans", record_id=plan.id, new_data=snapshot(plan))
    db.commit()
    db.refresh(plan)
    return _serialize_plan(db, plan)


@router.get("/{plan_id}")
def get_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return _serialize_plan(db, _get_plan_or_404(db, plan_id), with_entries=True)


@router.patch("/{plan_id}")
def update_plan(
    plan_id: int,
    payload: CuttingPlanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_manage_production_plans(current_user))
    plan = _get_plan_or_404(db, plan_id)
    before = snapshot(plan)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(plan, key, value)
    db.flush()

    order: Order | None = db.get(Order, plan.order_id)
    new_status = changes.get("status")
    if order is not None and new_status == "completed" and before["status"] != "completed":
        cut_kg = db.scalar(
            select(func.coalesce(func.sum(CuttingEntry.cut_kg), 0.0)).where(
                CuttingEntry.cutting_plan_id == plan.id,
                CuttingEntry.is_order_piece.is_(True),
            )
        )
        notify_users(
            db,
            [order.created_by],
            title="Cutting completed",
            body=f"{order.order_no} - {order.customer}: cutting finished, {float(cut_kg or 0):g} kg ready.",
            type="cutting_complete",
            ref_id=order.id,
            exclude_user_id=current_user.id,
        )
        notify_roles(
            db,
            {"WAREHOUSE"},
            title="Goods ready for the warehouse",
            body=f"{order.order_no} - {order.customer}: cutting finished, {float(cut_kg or 0):g} kg ready.",
            type="cutting_complete",
            ref_id=order.id,
            exclude_user_id=current_user.id,
        )
    elif order is not None and new_status == "in_progress" and before["status"] == "planned":
        notify_users(
            db,
            [order.created_by],
            title="Cutting started",
            body=f"{order.order_no} - {order.customer}: cutting started.",
            type="cutting_started",
            ref_id=order.id,
            exclude_user_id=current_user.id,
        )

    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name="cutting_plans",
        record_id=plan.id,
        old_data=before,
        new_data=snapshot(plan),
    )
    db.commit()
    db.refresh(plan)
    return _serialize_plan(db, plan)


@router.delete("/{plan_id}")
def delete_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    """Delete a plan and return its reserved source kilograms to stock."""
    ensure_role(current_user, {"ADMIN"})
    plan = _get_plan_or_404(db, plan_id)
    before = snapshot(plan)

    source: StockItem | None = db.get(StockItem, plan.source_stock_id) if plan.source_stock_id else None
    if source is not None and plan.source_kg:
        restore_kg = float(plan.source_kg)
        source.kg = float(source.kg or 0) + restore_kg
        source.quantity = int(source.quantity or 0) + 1
        db.add(
            StockMovement(
                stock_item_id=source.id,
                movement_type="in",
                kg=restore_kg,
                quantity=0,
                reason="cutting_plan_cancelled",
                reference_type="cutting_plan",
                reference_id=str(plan.id),
                created_by=current_user.id,
            )
        )
        logger.info("[STOCK] Restored %.1f kg to stock_item=%s from plan=%s", restore_kg, source.id, plan.id)

    db.delete(plan)
    log_action(db, actor=current_user, action="DELETE", table_name="cutting_plans", record_id=plan_id, old_data=before)
    db.commit()
    return {"success": True}
