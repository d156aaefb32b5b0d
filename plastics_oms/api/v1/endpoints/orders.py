"""Order endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import Order, OrderTask, User
from plastics_oms.schemas.order import (
    OrderCreate,
    OrderNudge,
    OrderRead,
    OrderTaskRead,
    OrderUpdate,
    ReadyMetricsRead,
    TaskAssign,
    TaskSummary,
)
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.notification_service import notify_roles, notify_users
from plastics_oms.services.rbac import (
    can_assign_tasks,
    can_close_orders,
    can_delete_orders,
    can_manage_orders,
    can_send_order_nudge,
    can_update_orders,
    can_view_finance,
    ensure_permission,
    strip_finance_fields,
)
from plastics_oms.services.readiness_service import apply_ready_status, order_ready_metrics
from plastics_oms.utils.time import utc_now

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def _serialize_order(order: Order, user: User, *, with_metrics: bool = False) -> dict[str, Any]:
    data: dict[str, Any] = OrderRead.model_validate(order).model_dump(mode="json")
    data["tasks"] = [
        TaskSummary(department=task.department, status=task.status, assigned_to=task.assigned_to).model_dump()
        for task in order.tasks
    ]
    if with_metrics:
        metrics = order_ready_metrics(order)
        data["ready_metrics"] = ReadyMetricsRead(
            total_ready_kg=metrics.total_ready_kg,
            ready_percent=metrics.ready_percent,
            is_ready=metrics.is_ready,
        ).model_dump()
    if not can_view_finance(user):
        data = strip_finance_fields(data)
    return data


def _get_order_or_404(db: Session, order_id: int) -> Order:
    order: Order | None = db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("")
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    source_type: str | None = None,
    customer: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    stmt = select(Order).options(selectinload(Order.tasks)).order_by(Order.created_at.desc(), Order.id.desc())
    if status_filter and status_filter != "all":
        stmt = stmt.where(Order.status == status_filter)
    if source_type:
        stmt = stmt.where(Order.source_type == source_type)
    if customer:
        stmt = stmt.where(Order.customer.ilike(f"%{customer.strip()}%"))
    return [_serialize_order(order, current_user) for order in db.scalars(stmt).all()]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Create an order; production orders notify planners."""
    ensure_permission(can_manage_orders(current_user))
    order = Order(**payload.model_dump(), status="confirmed", created_by=current_user.id)
    db.add(order)
    db.flush()
    order.order_no = f"ORD-{order.id:06d}"

    if order.source_type in {"production", "both"}:
        notify_roles(
            db,
            {"ADMIN", "PRODUCTION"},
            title="Production planning required",
            body=f"{order.order_no}: {order.customer} ({order.product_type}) needs production planning.",
            type="order_production_planning",
            ref_id=order.id,
            exclude_user_id=current_user.id,
        )
    log_action(db, actor=current_user, action="INSERT", table_name="orders", record_id=order.id, new_data=snapshot(order))
    db.commit()
    db.refresh(order)
    return _serialize_order(order, current_user)


@router.get("/{order_id}")
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return _serialize_order(_get_order_or_404(db, order_id), current_user, with_metrics=True)


@router.patch("/{order_id}")
def update_order(
    order_id: int,
    payload: OrderUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_update_orders(current_user))
    order = _get_order_or_404(db, order_id)
    before = snapshot(order)

    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    if not can_view_finance(current_user):
        changes = strip_finance_fields(changes)
    if changes.get("status") == "closed":
        ensure_permission(can_close_orders(current_user), "You cannot close orders")
        changes["closed_by"] = current_user.id
        changes["closed_at"] = utc_now()

    for key, value in changes.items():
        setattr(order, key, value)
    if "quantity" in changes or "source_type" in changes:
        apply_ready_status(order)

    db.flush()
    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name="orders",
        record_id=order.id,
        old_data=before,
        new_data=snapshot(order),
    )
    db.commit()
    db.refresh(order)
    return _serialize_order(order, current_user, with_metrics=True)


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_permission(can_delete_orders(current_user))
    order = _get_order_or_404(db, order_id)
    before = snapshot(order)
    db.delete(order)
    log_action(db, actor=current_user, action="DELETE", table_name="orders", record_id=order_id, old_data=before)
    db.commit()
    logger.info("[ORDERS] Deleted order_id=%s by user_id=%s", order_id, current_user.id)
    return {"success": True}


@router.post("/{order_id}/tasks", response_model=OrderTaskRead, status_code=status.HTTP_201_CREATED)
def assign_task(
    order_id: int,
    payload: TaskAssign,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderTaskRead:
    ensure_permission(can_assign_tasks(current_user))
    order = _get_order_or_404(db, order_id)
    if payload.assigned_to is not None and db.get(User, payload.assigned_to) is None:
        raise HTTPException(status_code=404, detail="Assignee not found")

    task = OrderTask(order_id=order.id, assigned_by=current_user.id, **payload.model_dump())
    db.add(task)
    db.flush()
    if payload.assigned_to is not None:
        notify_users(
            db,
            [payload.assigned_to],
            title=f"New task: {order.order_no}",
            body=payload.message or f"{order.customer} ({order.product_type})",
            type="task_assigned",
            ref_id=task.id,
            exclude_user_id=current_user.id,
        )
    log_action(db, actor=current_user, action="INSERT", table_name="order_tasks", record_id=task.id, new_data=snapshot(task))
    db.commit()
    db.refresh(task)
    return OrderTaskRead.model_validate(task)


@router.post("/{order_id}/nudge", status_code=status.HTTP_201_CREATED)
def nudge_order(
    order_id: int,
    payload: OrderNudge,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Send a reminder about an order to one colleague."""
    ensure_permission(can_send_order_nudge(current_user))
    order = _get_order_or_404(db, order_id)
    if db.get(User, payload.target_user_id) is None:
        raise HTTPException(status_code=404, detail="Target user not found")

    created = notify_users(
        db,
        [payload.target_user_id],
        title=f"Order reminder: {order.order_no}",
        body=f"{current_user.full_name or 'System'}: {payload.message}",
        type="order_nudge",
        ref_id=order.id,
    )
    db.flush()
    notification = snapshot(created[0])
    log_action(
        db,
        actor=current_user,
        action="INSERT",
        table_name="notifications",
        record_id=notification["id"],
        new_data=notification,
    )
    db.commit()
    return {"success": True, "notification": notification}
