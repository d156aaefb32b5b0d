"""Shipping schedule endpoints."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.core.security import get_current_user
from plastics_oms.db.session import get_db
from plastics_oms.models import Order, ShippingSchedule, User
from plastics_oms.schemas.shipping import ShippingScheduleCreate, ShippingScheduleRead, ShippingScheduleUpdate
from plastics_oms.services.audit_service import log_action, snapshot
from plastics_oms.services.notification_service import notify_roles
from plastics_oms.services.rbac import (
    can_complete_shipping,
    can_manage_shipping_schedule,
    can_view_shipping_schedule,
    ensure_permission,
)
from plastics_oms.services.shipping_service import carry_over_overdue_schedules, mark_order_shipped
from plastics_oms.utils.time import today_utc, utc_now

router: APIRouter = APIRouter()


def _serialize(db: Session, schedule: ShippingSchedule) -> dict[str, Any]:
    data: dict[str, Any] = ShippingScheduleRead.model_validate(schedule).model_dump(mode="json")
    order: Order | None = db.get(Order, schedule.order_id)
    data["order"] = (
        {
            "id": order.id,
            "order_no": order.order_no,
            "customer": order.customer,
            "product_type": order.product_type,
            "quantity": order.quantity,
            "unit": order.unit,
            "status": order.status,
            "ship_date": order.ship_date.isoformat() if order.ship_date else None,
        }
        if order is not None
        else None
    )
    return data


def _get_schedule_or_404(db: Session, schedule_id: int) -> ShippingSchedule:
    schedule: ShippingSchedule | None = db.get(ShippingSchedule, schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="Shipping schedule not found")
    return schedule


@router.get("")
def list_schedules(
    date_from: date | None = None,
    date_to: date | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """List the plan after carrying overdue planned rows over to today."""
    ensure_permission(can_view_shipping_schedule(current_user))
    carry_over_overdue_schedules(db, today_utc())

    stmt = select(ShippingSchedule).order_by(
        ShippingSchedule.scheduled_date.asc(),
        ShippingSchedule.sequence_no.asc(),
        ShippingSchedule.scheduled_time.is_(None),
        ShippingSchedule.scheduled_time.asc(),
    )
    if date_from:
        stmt = stmt.where(ShippingSchedule.scheduled_date >= date_from)
    if date_to:
        stmt = stmt.where(ShippingSchedule.scheduled_date <= date_to)
    if status_filter and status_filter != "all":
        stmt = stmt.where(ShippingSchedule.status == status_filter)
    return [_serialize(db, schedule) for schedule in db.scalars(stmt).all()]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ShippingScheduleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_manage_shipping_schedule(current_user))
    order: Order | None = db.get(Order, payload.order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    schedule = ShippingSchedule(
        **payload.model_dump(),
        status="planned",
        carry_count=0,
        created_by=current_user.id,
    )
    db.add(schedule)
    db.flush()
    notify_roles(
        db,
        {"SHIPPING"},
        title="New shipping plan",
        body=f"{order.order_no} - {order.customer} was added to the shipping plan.",
        type="shipping_plan",
        ref_id=schedule.id,
        exclude_user_id=current_user.id,
    )
    log_action(
        db,
        actor=current_user,
        action="INSERT",
        table_name="shipping_schedules",
        record_id=schedule.id,
        new_data=snapshot(schedule),
    )
    db.commit()
    db.refresh(schedule)
    return _serialize(db, schedule)


@router.get("/{schedule_id}")
def get_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    ensure_permission(can_view_shipping_schedule(current_user))
    return _serialize(db, _get_schedule_or_404(db, schedule_id))


@router.patch("/{schedule_id}")
def update_schedule(
    schedule_id: int,
    payload: ShippingScheduleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Reschedule, cancel or complete a shipment.

    Completing requires the completion permission; every other change needs
    schedule management rights. Completion ships the order if it is still open.
    """
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") == "completed":
        ensure_permission(can_complete_shipping(current_user))
    else:
        ensure_permission(can_manage_shipping_schedule(current_user))

    schedule = _get_schedule_or_404(db, schedule_id)
    before = snapshot(schedule)
    if changes.get("status") == "completed":
        changes["completed_by"] = current_user.id
        changes["completed_at"] = utc_now()
    elif changes.get("status"):
        changes["completed_by"] = None
        changes["completed_at"] = None
    for key, value in changes.items():
        setattr(schedule, key, value)

    if changes.get("status") == "completed":
        mark_order_shipped(db.get(Order, schedule.order_id))
    db.flush()
    log_action(
        db,
        actor=current_user,
        action="UPDATE",
        table_name="shipping_schedules",
        record_id=schedule.id,
        old_data=before,
        new_data=snapshot(schedule),
    )
    db.commit()
    db.refresh(schedule)
    return _serialize(db, schedule)


@router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    ensure_permission(can_manage_shipping_schedule(current_user))
    schedule = _get_schedule_or_404(db, schedule_id)
    before = snapshot(schedule)
    db.delete(schedule)
    log_action(
        db,
        actor=current_user,
        action="DELETE",
        table_name="shipping_schedules",
        record_id=schedule_id,
        old_data=before,
    )
    db.commit()
    return {"success": True}
