"""Shipping schedule maintenance."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from plastics_oms.models import Order, ShippingSchedule

logger = logging.getLogger(__name__)

SHIPPABLE_ORDER_STATUSES: frozenset[str] = frozenset({"ready", "confirmed", "in_production"})


def carry_over_overdue_schedules(db: Session, today: date) -> int:
    """Move overdue planned shipments to ``today`` and count the missed days.

    Returns the number of rows moved.
    """
    overdue = db.scalars(
        select(ShippingSchedule).where(
            ShippingSchedule.status == "planned",
            ShippingSchedule.scheduled_date < today,
        )
    ).all()
    for schedule in overdue:
        missed_days = (today - schedule.scheduled_date).days
        schedule.carry_count = int(schedule.carry_count or 0) + max(1, missed_days)
        schedule.scheduled_date = today
    if overdue:
        db.commit()
        logger.info("[SHIPPING] Carried over %s overdue schedule(s) to %s", len(overdue), today.isoformat())
    return len(overdue)


def mark_order_shipped(order: Order | None) -> bool:
    """Set the order to shipped when a shipment completes, if it is still open."""
    if order is None or order.status not in SHIPPABLE_ORDER_STATUSES:
        return False
    order.status = "shipped"
    return True
