"""Recompute an order's ready kilograms and the status they imply."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from plastics_oms.db.migrations import table_exists
from plastics_oms.models import CuttingEntry, Order, OrderStockEntry, ProductionBobbin
from plastics_oms.services.order_ready import (
    PRODUCTION_READY_STATUSES,
    ReadyMetrics,
    calculate_ready_metrics,
    derive_order_status_from_ready,
)

logger = logging.getLogger(__name__)


def order_ready_metrics(order: Order) -> ReadyMetrics:
    return calculate_ready_metrics(order.quantity, order.stock_ready_kg, order.production_ready_kg)


def apply_ready_status(order: Order) -> ReadyMetrics:
    """Move the order between confirmed/in_production/ready based on current kg."""
    metrics = order_ready_metrics(order)
    next_status = derive_order_status_from_ready(order.status, order.source_type, metrics.is_ready)
    if next_status != order.status:
        logger.info("[READY] order=%s %s -> %s (%.1f%%)", order.id, order.status, next_status, metrics.ready_percent)
        order.status = next_status
    return metrics


def recalculate_stock_ready_kg(db: Session, order: Order) -> ReadyMetrics:
    """Sum warehouse intake entries into ``stock_ready_kg``."""
    db.flush()
    total = db.scalar(
        select(func.coalesce(func.sum(OrderStockEntry.kg), 0.0)).where(OrderStockEntry.order_id == order.id)
    )
    order.stock_ready_kg = float(total or 0)
    return apply_ready_status(order)


def recalculate_production_ready_kg(db: Session, order: Order) -> ReadyMetrics:
    """Sum counted production bobbins into ``production_ready_kg``.

    Deployments without ``production_bobbins`` record finished pieces as
    cutting entries; order pieces are summed instead.
    """
    db.flush()
    if table_exists(db, ProductionBobbin.__tablename__):
        total = db.scalar(
            select(func.coalesce(func.sum(ProductionBobbin.kg), 0.0)).where(
                ProductionBobbin.order_id == order.id,
                ProductionBobbin.status.in_(PRODUCTION_READY_STATUSES),
            )
        )
    else:
        total = db.scalar(
            select(func.coalesce(func.sum(CuttingEntry.cut_kg), 0.0)).where(
                CuttingEntry.order_id == order.id,
                CuttingEntry.is_order_piece.is_(True),
            )
        )
    order.production_ready_kg = float(total or 0)
    return apply_ready_status(order)
