"""Order readiness metrics and ready-driven status transitions."""

from __future__ import annotations

import math
from dataclasses import dataclass

ORDER_STATUSES: list[str] = [
    "draft",
    "confirmed",
    "in_production",
    "ready",
    "shipped",
    "delivered",
    "cancelled",
    "closed",
]
SOURCE_TYPES: list[str] = ["stock", "production", "both"]

ORDER_READY_THRESHOLD_PERCENT: float = 95

# Manually managed statuses; readiness changes never move an order out of these.
TERMINAL_STATUSES: frozenset[str] = frozenset({"closed", "cancelled", "shipped", "delivered"})
PRE_READY_STATUSES: frozenset[str] = frozenset({"draft", "confirmed", "in_production"})

# Production bobbin statuses whose kg count toward an order's production_ready_kg.
PRODUCTION_READY_STATUSES: tuple[str, ...] = ("produced", "warehouse", "ready")


@dataclass(frozen=True)
class ReadyMetrics:
    total_ready_kg: float
    ready_percent: float
    is_ready: bool


def _as_number(value: float | int | None) -> float:
    return float(value or 0)


def calculate_ready_metrics(
    quantity: float | int | None,
    stock_ready_kg: float | int | None,
    production_ready_kg: float | int | None,
) -> ReadyMetrics:
    """Compare stock plus produced kg against the ordered quantity.

    A zero, missing or non-finite quantity yields ``ready_percent=0`` and
    ``is_ready=False`` so that no NaN or infinity reaches persisted state.
    """
    qty = _as_number(quantity)
    total_ready_kg = _as_number(stock_ready_kg) + _as_number(production_ready_kg)
    if qty <= 0 or not math.isfinite(qty):
        return ReadyMetrics(total_ready_kg=total_ready_kg, ready_percent=0.0, is_ready=False)

    ready_percent = total_ready_kg / qty * 100
    return ReadyMetrics(
        total_ready_kg=total_ready_kg,
        ready_percent=ready_percent,
        is_ready=ready_percent >= ORDER_READY_THRESHOLD_PERCENT,
    )


def fallback_status_for_not_ready(source_type: str | None) -> str:
    """Return the status a ready order falls back to once it is no longer ready."""
    return "in_production" if source_type == "production" else "confirmed"


def derive_order_status_from_ready(current_status: str, source_type: str | None, is_ready: bool) -> str:
    """Return the order status implied by readiness, leaving manual statuses alone."""
    if current_status in TERMINAL_STATUSES:
        return current_status
    if is_ready and current_status in PRE_READY_STATUSES:
        return "ready"
    if not is_ready and current_status == "ready":
        return fallback_status_for_not_ready(source_type)
    return current_status


def is_production_ready_status(status: str) -> bool:
    return status in PRODUCTION_READY_STATUSES
