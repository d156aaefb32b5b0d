"""Cutting plan, cutting entry and production bobbin models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from plastics_oms.db.base import Base


class CuttingPlan(Base):
    """Plan to slit a source stock bobbin down to an order's target width."""

    __tablename__ = "cutting_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    source_stock_id: Mapped[int | None] = mapped_column(ForeignKey("stock_items.id"), nullable=True)
    source_product: Mapped[str] = mapped_column(String(255), nullable=False)
    source_micron: Mapped[float | None] = mapped_column(Float, nullable=True)
    source_width: Mapped[float | None] = mapped_column(Float, nullable=True)
    source_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_width: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="planned")
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    planned_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class CuttingEntry(Base):
    """A single cut recorded against a plan: an order piece or a leftover."""

    __tablename__ = "cutting_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    cutting_plan_id: Mapped[int] = mapped_column(ForeignKey("cutting_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    source_stock_id: Mapped[int | None] = mapped_column(ForeignKey("stock_items.id"), nullable=True)
    bobbin_label: Mapped[str] = mapped_column(String(128), nullable=False)
    cut_width: Mapped[float] = mapped_column(Float, nullable=False)
    cut_kg: Mapped[float] = mapped_column(Float, nullable=False)
    cut_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_order_piece: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    machine_no: Mapped[str | None] = mapped_column(String(32), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    entered_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class ProductionBobbin(Base):
    """Finished bobbin from the production line, counted toward order readiness."""

    __tablename__ = "production_bobbins"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    cutting_plan_id: Mapped[int | None] = mapped_column(ForeignKey("cutting_plans.id"), nullable=True)
    bobbin_no: Mapped[str] = mapped_column(String(64), nullable=False)
    meter: Mapped[float] = mapped_column(Float, nullable=False)
    kg: Mapped[float] = mapped_column(Float, nullable=False)
    fire_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    product_type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    micron: Mapped[float | None] = mapped_column(Float, nullable=True)
    width: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="produced")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    entered_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    entered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    warehouse_in_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    warehouse_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
