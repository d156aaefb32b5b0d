"""Order and task API schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Priority = Literal["low", "normal", "high", "urgent"]
SourceType = Literal["stock", "production", "both"]
OrderStatus = Literal["draft", "confirmed", "in_production", "ready", "shipped", "delivered", "cancelled", "closed"]
TaskStatus = Literal["pending", "in_progress", "preparing", "ready", "done", "cancelled"]


class OrderCreate(BaseModel):
    """New customer order."""

    customer: str = Field(min_length=1)
    product_type: str = Field(min_length=1)
    micron: float | None = None
    width: float | None = None
    quantity: float | None = Field(default=None, ge=0)
    unit: str = "kg"
    trim_width: float | None = None
    price: Decimal | None = None
    payment_term: str | None = None
    currency: str = "TRY"
    ship_date: date | None = None
    priority: Priority = "normal"
    notes: str | None = None
    source_type: SourceType = "stock"


class OrderUpdate(BaseModel):
    """Partial order update; only sent fields are applied."""

    customer: str | None = Field(default=None, min_length=1)
    product_type: str | None = Field(default=None, min_length=1)
    micron: float | None = None
    width: float | None = None
    quantity: float | None = Field(default=None, ge=0)
    unit: str | None = None
    trim_width: float | None = None
    price: Decimal | None = None
    payment_term: str | None = None
    currency: str | None = None
    ship_date: date | None = None
    priority: Priority | None = None
    notes: str | None = None
    source_type: SourceType | None = None
    status: OrderStatus | None = None

    @field_validator("customer", "product_type", "unit", "currency", "priority", "source_type", "status")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ReadyMetricsRead(BaseModel):
    total_ready_kg: float
    ready_percent: float
    is_ready: bool


class TaskSummary(BaseModel):
    department: str
    status: str
    assigned_to: int | None = None


class OrderRead(BaseModel):
    """Serialized order including finance fields; stripped per role by the endpoint."""

    id: int
    order_no: str | None
    customer: str
    product_type: str
    micron: float | None
    width: float | None
    quantity: float | None
    unit: str
    trim_width: float | None
    price: Decimal | None
    payment_term: str | None
    currency: str
    ship_date: date | None
    priority: str
    notes: str | None
    source_type: str
    stock_ready_kg: float
    production_ready_kg: float
    status: str
    created_by: int | None
    closed_by: int | None
    closed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskAssign(BaseModel):
    department: Literal["warehouse", "production", "shipping"]
    assigned_to: int | None = None
    priority: Priority = "normal"
    due_date: date | None = None
    message: str | None = Field(default=None, max_length=2000)


class TaskProgress(BaseModel):
    status: TaskStatus
    ready_quantity: float | None = None
    progress_note: str | None = None


class OrderTaskRead(BaseModel):
    id: int
    order_id: int
    department: str
    assigned_to: int | None
    assigned_by: int | None
    status: str
    priority: str
    due_date: date | None
    ready_quantity: float | None
    progress_note: str | None
    message: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderNudge(BaseModel):
    target_user_id: int
    message: str = Field(min_length=3, max_length=500)
