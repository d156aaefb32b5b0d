"""Stock and warehouse intake schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StockCreate(BaseModel):
    category: Literal["film", "tape"] = "film"
    product: str = Field(min_length=1)
    micron: float | None = None
    width: float | None = None
    kg: float = 0
    quantity: int = 0
    lot_no: str | None = None
    notes: str | None = None


class StockUpdate(BaseModel):
    category: Literal["film", "tape"] | None = None
    product: str | None = Field(default=None, min_length=1)
    micron: float | None = None
    width: float | None = None
    kg: float | None = None
    quantity: int | None = None
    lot_no: str | None = None
    notes: str | None = None

    @field_validator("category", "product", "kg", "quantity")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class StockRead(BaseModel):
    id: int
    category: str
    product: str
    micron: float | None
    width: float | None
    kg: float
    quantity: int
    lot_no: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StockMovementRead(BaseModel):
    id: int
    stock_item_id: int
    movement_type: str
    kg: float
    quantity: int
    reason: str | None
    reference_type: str | None
    reference_id: str | None
    notes: str | None
    created_by: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStockEntryCreate(BaseModel):
    order_id: int
    bobbin_label: str = Field(min_length=1)
    kg: float = Field(gt=0)
    notes: str | None = None


class OrderStockEntryRead(BaseModel):
    id: int
    order_id: int
    bobbin_label: str
    kg: float
    notes: str | None
    entered_by: int | None
    entered_at: datetime

    model_config = ConfigDict(from_attributes=True)
