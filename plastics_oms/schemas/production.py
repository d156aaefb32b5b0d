"""Cutting plan, cutting entry and production bobbin schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CuttingPlanStatus = Literal["planned", "in_progress", "completed", "cancelled"]
BobbinStatus = Literal["produced", "warehouse", "ready"]


class CuttingPlanCreate(BaseModel):
    order_id: int
    source_stock_id: int | None = None
    source_product: str = Field(min_length=1)
    source_micron: float | None = None
    source_width: float | None = None
    source_kg: float | None = None
    target_width: float | None = None
    target_kg: float | None = None
    target_quantity: int = Field(default=1, gt=0)
    assigned_to: int | None = None
    notes: str | None = None


class CuttingPlanUpdate(BaseModel):
    status: CuttingPlanStatus | None = None
    assigned_to: int | None = None
    source_stock_id: int | None = None
    source_product: str | None = Field(default=None, min_length=1)
    source_micron: float | None = None
    source_width: float | None = None
    source_kg: float | None = None
    target_width: float | None = None
    target_kg: float | None = None
    target_quantity: int | None = Field(default=None, gt=0)
    notes: str | None = None

    @field_validator("source_product", "target_quantity", "status")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @model_validator(mode="after")
    def _require_any_field(self) -> "CuttingPlanUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class CuttingPlanRead(BaseModel):
    id: int
    order_id: int
    source_stock_id: int | None
    source_product: str
    source_micron: float | None
    source_width: float | None
    source_kg: float | None
    target_width: float | None
    target_kg: float | None
    target_quantity: int
    status: str
    assigned_to: int | None
    planned_by: int | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CuttingEntryCreate(BaseModel):
    cutting_plan_id: int
    bobbin_label: str = Field(min_length=1)
    cut_width: float = Field(gt=0)
    cut_kg: float = Field(gt=0)
    cut_quantity: int = Field(default=1, ge=1)
    is_order_piece: bool = True
    machine_no: str | None = None
    notes: str | None = None


class CuttingEntryRead(BaseModel):
    id: int
    cutting_plan_id: int
    order_id: int
    source_stock_id: int | None
    bobbin_label: str
    cut_width: float
    cut_kg: float
    cut_quantity: int
    is_order_piece: bool
    machine_no: str | None
    notes: str | None
    entered_by: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BobbinCreate(BaseModel):
    order_id: int
    cutting_plan_id: int | None = None
    bobbin_no: str = Field(min_length=1)
    meter: float = Field(gt=0)
    kg: float = Field(gt=0)
    fire_kg: float = Field(default=0, ge=0)
    notes: str | None = None


class BobbinUpdate(BaseModel):
    status: BobbinStatus | None = None
    notes: str | None = None


class BobbinRead(BaseModel):
    id: int
    order_id: int
    cutting_plan_id: int | None
    bobbin_no: str
    meter: float
    kg: float
    fire_kg: float
    product_type: str
    micron: float | None
    width: float | None
    status: str
    notes: str | None
    entered_by: int | None
    entered_at: datetime
    warehouse_in_by: int | None
    warehouse_in_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
