"""Shipping schedule schemas."""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = r"^\d{2}:\d{2}$"


class ShippingScheduleCreate(BaseModel):
    order_id: int
    scheduled_date: date
    scheduled_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    sequence_no: int = Field(default=1, ge=1, le=500)
    notes: str | None = None


class ShippingScheduleUpdate(BaseModel):
    scheduled_date: date | None = None
    scheduled_time: str | None = Field(default=None, pattern=TIME_PATTERN)
    sequence_no: int | None = Field(default=None, ge=1, le=500)
    status: Literal["planned", "completed", "cancelled"] | None = None
    notes: str | None = None

    @field_validator("scheduled_date", "sequence_no", "status")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @model_validator(mode="after")
    def _require_any_field(self) -> "ShippingScheduleUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ShippingScheduleRead(BaseModel):
    id: int
    order_id: int
    scheduled_date: date
    scheduled_time: str | None
    sequence_no: int
    status: str
    notes: str | None
    carry_count: int
    created_by: int | None
    completed_by: int | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
