"""Handover note schemas."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

Department = Literal["admin", "sales", "warehouse", "production", "shipping", "accounting"]
Priority = Literal["low", "normal", "high", "urgent"]


class HandoverNoteCreate(BaseModel):
    department: Department
    shift_date: date
    title: str = Field(min_length=3, max_length=200)
    details: str = Field(min_length=3, max_length=5000)
    priority: Priority = "normal"


class HandoverNoteUpdate(BaseModel):
    department: Department | None = None
    shift_date: date | None = None
    title: str | None = Field(default=None, min_length=3, max_length=200)
    details: str | None = Field(default=None, min_length=3, max_length=5000)
    priority: Priority | None = None
    status: Literal["open", "resolved"] | None = None
    resolved_note: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _require_any_field(self) -> "HandoverNoteUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self
