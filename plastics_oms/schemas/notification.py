"""Notification and audit schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    id: int
    user_id: int
    title: str
    body: str
    type: str
    ref_id: str | None
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationMarkRead(BaseModel):
    ids: list[int] = []


class AuditLogRead(BaseModel):
    id: int
    user_id: int | None
    action: str
    table_name: str
    record_id: str | None
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
