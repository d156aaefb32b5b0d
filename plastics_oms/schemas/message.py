"""Direct message schemas."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class DirectMessageCreate(BaseModel):
    recipient_id: int
    message: str = Field(min_length=1, max_length=2000)
    parent_id: int | str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _strip_message(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value
