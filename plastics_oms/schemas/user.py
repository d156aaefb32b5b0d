"""User schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plastics_oms.models.user import normalize_user_role


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=128)
    full_name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=6)
    role: str
    email: str | None = None

    @field_validator("role")
    @classmethod
    def _canonical_role(cls, value: str) -> str:
        return normalize_user_role(value)


class UserRead(BaseModel):
    id: int
    username: str
    full_name: str
    role: str

    model_config = ConfigDict(from_attributes=True)
