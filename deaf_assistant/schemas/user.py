# deaf_assistant/schemas/user.py
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserPublic(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    full_name: str
    phone_number: str | None = None
    birthday: date | None = None
    role: str
    roles: list[str] = []
    profile_picture_url: str = ""
    email_confirmed: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Partial update: omitted fields are left alone; names cannot be cleared."""
    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    phone_number: str | None = None
    birthday: date | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def name_not_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class UserUpdate(BaseModel):
    """Admin update; ``id`` must match the path."""
    id: int
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone_number: str | None = None
    role: str | None = None
