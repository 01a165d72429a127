# deaf_assistant/schemas/media.py
from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl


class MediaBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    url: HttpUrl
    media_type: str = Field(min_length=1, max_length=20)  # Video / Image / Audio / Document
    file_size: int | None = Field(default=None, ge=0)
    content_type: str | None = Field(default=None, max_length=50)


class MediaCreate(MediaBase):
    pass


class MediaUpdate(MediaBase):
    id: int


class MediaPublic(MediaBase):
    id: int
    url: str
    lesson_id: int | None = None
    user_id: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
