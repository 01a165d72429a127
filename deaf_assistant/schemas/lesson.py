# deaf_assistant/schemas/lesson.py
from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl


class LessonBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1)
    category: str = Field(min_length=1, max_length=50)
    difficulty_level: int = Field(default=1, ge=1, le=5)
    duration_in_minutes: int = Field(ge=1, le=300)
    image_url: HttpUrl | None = None
    video_url: HttpUrl | None = None


class LessonCreate(LessonBase):
    pass


class LessonUpdate(LessonBase):
    id: int


class LessonPublic(LessonBase):
    id: int
    image_url: str | None = None
    video_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
