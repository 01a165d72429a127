# deaf_assistant/schemas/feedback.py
from datetime import datetime

from pydantic import BaseModel, Field


class FeedbackCreate(BaseModel):
    comment: str = Field(min_length=1, max_length=1000)
    rating: int = Field(ge=1, le=5)
    category: str = Field(default="App", max_length=50)
    lesson_id: int | None = None


class FeedbackReview(BaseModel):
    """Admin annotation."""
    admin_response: str | None = Field(default=None, max_length=1000)
    is_reviewed: bool = True


class FeedbackPublic(BaseModel):
    id: int
    user_id: int
    lesson_id: int | None = None
    comment: str
    rating: int
    category: str
    is_reviewed: bool
    admin_response: str | None = None
    response_date: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
