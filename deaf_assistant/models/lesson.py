# deaf_assistant/models/lesson.py
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now


class Lesson(Base):
    __tablename__ = "lesson"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)  # Alphabet / Numbers / Conversation ...
    difficulty_level = Column(Integer, nullable=False, default=1)  # 1 (beginner) .. 5 (expert)
    duration_in_minutes = Column(Integer, nullable=False)
    image_url = Column(String(500), nullable=True)
    video_url = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now)

    version = Column(Integer, nullable=False)

    media_resources = relationship(
        "Media", back_populates="lesson", passive_deletes=True
    )

    __mapper_args__ = {"version_id_col": version}
