# deaf_assistant/models/media.py
from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    url = Column(String(500), nullable=False)
    media_type = Column(String(20), nullable=False)  # Video / Image / Audio / Document
    file_size = Column(BigInteger, nullable=True)
    content_type = Column(String(50), nullable=True)

    lesson_id = Column(
        Integer, ForeignKey("lesson.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now)

    lesson = relationship("Lesson", back_populates="media_resources")
    user = relationship("User", back_populates="media")
