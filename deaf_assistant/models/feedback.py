# deaf_assistant/models/feedback.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lesson_id = Column(
        Integer, ForeignKey("lesson.id", ondelete="SET NULL"), nullable=True, index=True
    )

    comment = Column(String(1000), nullable=False)
    rating = Column(Integer, nullable=False)  # 1..5
    # App / Content / Lessons / Technical / Other
    category = Column(String(50), nullable=False, default="App")

    # admin review
    is_reviewed = Column(Boolean, nullable=False, default=False)
    admin_response = Column(String(1000), nullable=True)
    response_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=now)

    version = Column(Integer, nullable=False)

    user = relationship("User", back_populates="feedback")
    lesson = relationship("Lesson")

    __mapper_args__ = {"version_id_col": version}
