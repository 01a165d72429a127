# deaf_assistant/services/feedback_service.py
from typing import List, Optional

from sqlalchemy.orm import Session

from deaf_assistant.libs.datetime import now
from deaf_assistant.models.feedback import Feedback
from deaf_assistant.models.user import User
from deaf_assistant.schemas.feedback import FeedbackCreate, FeedbackReview


def create_feedback(db: Session, *, user: User, obj_in: FeedbackCreate) -> Feedback:
    db_obj = Feedback(
        user_id=user.id,
        lesson_id=obj_in.lesson_id,
        comment=obj_in.comment,
        rating=obj_in.rating,
        category=obj_in.category,
        created_at=now(),
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_feedback(db: Session, feedback_id: int) -> Optional[Feedback]:
    return db.get(Feedback, feedback_id)


def list_feedback(db: Session, *, skip: int = 0, limit: int = 100) -> List[Feedback]:
    return (
        db.query(Feedback)
        .order_by(Feedback.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_feedback_for_user(
    db: Session, *, user: User, skip: int = 0, limit: int = 100
) -> List[Feedback]:
    return (
        db.query(Feedback)
        .filter(Feedback.user_id == user.id)
        .order_by(Feedback.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def review_feedback(db: Session, *, db_obj: Feedback, obj_in: FeedbackReview) -> Feedback:
    db_obj.admin_response = obj_in.admin_response
    db_obj.is_reviewed = obj_in.is_reviewed
    if obj_in.admin_response:
        db_obj.response_date = now()
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_feedback(db: Session, *, db_obj: Feedback) -> None:
    db.delete(db_obj)
    db.commit()
