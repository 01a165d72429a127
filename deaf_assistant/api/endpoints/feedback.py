# deaf_assistant/api/endpoints/feedback.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from deaf_assistant.api.deps import get_current_admin, get_current_user
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.schemas.feedback import FeedbackCreate, FeedbackPublic, FeedbackReview
from deaf_assistant.services import feedback_service, lesson_service

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.get("/", response_model=List[FeedbackPublic])
def list_feedback(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    skip: int = 0,
    limit: int = 100,
):
    return feedback_service.list_feedback(db, skip=skip, limit=limit)


@router.get("/mine", response_model=List[FeedbackPublic])
def list_my_feedback(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    skip: int = 0,
    limit: int = 100,
):
    return feedback_service.list_feedback_for_user(
        db, user=current_user, skip=skip, limit=limit
    )


@router.get("/{feedback_id}", response_model=FeedbackPublic)
def get_feedback(
    feedback_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    feedback = feedback_service.get_feedback(db, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return feedback


@router.post("/", response_model=FeedbackPublic, status_code=status.HTTP_201_CREATED)
def create_feedback(
    obj_in: FeedbackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if obj_in.lesson_id is not None and lesson_service.get_lesson(db, obj_in.lesson_id) is None:
        raise HTTPException(status_code=400, detail="Lesson does not exist")
    return feedback_service.create_feedback(db, user=current_user, obj_in=obj_in)


@router.put("/{feedback_id}", response_model=FeedbackPublic)
def review_feedback(
    feedback_id: int,
    obj_in: FeedbackReview,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """
    Admin annotation: response text and review state.
    """
    feedback = feedback_service.get_feedback(db, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")

    try:
        return feedback_service.review_feedback(db, db_obj=feedback, obj_in=obj_in)
    except StaleDataError:
        db.rollback()
        if feedback_service.get_feedback(db, feedback_id) is None:
            raise HTTPException(status_code=404, detail="Feedback not found")
        raise


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_feedback(
    feedback_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    feedback = feedback_service.get_feedback(db, feedback_id)
    if not feedback:
        raise HTTPException(status_code=404, detail="Feedback not found")

    feedback_service.delete_feedback(db, db_obj=feedback)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
