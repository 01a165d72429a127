# deaf_assistant/api/endpoints/lessons.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from deaf_assistant.api.deps import get_current_admin
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.schemas.lesson import LessonCreate, LessonPublic, LessonUpdate
from deaf_assistant.schemas.media import MediaCreate, MediaPublic, MediaUpdate
from deaf_assistant.services import lesson_service

router = APIRouter(prefix="/lessons", tags=["lessons"])


def _get_lesson_or_404(db: Session, lesson_id: int):
    lesson = lesson_service.get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


@router.get("/", response_model=List[LessonPublic])
def list_lessons(db: Session = Depends(get_db), skip: int = 0, limit: int = 100):
    return lesson_service.list_lessons(db, skip=skip, limit=limit)


@router.get("/{lesson_id}", response_model=LessonPublic)
def get_lesson(lesson_id: int, db: Session = Depends(get_db)):
    return _get_lesson_or_404(db, lesson_id)


@router.post("/", response_model=LessonPublic, status_code=status.HTTP_201_CREATED)
def create_lesson(
    obj_in: LessonCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return lesson_service.create_lesson(db, obj_in=obj_in)


@router.put("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_lesson(
    lesson_id: int,
    obj_in: LessonUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if lesson_id != obj_in.id:
        raise HTTPException(status_code=400, detail="Lesson id mismatch")

    lesson = _get_lesson_or_404(db, lesson_id)
    try:
        lesson_service.update_lesson(db, db_obj=lesson, obj_in=obj_in)
    except StaleDataError:
        # concurrent writer: 404 if the row is gone, otherwise propagate
        db.rollback()
        if lesson_service.get_lesson(db, lesson_id) is None:
            raise HTTPException(status_code=404, detail="Lesson not found")
        raise
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    lesson = _get_lesson_or_404(db, lesson_id)
    lesson_service.delete_lesson(db, db_obj=lesson)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- media resources of a lesson ----


@router.get("/{lesson_id}/media", response_model=List[MediaPublic])
def list_lesson_media(lesson_id: int, db: Session = Depends(get_db)):
    _get_lesson_or_404(db, lesson_id)
    return lesson_service.list_media_for_lesson(db, lesson_id)


@router.post(
    "/{lesson_id}/media",
    response_model=MediaPublic,
    status_code=status.HTTP_201_CREATED,
)
def add_lesson_media(
    lesson_id: int,
    obj_in: MediaCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    lesson = _get_lesson_or_404(db, lesson_id)
    return lesson_service.add_media(db, lesson=lesson, uploader=current_admin, obj_in=obj_in)


@router.put("/{lesson_id}/media/{media_id}", response_model=MediaPublic)
def update_lesson_media(
    lesson_id: int,
    media_id: int,
    obj_in: MediaUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if media_id != obj_in.id:
        raise HTTPException(status_code=400, detail="Media id mismatch")

    media = lesson_service.get_media(db, lesson_id, media_id)
    if not media:
        raise HTTPException(status_code=404, detail="Media not found")
    return lesson_service.update_media(db, db_obj=media, obj_in=obj_in)


@router.delete("/{lesson_id}/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson_media(
    lesson_id: int,
    media_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    media = lesson_service.get_media(db, lesson_id, media_id)
    if not media:
        raise HTTPException(status_code=404, detail="Media not found")
    lesson_service.delete_media(db, db_obj=media)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
