# deaf_assistant/services/lesson_service.py
from typing import List, Optional

from sqlalchemy.orm import Session

from deaf_assistant.libs.datetime import now
from deaf_assistant.models.feedback import Feedback
from deaf_assistant.models.lesson import Lesson
from deaf_assistant.models.media import Media
from deaf_assistant.models.user import User
from deaf_assistant.schemas.lesson import LessonCreate, LessonUpdate
from deaf_assistant.schemas.media import MediaCreate, MediaUpdate


def _lesson_fields(obj_in: LessonCreate) -> dict:
    data = obj_in.model_dump(exclude={"id"})
    for url_field in ("image_url", "video_url"):
        if data.get(url_field) is not None:
            data[url_field] = str(data[url_field])
    return data


def list_lessons(db: Session, *, skip: int = 0, limit: int = 100) -> List[Lesson]:
    return (
        db.query(Lesson)
        .order_by(Lesson.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_lesson(db: Session, lesson_id: int) -> Optional[Lesson]:
    return db.get(Lesson, lesson_id)


def create_lesson(db: Session, *, obj_in: LessonCreate) -> Lesson:
    stamp = now()
    db_obj = Lesson(**_lesson_fields(obj_in), created_at=stamp, updated_at=stamp)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def update_lesson(db: Session, *, db_obj: Lesson, obj_in: LessonUpdate) -> Lesson:
    """Full replace of the editable fields; ``created_at`` is never touched."""
    for field, value in _lesson_fields(obj_in).items():
        setattr(db_obj, field, value)
    db_obj.updated_at = now()
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_lesson(db: Session, *, db_obj: Lesson) -> None:
    """Delete a lesson, detaching (not deleting) its media and feedback."""
    db.query(Media).filter(Media.lesson_id == db_obj.id).update(
        {Media.lesson_id: None}, synchronize_session="fetch"
    )
    db.query(Feedback).filter(Feedback.lesson_id == db_obj.id).update(
        {Feedback.lesson_id: None}, synchronize_session="fetch"
    )
    db.delete(db_obj)
    db.commit()


def _media_fields(obj_in: MediaCreate) -> dict:
    data = obj_in.model_dump(exclude={"id"})
    data["url"] = str(data["url"])
    return data


def list_media_for_lesson(db: Session, lesson_id: int) -> List[Media]:
    return (
        db.query(Media)
        .filter(Media.lesson_id == lesson_id)
        .order_by(Media.id.asc())
        .all()
    )


def get_media(db: Session, lesson_id: int, media_id: int) -> Optional[Media]:
    return (
        db.query(Media)
        .filter(Media.id == media_id, Media.lesson_id == lesson_id)
        .first()
    )


def add_media(
    db: Session, *, lesson: Lesson, uploader: User, obj_in: MediaCreate
) -> Media:
    stamp = now()
    db_obj = Media(
        **_media_fields(obj_in),
        lesson_id=lesson.id,
        user_id=uploader.id,
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def update_media(db: Session, *, db_obj: Media, obj_in: MediaUpdate) -> Media:
    for field, value in _media_fields(obj_in).items():
        setattr(db_obj, field, value)
    db_obj.updated_at = now()
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_media(db: Session, *, db_obj: Media) -> None:
    db.delete(db_obj)
    db.commit()
