# deaf_assistant/services/user_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from deaf_assistant.models.user import Role, User, UserRole
from deaf_assistant.schemas.user import ProfileUpdate, UserUpdate

logger = logging.getLogger(__name__)


class UserError(Exception):
    pass


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def list_users(db: Session, *, skip: int = 0, limit: int = 100) -> List[User]:
    return (
        db.query(User)
        .order_by(User.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_role(db: Session, name: str) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name).first()


def set_role(db: Session, user: User, role_name: str) -> None:
    """Replace the user's role set with ``role_name``. Caller commits."""
    role = get_role(db, role_name)
    if role is None:
        raise UserError(f"Role '{role_name}' does not exist")
    user.user_roles = [UserRole(role_id=role.id, role=role)]
    user.role = role.name


def update_profile(db: Session, *, user: User, obj_in: ProfileUpdate) -> User:
    for field, value in obj_in.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, *, user: User, obj_in: UserUpdate) -> User:
    email = obj_in.email.lower()
    if email != user.email:
        other = get_user_by_email(db, email)
        if other is not None and other.id != user.id:
            raise UserError("User with this email already exists")
    user.email = email
    user.first_name = obj_in.first_name
    user.last_name = obj_in.last_name
    user.phone_number = obj_in.phone_number
    if obj_in.role and obj_in.role != user.role:
        set_role(db, user, obj_in.role)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, *, user: User) -> None:
    db.delete(user)
    db.commit()
    logger.info(f"Deleted user {user.id}")
