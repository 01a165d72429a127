# deaf_assistant/services/bootstrap.py
"""
Startup seeding: the fixed role names and one default administrator.
Safe to run on every start.
"""

import logging

from sqlalchemy.orm import Session

from deaf_assistant.core import roles
from deaf_assistant.core.config import Settings
from deaf_assistant.core.security import get_password_hash
from deaf_assistant.libs.datetime import now
from deaf_assistant.models.user import Role, User
from deaf_assistant.services import user_service

logger = logging.getLogger(__name__)


def ensure_roles(db: Session) -> list[str]:
    created = []
    for role_name in roles.all_roles():
        if user_service.get_role(db, role_name) is None:
            logger.info(f"Creating role: {role_name}")
            db.add(Role(name=role_name))
            created.append(role_name)
    db.commit()
    return created


def ensure_admin_user(db: Session, settings: Settings) -> User:
    email = settings.ADMIN_EMAIL.strip().lower()
    admin = user_service.get_user_by_email(db, email)
    if admin is not None:
        if not admin.has_role(roles.ADMIN):
            user_service.set_role(db, admin, roles.ADMIN)
            db.commit()
        return admin

    logger.info("Creating default admin user")
    admin = User(
        email=email,
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
        first_name=settings.ADMIN_FIRST_NAME,
        last_name=settings.ADMIN_LAST_NAME,
        email_confirmed=True,
        created_at=now(),
    )
    db.add(admin)
    user_service.set_role(db, admin, roles.ADMIN)
    db.commit()
    db.refresh(admin)
    logger.info("Admin user created successfully")
    return admin


def initialize(db: Session, settings: Settings) -> None:
    try:
        logger.info("Starting role initialization")
        ensure_roles(db)
        ensure_admin_user(db, settings)
        logger.info("Role initialization completed successfully")
    except Exception:
        db.rollback()
        logger.error("An error occurred while initializing roles", exc_info=True)
