# deaf_assistant/services/account_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from deaf_assistant.core import roles
from deaf_assistant.core.config import Settings
from deaf_assistant.core.security import (
    create_access_token,
    generate_opaque_token,
    get_password_hash,
    hash_opaque_token,
    verify_password,
)
from deaf_assistant.libs.datetime import now
from deaf_assistant.models.account_token import (
    EMAIL_CONFIRMATION,
    PASSWORD_RESET,
    AccountToken,
)
from deaf_assistant.models.refresh_token import UserRefreshToken
from deaf_assistant.models.user import User
from deaf_assistant.schemas.auth import RegisterRequest
from deaf_assistant.services import user_service

logger = logging.getLogger(__name__)

ALLOWED_PICTURE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
PROFILE_PICTURE_DIR = "profile-pictures"


class AccountError(Exception):
    pass


class EmailAlreadyRegisteredError(AccountError):
    pass


class InvalidCredentialsError(AccountError):
    pass


class LockedOutError(AccountError):
    pass


class EmailNotConfirmedError(AccountError):
    pass


class InvalidTokenError(AccountError):
    pass


class InvalidFileError(AccountError):
    pass


@dataclass
class IssuedTokens:
    access_token: str
    expires_at: datetime
    refresh_token: str


# ---------------------------------------------------------------------------
# registration / login
# ---------------------------------------------------------------------------


def register_user(
    db: Session, *, settings: Settings, obj_in: RegisterRequest
) -> tuple[User, Optional[str]]:
    """
    Create the account with the default ``User`` role.

    Returns ``(user, confirmation_token)``; the token is ``None`` when email
    confirmation is not required and the account is confirmed immediately.
    """
    email = obj_in.email.lower()
    if user_service.get_user_by_email(db, email) is not None:
        raise EmailAlreadyRegisteredError("User with this email already exists")

    user = User(
        email=email,
        password_hash=get_password_hash(obj_in.password),
        first_name=obj_in.first_name,
        last_name=obj_in.last_name,
        phone_number=obj_in.phone_number,
        birthday=obj_in.birthday,
        email_confirmed=not settings.REQUIRE_EMAIL_CONFIRMATION,
        created_at=now(),
    )
    db.add(user)
    if user_service.get_role(db, roles.USER) is not None:
        user_service.set_role(db, user, roles.USER)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")

    if not settings.REQUIRE_EMAIL_CONFIRMATION:
        return user, None

    token = create_account_token(
        db,
        user=user,
        purpose=EMAIL_CONFIRMATION,
        lifetime=timedelta(hours=settings.EMAIL_CONFIRMATION_EXPIRE_HOURS),
    )
    return user, token


def authenticate(db: Session, *, settings: Settings, email: str, password: str) -> User:
    """
    Verify credentials. Unknown email and wrong password raise the same
    ``InvalidCredentialsError``; the password is checked before lockout
    counters move and before the confirmation state is revealed.
    """
    user = user_service.get_user_by_email(db, email)
    if user is None:
        raise InvalidCredentialsError("Invalid login attempt")

    current = now()
    if settings.LOCKOUT_ENABLED and user.lockout_end and user.lockout_end > current:
        raise LockedOutError("Account locked out")

    if not verify_password(password, user.password_hash):
        if settings.LOCKOUT_ENABLED:
            user.access_failed_count = (user.access_failed_count or 0) + 1
            if user.access_failed_count >= settings.MAX_FAILED_ACCESS_ATTEMPTS:
                user.access_failed_count = 0
                user.lockout_end = current + timedelta(minutes=settings.LOCKOUT_MINUTES)
                db.commit()
                logger.warning(f"User {user.id} locked out after repeated failures")
                raise LockedOutError("Account locked out")
            db.commit()
        raise InvalidCredentialsError("Invalid login attempt")

    if settings.REQUIRE_EMAIL_CONFIRMATION and not user.email_confirmed:
        raise EmailNotConfirmedError("Email not confirmed")

    if user.access_failed_count or user.lockout_end:
        user.access_failed_count = 0
        user.lockout_end = None
        db.commit()
    return user


def issue_tokens(
    db: Session, *, settings: Settings, user: User, ip_address: str | None = None
) -> IssuedTokens:
    access_token, jti, expires_at = create_access_token(user, settings)
    refresh = UserRefreshToken(
        user_id=user.id,
        token=generate_opaque_token(),
        jwt_id=jti,
        expiry_date=now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        issued_by_ip=ip_address,
    )
    db.add(refresh)
    db.commit()
    return IssuedTokens(
        access_token=access_token, expires_at=expires_at, refresh_token=refresh.token
    )


def _get_refresh_token(db: Session, token: str) -> Optional[UserRefreshToken]:
    return db.query(UserRefreshToken).filter(UserRefreshToken.token == token).first()


def refresh_tokens(
    db: Session, *, settings: Settings, token: str, ip_address: str | None = None
) -> tuple[User, IssuedTokens]:
    """Redeem a refresh token (single use) for a new access/refresh pair."""
    stored = _get_refresh_token(db, token)
    if stored is None or not stored.is_active:
        raise InvalidTokenError("Invalid refresh token")

    stored.is_used = True
    stored.revoked_at = now()
    db.commit()

    user = stored.user
    return user, issue_tokens(db, settings=settings, user=user, ip_address=ip_address)


def revoke_refresh_token(db: Session, *, user: User, token: str) -> None:
    stored = _get_refresh_token(db, token)
    if stored is None or stored.user_id != user.id:
        raise InvalidTokenError("Invalid refresh token")
    if not stored.is_revoked:
        stored.is_revoked = True
        stored.revoked_at = now()
        db.commit()


# ---------------------------------------------------------------------------
# single-use account tokens
# ---------------------------------------------------------------------------


def create_account_token(
    db: Session, *, user: User, purpose: str, lifetime: timedelta
) -> str:
    """Issue a fresh token for ``purpose``; earlier unused ones stop working."""
    current = now()
    db.query(AccountToken).filter(
        AccountToken.user_id == user.id,
        AccountToken.purpose == purpose,
        AccountToken.used_at.is_(None),
    ).update({AccountToken.used_at: current}, synchronize_session="fetch")

    raw = generate_opaque_token()
    db.add(
        AccountToken(
            user_id=user.id,
            purpose=purpose,
            token_hash=hash_opaque_token(raw),
            expires_at=current + lifetime,
            created_at=current,
        )
    )
    db.commit()
    return raw


def _redeem_account_token(db: Session, *, user: User, purpose: str, token: str) -> None:
    record = (
        db.query(AccountToken)
        .filter(
            AccountToken.user_id == user.id,
            AccountToken.purpose == purpose,
            AccountToken.token_hash == hash_opaque_token(token),
        )
        .first()
    )
    if record is None or not record.is_valid:
        raise InvalidTokenError("Invalid token")
    record.used_at = now()


def build_link(settings: Settings, path: str, **params) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/{path.lstrip('/')}?{urlencode(params)}"


def confirm_email(db: Session, *, user_id: int, token: str) -> User:
    user = user_service.get_user(db, user_id)
    if user is None:
        raise InvalidTokenError("Invalid token")
    if user.email_confirmed:
        return user

    _redeem_account_token(db, user=user, purpose=EMAIL_CONFIRMATION, token=token)
    user.email_confirmed = True
    db.commit()
    db.refresh(user)
    logger.info(f"Email confirmed for user {user.id}")
    return user


def regenerate_confirmation(
    db: Session, *, settings: Settings, email: str
) -> Optional[tuple[User, str]]:
    """New confirmation token for an unconfirmed account; ``None`` otherwise."""
    user = user_service.get_user_by_email(db, email)
    if user is None or user.email_confirmed:
        return None
    token = create_account_token(
        db,
        user=user,
        purpose=EMAIL_CONFIRMATION,
        lifetime=timedelta(hours=settings.EMAIL_CONFIRMATION_EXPIRE_HOURS),
    )
    return user, token


def mark_email_send_attempted(db: Session, *, user: User) -> None:
    user.email_send_attempted = True
    db.commit()


# ---------------------------------------------------------------------------
# passwords
# ---------------------------------------------------------------------------


def change_password(
    db: Session, *, user: User, current_password: str, new_password: str
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Incorrect password.")
    user.password_hash = get_password_hash(new_password)
    db.commit()


def create_password_reset(
    db: Session, *, settings: Settings, email: str
) -> Optional[tuple[User, str]]:
    user = user_service.get_user_by_email(db, email)
    if user is None:
        return None
    token = create_account_token(
        db,
        user=user,
        purpose=PASSWORD_RESET,
        lifetime=timedelta(hours=settings.PASSWORD_RESET_EXPIRE_HOURS),
    )
    return user, token


def reset_password(db: Session, *, email: str, token: str, new_password: str) -> User:
    user = user_service.get_user_by_email(db, email)
    if user is None:
        raise InvalidCredentialsError("Password reset failed")

    _redeem_account_token(db, user=user, purpose=PASSWORD_RESET, token=token)
    user.password_hash = get_password_hash(new_password)
    user.access_failed_count = 0
    user.lockout_end = None
    db.commit()
    db.refresh(user)
    logger.info(f"Password reset for user {user.id}")
    return user


# ---------------------------------------------------------------------------
# profile picture
# ---------------------------------------------------------------------------


def save_profile_picture(
    db: Session,
    *,
    settings: Settings,
    user: User,
    filename: str,
    content: bytes,
) -> str:
    extension = Path(filename or "").suffix.lower()
    if extension not in ALLOWED_PICTURE_EXTENSIONS:
        raise InvalidFileError(
            "Invalid file type. Only jpg, jpeg, png, and gif files are allowed."
        )
    if len(content) > settings.MAX_PROFILE_PICTURE_BYTES:
        raise InvalidFileError("File size exceeds 5MB limit.")

    folder = Path(settings.UPLOAD_DIR) / PROFILE_PICTURE_DIR
    folder.mkdir(parents=True, exist_ok=True)

    if user.profile_picture_url:
        old_path = folder / Path(user.profile_picture_url).name
        if old_path.is_file():
            old_path.unlink()

    new_name = f"{user.id}_{int(now().timestamp() * 1000)}{extension}"
    (folder / new_name).write_bytes(content)

    url = f"{settings.APP_BASE_URL.rstrip('/')}/uploads/{PROFILE_PICTURE_DIR}/{new_name}"
    user.profile_picture_url = url
    db.commit()
    return url
