# deaf_assistant/core/security.py
import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext

from deaf_assistant.core.config import Settings
from deaf_assistant.models.user import User

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"], default="pbkdf2_sha256", deprecated="auto"
)


class TokenError(Exception):
    pass


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except (ValueError, TypeError):
        # unknown / malformed hash
        return False


def create_access_token(
    user: User,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> tuple[str, str, datetime]:
    """
    Issue a signed bearer token for ``user``.

    Returns ``(token, jti, expires_at)``; ``expires_at`` is naive UTC.
    """
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = issued_at + expires_delta
    jti = uuid.uuid4().hex

    roles = user.roles
    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "name": user.email,
        "email": user.email,
        "given_name": user.first_name,
        "family_name": user.last_name,
        "role": user.role,
        "roles": roles,
        "jti": jti,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": issued_at,
        "exp": expire,
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, jti, expire.replace(tzinfo=None)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError:
        raise TokenError("Invalid token")


def generate_opaque_token() -> str:
    return secrets.token_urlsafe(48)


def hash_opaque_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
