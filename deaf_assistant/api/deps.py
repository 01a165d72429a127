# deaf_assistant/api/deps.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from deaf_assistant.core import roles
from deaf_assistant.core.config import Settings
from deaf_assistant.core.security import TokenError, decode_access_token
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.services.mailer import MailerService
from deaf_assistant.services.payment_service import PaymentGateway

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> MailerService:
    return request.app.state.mailer


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(credentials.credentials, settings)
    except TokenError as e:
        raise _unauthorized(str(e))

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def require_roles(*required: str):
    """Dependency factory: the caller must hold at least one of ``required``."""

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if not any(current_user.has_role(r) for r in required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied"
            )
        return current_user

    return _checker


get_current_admin = require_roles(roles.ADMIN)
