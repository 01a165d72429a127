# deaf_assistant/models/account_token.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now

EMAIL_CONFIRMATION = "email_confirmation"
PASSWORD_RESET = "password_reset"


class AccountToken(Base):
    """Opaque single-use token mailed to the user (email confirmation,
    password reset). Only the SHA-256 digest is stored."""

    __tablename__ = "account_token"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    purpose = Column(String(30), nullable=False)
    token_hash = Column(String(64), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now)

    @property
    def is_valid(self) -> bool:
        return self.used_at is None and self.expires_at > now()
