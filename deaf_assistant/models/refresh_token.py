# deaf_assistant/models/refresh_token.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now


class UserRefreshToken(Base):
    __tablename__ = "user_refresh_token"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(200), unique=True, nullable=False, index=True)
    jwt_id = Column(String(64), nullable=False)  # jti of the access token issued alongside
    expiry_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=now)
    issued_by_ip = Column(String(50), nullable=True)

    is_used = Column(Boolean, nullable=False, default=False)
    is_revoked = Column(Boolean, nullable=False, default=False)
    revoked_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    @property
    def is_active(self) -> bool:
        return not self.is_revoked and not self.is_used and self.expiry_date > now()
