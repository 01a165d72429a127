# deaf_assistant/models/user.py
from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base
from deaf_assistant.libs.datetime import now


class Role(Base):
    __tablename__ = "role"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)


class UserRole(Base):
    __tablename__ = "user_role"

    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), primary_key=True
    )
    role_id = Column(
        Integer, ForeignKey("role.id", ondelete="CASCADE"), primary_key=True
    )

    role = relationship("Role", lazy="joined")


class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone_number = Column(String(30), nullable=True)
    birthday = Column(Date, nullable=True)

    # primary role, mirrors the user_role rows
    role = Column(String(50), nullable=False, default="")
    profile_picture_url = Column(String(500), nullable=False, default="")

    email_confirmed = Column(Boolean, nullable=False, default=False)
    email_send_attempted = Column(Boolean, nullable=False, default=False)

    access_failed_count = Column(Integer, nullable=False, default=0)
    lockout_end = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=now)

    user_roles = relationship(
        "UserRole", cascade="all, delete-orphan", passive_deletes=True, lazy="selectin"
    )
    feedback = relationship(
        "Feedback", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    subscriptions = relationship(
        "Subscription", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    refresh_tokens = relationship(
        "UserRefreshToken", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    account_tokens = relationship(
        "AccountToken", cascade="all, delete-orphan", passive_deletes=True
    )
    media = relationship("Media", back_populates="user", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def roles(self) -> list[str]:
        return [ur.role.name for ur in self.user_roles if ur.role]

    def has_role(self, name: str) -> bool:
        return name in self.roles
