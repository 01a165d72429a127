# deaf_assistant/schemas/auth.py
from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from deaf_assistant.schemas.user import UserPublic


class _PasswordPair(BaseModel):
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("The password and confirmation password do not match.")
        return self


class RegisterRequest(_PasswordPair):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    phone_number: str | None = None
    birthday: date | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    succeeded: bool = True
    message: str | None = None
    token: str | None = None
    token_type: str = "bearer"
    expiration: datetime | None = None
    refresh_token: str | None = None
    user: UserPublic | None = None
    # development only
    confirmation_token: str | None = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("The new password and confirmation password do not match.")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(_PasswordPair):
    email: EmailStr
    token: str


class ConfirmEmailRequest(BaseModel):
    user_id: int
    token: str


class ResendConfirmationRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str
    # development only: echoed reset / confirmation token
    token: str | None = None


class ProfilePictureResponse(BaseModel):
    profile_picture_url: str
