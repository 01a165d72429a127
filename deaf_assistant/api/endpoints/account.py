# deaf_assistant/api/endpoints/account.py
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from deaf_assistant.api.deps import get_current_user, get_mailer, get_settings
from deaf_assistant.core.config import Settings
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ConfirmEmailRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    ProfilePictureResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResendConfirmationRequest,
    ResetPasswordRequest,
)
from deaf_assistant.schemas.user import UserPublic
from deaf_assistant.services import account_service
from deaf_assistant.services.account_service import (
    EmailAlreadyRegisteredError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidFileError,
    InvalidTokenError,
    LockedOutError,
)
from deaf_assistant.services.mailer import MailerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["account"])

FORGOT_PASSWORD_MESSAGE = (
    "If your email is registered, you will receive a password reset link"
)
RESEND_CONFIRMATION_MESSAGE = (
    "If your email is registered and not yet confirmed, a new confirmation link has been sent"
)


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _auth_response(user: User, tokens: account_service.IssuedTokens) -> AuthResponse:
    return AuthResponse(
        token=tokens.access_token,
        expiration=tokens.expires_at,
        refresh_token=tokens.refresh_token,
        user=UserPublic.model_validate(user),
    )


async def _send_confirmation(
    db: Session, mailer: MailerService, settings: Settings, user: User, token: str
) -> None:
    # email failures never fail the request
    link = account_service.build_link(
        settings, "confirm-email", userId=user.id, token=token
    )
    try:
        await mailer.send_confirmation_email(user.email, user.full_name, link)
    except Exception as e:
        logger.warning(f"Confirmation email to user {user.id} not sent: {e}")
    account_service.mark_email_send_attempted(db, user=user)


@router.post("/register", response_model=AuthResponse)
async def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: MailerService = Depends(get_mailer),
):
    try:
        user, confirmation_token = account_service.register_user(
            db, settings=settings, obj_in=payload
        )
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if confirmation_token is None:
        tokens = account_service.issue_tokens(
            db, settings=settings, user=user, ip_address=_client_ip(request)
        )
        response = _auth_response(user, tokens)
        response.message = "Registration successful!"
        return response

    await _send_confirmation(db, mailer, settings, user, confirmation_token)
    return AuthResponse(
        message="Registration successful! Please check your email to confirm your account.",
        user=UserPublic.model_validate(user),
        confirmation_token=(
            confirmation_token if settings.RETURN_TOKENS_IN_RESPONSE else None
        ),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user = account_service.authenticate(
            db, settings=settings, email=payload.email, password=payload.password
        )
    except (InvalidCredentialsError, LockedOutError, EmailNotConfirmedError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    tokens = account_service.issue_tokens(
        db, settings=settings, user=user, ip_address=_client_ip(request)
    )
    return _auth_response(user, tokens)


@router.post("/logout", response_model=MessageResponse)
def logout(
    payload: LogoutRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Bearer tokens are stateless; the client discards its token. A supplied
    refresh token is revoked.
    """
    if payload is not None and payload.refresh_token:
        try:
            account_service.revoke_refresh_token(
                db, user=current_user, token=payload.refresh_token
            )
        except InvalidTokenError:
            logger.info(f"Logout for user {current_user.id} with unknown refresh token")
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh-token", response_model=AuthResponse)
def refresh_token(
    payload: RefreshTokenRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        user, tokens = account_service.refresh_tokens(
            db, settings=settings, token=payload.refresh_token, ip_address=_client_ip(request)
        )
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _auth_response(user, tokens)


@router.post("/revoke-token", response_model=MessageResponse)
def revoke_token(
    payload: RefreshTokenRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        account_service.revoke_refresh_token(
            db, user=current_user, token=payload.refresh_token
        )
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MessageResponse(message="Token revoked")


@router.post("/confirm-email", response_model=MessageResponse)
def confirm_email(payload: ConfirmEmailRequest, db: Session = Depends(get_db)):
    try:
        account_service.confirm_email(db, user_id=payload.user_id, token=payload.token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email confirmation failed",
        )
    return MessageResponse(message="Email confirmed successfully")


@router.post("/resend-confirmation", response_model=MessageResponse)
async def resend_confirmation(
    payload: ResendConfirmationRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: MailerService = Depends(get_mailer),
):
    # same answer whether or not the account exists
    regenerated = account_service.regenerate_confirmation(
        db, settings=settings, email=payload.email
    )
    token = None
    if regenerated is not None:
        user, token = regenerated
        await _send_confirmation(db, mailer, settings, user, token)

    return MessageResponse(
        message=RESEND_CONFIRMATION_MESSAGE,
        token=token if settings.RETURN_TOKENS_IN_RESPONSE else None,
    )


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        account_service.change_password(
            db,
            user=current_user,
            current_password=payload.current_password,
            new_password=payload.new_password,
        )
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    mailer: MailerService = Depends(get_mailer),
):
    created = account_service.create_password_reset(
        db, settings=settings, email=payload.email
    )
    if created is None:
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    user, token = created
    link = account_service.build_link(
        settings, "reset-password", email=user.email, token=token
    )
    try:
        await mailer.send_password_reset_email(user.email, user.full_name, link)
    except Exception as e:
        logger.warning(f"Password reset email to user {user.id} not sent: {e}")

    return MessageResponse(
        message=FORGOT_PASSWORD_MESSAGE,
        token=token if settings.RETURN_TOKENS_IN_RESPONSE else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        account_service.reset_password(
            db, email=payload.email, token=payload.token, new_password=payload.password
        )
    except (InvalidCredentialsError, InvalidTokenError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Password reset failed"
        )
    return MessageResponse(message="Password has been reset successfully")


@router.post("/profile-picture", response_model=ProfilePictureResponse)
@router.put("/profile-picture", response_model=ProfilePictureResponse)
async def upload_profile_picture(
    picture: UploadFile = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user),
):
    content = await picture.read()
    try:
        url = account_service.save_profile_picture(
            db,
            settings=settings,
            user=current_user,
            filename=picture.filename,
            content=content,
        )
    except InvalidFileError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except OSError as e:
        logger.error("Error uploading profile picture", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error uploading profile picture: {e}",
        )
    return ProfilePictureResponse(profile_picture_url=url)
