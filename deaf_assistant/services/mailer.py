# deaf_assistant/services/mailer.py
import logging
from pathlib import Path

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import SecretStr

from deaf_assistant.core.config import Settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"


class MailerService:
    """Sends the system's HTML emails (account confirmation, password reset, notices)."""

    def __init__(self, settings: Settings):
        self.project_name = settings.PROJECT_NAME
        self.conf = ConnectionConfig(
            MAIL_USERNAME=settings.MAIL_USERNAME,
            MAIL_PASSWORD=SecretStr(settings.MAIL_PASSWORD),
            MAIL_FROM=settings.MAIL_FROM,
            MAIL_FROM_NAME=settings.MAIL_FROM_NAME,
            MAIL_PORT=settings.MAIL_PORT,
            MAIL_SERVER=settings.MAIL_SERVER,
            MAIL_STARTTLS=settings.MAIL_STARTTLS,
            MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
            USE_CREDENTIALS=bool(settings.MAIL_USERNAME and settings.MAIL_PASSWORD),
            VALIDATE_CERTS=True,
            SUPPRESS_SEND=1 if settings.MAIL_SUPPRESS_SEND else 0,
            TEMPLATE_FOLDER=TEMPLATE_DIR,
        )
        if not self.conf.USE_CREDENTIALS:
            logger.warning("No SMTP credentials provided")
        self.fastmail = FastMail(self.conf)

    async def send_email(
        self,
        subject: str,
        recipients: list[str],
        template_name: str,
        context: dict,
    ) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=recipients,
            template_body=context,
            subtype=MessageType.html,
        )
        try:
            await self.fastmail.send_message(message, template_name=template_name)
        except Exception:
            logger.error(f"Failed to send email to {', '.join(recipients)}", exc_info=True)
            raise
        logger.info(f"Email '{subject}' sent to {', '.join(recipients)}")

    async def send_confirmation_email(
        self, email: str, full_name: str, confirmation_link: str
    ) -> None:
        await self.send_email(
            subject=f"Confirm your email - {self.project_name}",
            recipients=[email],
            template_name="confirm_email.html",
            context={
                "full_name": full_name,
                "confirmation_link": confirmation_link,
                "project_name": self.project_name,
            },
        )

    async def send_password_reset_email(
        self, email: str, full_name: str, reset_link: str
    ) -> None:
        await self.send_email(
            subject=f"Reset your password - {self.project_name}",
            recipients=[email],
            template_name="reset_password.html",
            context={
                "full_name": full_name,
                "reset_link": reset_link,
                "project_name": self.project_name,
            },
        )
