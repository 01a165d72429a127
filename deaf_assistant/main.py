# deaf_assistant/main.py
import logging
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from deaf_assistant import models  # noqa
from deaf_assistant.api.endpoints import (
    account,
    feedback,
    health,
    lessons,
    payments,
    subscriptions,
    users,
)
from deaf_assistant.core.config import Settings, settings as default_settings
from deaf_assistant.core.logging_config import setup_logging
from deaf_assistant.db.base import Base
from deaf_assistant.db.session import build_engine, build_session_factory
from deaf_assistant.services import bootstrap
from deaf_assistant.services.mailer import MailerService
from deaf_assistant.services.payment_service import StripePaymentGateway

logger = logging.getLogger(__name__)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        errors.setdefault(field, []).append(error["msg"])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory. Serve with
    ``uvicorn deaf_assistant.main:create_app --factory``.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)

    app = FastAPI(title=settings.PROJECT_NAME)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.mailer = MailerService(settings)
    app.state.payment_gateway = StripePaymentGateway(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.on_event("startup")
    def on_startup():
        Base.metadata.create_all(bind=engine)
        db = session_factory()
        try:
            bootstrap.initialize(db, settings)
        finally:
            db.close()
        logger.info(f"{settings.PROJECT_NAME} started")

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    for module in (account, users, lessons, feedback, subscriptions, payments, health):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    return app

