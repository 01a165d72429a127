# deaf_assistant/api/endpoints/payments.py
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from deaf_assistant.api.deps import get_current_user, get_payment_gateway
from deaf_assistant.db.session import get_db
from deaf_assistant.models.user import User
from deaf_assistant.schemas.payment import (
    PaymentIntentCreateRequest,
    PaymentIntentResponse,
    PaymentResponse,
    ProcessPaymentRequest,
)
from deaf_assistant.services import payment_service
from deaf_assistant.services.payment_service import (
    PaymentError,
    PaymentGateway,
    WebhookVerificationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    obj_in: PaymentIntentCreateRequest,
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    try:
        client_secret = payment_service.create_payment_intent(
            gateway, user=current_user, obj_in=obj_in
        )
    except PaymentError as e:
        logger.error(f"Error creating payment intent for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating payment intent: {e}",
        )
    return PaymentIntentResponse(
        client_secret=client_secret, publishable_key=gateway.publishable_key or ""
    )


@router.post("/process-payment", response_model=PaymentResponse)
def process_payment(
    obj_in: ProcessPaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    try:
        result, subscription = payment_service.process_payment(
            db, gateway, user=current_user, obj_in=obj_in
        )
    except PaymentError as e:
        logger.error(f"Error processing payment for user {current_user.id}: {e}")
        body = PaymentResponse(success=False, status="error", error_message=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump()
        )

    if subscription is None:
        body = PaymentResponse(
            success=False,
            payment_id=result.payment_id,
            status=result.status,
            error_message="Payment processing failed",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump()
        )

    return PaymentResponse(success=True, payment_id=result.payment_id, status=result.status)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(default="", alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    try:
        event = gateway.construct_event(payload, stripe_signature)
    except WebhookVerificationError as e:
        logger.warning(f"Rejected webhook: {e}")
        raise HTTPException(status_code=400, detail="Webhook processing failed")

    payment_service.handle_webhook_event(db, event)
    return {"received": True}
