# deaf_assistant/services/payment_service.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import stripe
from sqlalchemy.orm import Session

from deaf_assistant.core.config import Settings
from deaf_assistant.models.subscription import Subscription
from deaf_assistant.models.user import User
from deaf_assistant.schemas.payment import PaymentIntentCreateRequest, ProcessPaymentRequest
from deaf_assistant.services import subscription_service

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


class PaymentError(Exception):
    pass


class WebhookVerificationError(PaymentError):
    pass


@dataclass
class PaymentResult:
    payment_id: str
    status: str


class PaymentGateway(Protocol):
    publishable_key: str

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str: ...

    def create_customer(self, email: str, name: str) -> str: ...

    def process_payment(
        self,
        payment_method_id: str,
        customer_id: str,
        amount: int,
        currency: str,
        description: str,
    ) -> PaymentResult: ...

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]: ...


class StripePaymentGateway:
    """Thin wrapper around the Stripe SDK. Amounts are in cents."""

    def __init__(self, settings: Settings):
        self.api_key = settings.STRIPE_SECRET_KEY
        self.publishable_key = settings.STRIPE_PUBLISHABLE_KEY
        self.webhook_secret = settings.STRIPE_WEBHOOK_SECRET

    def _require_key(self) -> str:
        if not self.api_key:
            raise PaymentError("Stripe not configured")
        return self.api_key

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        description: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> str:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._require_key(),
                amount=amount,
                currency=currency,
                description=description,
                automatic_payment_methods={"enabled": True},
                metadata=metadata or {},
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating payment intent: {e}")
            raise PaymentError("Error creating payment intent") from e
        return intent.client_secret

    def create_customer(self, email: str, name: str) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._require_key(), email=email, name=name
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating customer: {e}")
            raise PaymentError("Error creating Stripe customer") from e
        return customer.id

    def process_payment(
        self,
        payment_method_id: str,
        customer_id: str,
        amount: int,
        currency: str,
        description: str,
    ) -> PaymentResult:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._require_key(),
                amount=amount,
                currency=currency,
                customer=customer_id,
                payment_method=payment_method_id,
                description=description,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            )
        except stripe.StripeError as e:
            logger.error(f"Error processing payment: {e}")
            raise PaymentError("Error processing payment") from e
        return PaymentResult(payment_id=intent.id, status=intent.status)

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not self.webhook_secret:
            raise WebhookVerificationError("Webhook secret not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            raise WebhookVerificationError("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError("Invalid signature") from e
        return json.loads(payload)


def create_payment_intent(
    gateway: PaymentGateway,
    *,
    user: User,
    obj_in: PaymentIntentCreateRequest,
) -> str:
    metadata = {
        "userId": str(user.id),
        "planName": obj_in.plan_name,
        "email": user.email or "",
    }
    return gateway.create_payment_intent(
        obj_in.amount, obj_in.currency, obj_in.description, metadata
    )


def process_payment(
    db: Session,
    gateway: PaymentGateway,
    *,
    user: User,
    obj_in: ProcessPaymentRequest,
) -> tuple[PaymentResult, Optional[Subscription]]:
    """
    Charge the user and, when the charge succeeds, upsert their subscription.

    The Stripe customer id stored on an existing subscription is reused;
    otherwise a new customer is created. A failed charge leaves the
    subscription untouched and returns ``(result, None)``.
    """
    existing = subscription_service.get_subscription_for_user(db, user.id)

    if existing is not None and existing.stripe_customer_id:
        customer_id = existing.stripe_customer_id
    else:
        customer_id = gateway.create_customer(
            user.email or f"user_{user.id}@example.com",
            user.full_name or f"User {user.id}",
        )

    result = gateway.process_payment(
        obj_in.payment_method_id,
        customer_id,
        obj_in.amount,
        obj_in.currency,
        obj_in.description,
    )

    if result.status != "succeeded":
        logger.warning(
            f"Payment {result.payment_id} for user {user.id} ended with status {result.status}"
        )
        return result, None

    subscription = subscription_service.upsert_paid_subscription(
        db,
        user_id=user.id,
        plan_name=obj_in.plan_name,
        amount_cents=obj_in.amount,
        currency=obj_in.currency,
        billing_frequency=obj_in.billing_frequency,
        transaction_id=result.payment_id,
        customer_id=customer_id,
    )
    logger.info(f"Payment {result.payment_id} succeeded, subscription {subscription.id} active")
    return result, subscription


def handle_webhook_event(db: Session, event: Dict[str, Any]) -> None:
    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    intent_id = intent.get("id")

    if event_type == PAYMENT_SUCCEEDED:
        logger.info(f"Payment succeeded: {intent_id}")
        if intent_id:
            subscription_service.mark_transaction_succeeded(db, intent_id)
    elif event_type == PAYMENT_FAILED:
        logger.warning(f"Payment failed: {intent_id}")
    else:
        logger.debug(f"Ignoring webhook event {event_type}")
