# deaf_assistant/services/subscription_service.py
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from deaf_assistant.libs.datetime import add_months, now
from deaf_assistant.models.subscription import Subscription
from deaf_assistant.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionPlan,
    SubscriptionUpdate,
)

logger = logging.getLogger(__name__)

FREE_PLAN_NAME = "Free Plan"

PLANS: List[SubscriptionPlan] = [
    SubscriptionPlan(
        id="free",
        name=FREE_PLAN_NAME,
        price=Decimal("0"),
        price_in_cents=0,
        currency="USD",
        billing_frequency="Monthly",
        stripe_price_id="price_free",
        features=[
            "Basic translation features",
            "Limited to 10 translations per day",
            "Standard support",
        ],
    ),
    SubscriptionPlan(
        id="premium_monthly",
        name="Premium Monthly",
        price=Decimal("9.99"),
        price_in_cents=999,
        currency="USD",
        billing_frequency="Monthly",
        stripe_price_id="price_1PMsevGBUvhcAy8sV8vKQ9t2",
        features=[
            "Unlimited translations",
            "Access to premium features",
            "Priority support",
            "Offline mode",
        ],
    ),
    SubscriptionPlan(
        id="premium_yearly",
        name="Premium Yearly",
        price=Decimal("99.99"),
        price_in_cents=9999,
        currency="USD",
        billing_frequency="Yearly",
        stripe_price_id="price_1PMseyGBUvhcAy8sPROiwFnN",
        features=[
            "Unlimited translations",
            "Access to premium features",
            "Priority support",
            "Offline mode",
            "Save 16% compared to monthly plan",
        ],
    ),
]


class SubscriptionError(Exception):
    pass


class SubscriptionExistsError(SubscriptionError):
    pass


def list_plans() -> List[SubscriptionPlan]:
    return PLANS


def renewal_months(billing_frequency: str) -> int:
    return 12 if (billing_frequency or "").lower() == "yearly" else 1


def get_subscription(db: Session, subscription_id: int) -> Optional[Subscription]:
    return db.get(Subscription, subscription_id)


def get_subscription_for_user(db: Session, user_id: int) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


def list_subscriptions(
    db: Session, *, skip: int = 0, limit: int = 100
) -> List[Subscription]:
    return (
        db.query(Subscription)
        .order_by(Subscription.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_or_create_free_subscription(db: Session, user_id: int) -> Subscription:
    """
    Return the user's subscription, creating the free tier on first read.

    This is the only place free subscriptions are created. The unique
    constraint on ``subscription.user_id`` decides concurrent first reads:
    the loser rolls back and returns the winner's row.
    """
    subscription = get_subscription_for_user(db, user_id)
    if subscription is not None:
        return subscription

    started = now()
    subscription = Subscription(
        user_id=user_id,
        plan_name=FREE_PLAN_NAME,
        price=Decimal("0"),
        currency="USD",
        billing_frequency="Monthly",
        start_date=started,
        end_date=None,  # free plan does not expire
        is_active=True,
        auto_renew=True,
        payment_method="None",
        last_renewal_date=started,
        next_renewal_date=add_months(started, 1),
    )
    db.add(subscription)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Free subscription for user {user_id} created concurrently")
        existing = get_subscription_for_user(db, user_id)
        if existing is None:
            raise
        return existing

    db.refresh(subscription)
    logger.info(f"Created free subscription {subscription.id} for user {user_id}")
    return subscription


def upsert_paid_subscription(
    db: Session,
    *,
    user_id: int,
    plan_name: str,
    amount_cents: int,
    currency: str,
    billing_frequency: str,
    transaction_id: str,
    customer_id: str,
) -> Subscription:
    """Create or update (in place) the user's single subscription after a successful charge."""
    paid_at = now()
    next_renewal = add_months(paid_at, renewal_months(billing_frequency))

    subscription = get_subscription_for_user(db, user_id)
    if subscription is None:
        subscription = Subscription(user_id=user_id, start_date=paid_at)
        db.add(subscription)
    else:
        subscription.last_renewal_date = paid_at

    subscription.plan_name = plan_name
    subscription.price = Decimal(amount_cents) / 100
    subscription.currency = currency.upper()
    subscription.billing_frequency = billing_frequency
    subscription.payment_method = "Stripe"
    subscription.transaction_id = transaction_id
    subscription.stripe_customer_id = customer_id
    subscription.is_active = True
    subscription.next_renewal_date = next_renewal
    # a new charge restarts renewal after an earlier cancellation
    subscription.auto_renew = True
    subscription.end_date = None
    subscription.cancellation_date = None

    db.commit()
    db.refresh(subscription)
    return subscription


def mark_transaction_succeeded(db: Session, transaction_id: str) -> Optional[Subscription]:
    subscription = (
        db.query(Subscription)
        .filter(Subscription.transaction_id == transaction_id)
        .first()
    )
    if subscription is None:
        logger.info(f"No subscription references transaction {transaction_id}")
        return None
    if not subscription.is_active:
        subscription.is_active = True
        db.commit()
        db.refresh(subscription)
    return subscription


def cancel_subscription(db: Session, *, db_obj: Subscription) -> Subscription:
    """Stop auto-renewal; the plan stays active until the paid period ends."""
    db_obj.auto_renew = False
    db_obj.cancellation_date = now()
    db_obj.end_date = db_obj.next_renewal_date
    db.commit()
    db.refresh(db_obj)
    return db_obj


def create_subscription(db: Session, *, obj_in: SubscriptionCreate) -> Subscription:
    if get_subscription_for_user(db, obj_in.user_id) is not None:
        raise SubscriptionExistsError(f"user {obj_in.user_id} already has a subscription")

    db_obj = Subscription(**obj_in.model_dump(), start_date=now())
    db.add(db_obj)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise SubscriptionExistsError(
            f"user {obj_in.user_id} already has a subscription"
        ) from e
    db.refresh(db_obj)
    return db_obj


def update_subscription(
    db: Session, *, db_obj: Subscription, obj_in: SubscriptionUpdate
) -> Subscription:
    update_data = obj_in.model_dump(exclude={"id"})
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_subscription(db: Session, *, db_obj: Subscription) -> None:
    db.delete(db_obj)
    db.commit()
