# deaf_assistant/schemas/subscription.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class SubscriptionBase(BaseModel):
    plan_name: str = Field(min_length=1, max_length=30)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    billing_frequency: str = Field(default="Monthly", max_length=20)
    payment_method: str | None = Field(default=None, max_length=50)
    transaction_id: str | None = Field(default=None, max_length=100)
    end_date: datetime | None = None
    is_active: bool = True
    auto_renew: bool = True
    next_renewal_date: datetime | None = None


class SubscriptionCreate(SubscriptionBase):
    user_id: int


class SubscriptionUpdate(SubscriptionBase):
    id: int
    last_renewal_date: datetime | None = None
    cancellation_date: datetime | None = None


class SubscriptionPublic(SubscriptionBase):
    id: int
    user_id: int
    stripe_customer_id: str | None = None
    start_date: datetime
    last_renewal_date: datetime | None = None
    cancellation_date: datetime | None = None

    model_config = {"from_attributes": True}


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    price: Decimal
    price_in_cents: int
    currency: str
    billing_frequency: str
    stripe_price_id: str
    features: list[str]
