# deaf_assistant/schemas/payment.py
from pydantic import BaseModel, Field


class PaymentIntentCreateRequest(BaseModel):
    amount: int = Field(gt=0)  # cents, e.g. 2000 for $20.00
    currency: str = "usd"
    description: str
    plan_name: str


class PaymentIntentResponse(BaseModel):
    client_secret: str
    publishable_key: str


class ProcessPaymentRequest(BaseModel):
    payment_method_id: str
    amount: int = Field(gt=0)  # cents
    currency: str = "usd"
    description: str
    plan_name: str = Field(max_length=30)
    billing_frequency: str = "Monthly"  # Monthly / Yearly


class PaymentResponse(BaseModel):
    success: bool
    payment_id: str | None = None
    status: str
    error_message: str | None = None
