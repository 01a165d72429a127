# deaf_assistant/models/subscription.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from deaf_assistant.db.base import Base


class Subscription(Base):
    __tablename__ = "subscription"

    id = Column(Integer, primary_key=True, index=True)
    # one subscription row per user
    user_id = Column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    plan_name = Column(String(30), nullable=False)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    billing_frequency = Column(String(20), nullable=False, default="Monthly")

    payment_method = Column(String(50), nullable=True)
    transaction_id = Column(String(100), nullable=True, index=True)
    stripe_customer_id = Column(String(100), nullable=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    auto_renew = Column(Boolean, nullable=False, default=True)
    last_renewal_date = Column(DateTime, nullable=True)
    next_renewal_date = Column(DateTime, nullable=True)
    cancellation_date = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False)

    user = relationship("User", back_populates="subscriptions")

    __mapper_args__ = {"version_id_col": version}
