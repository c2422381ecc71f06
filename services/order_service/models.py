import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from shared.config.database import Base

STATUS_PENDING = "pending"
STATUS_DONE = "done"

NEW_ORDER_WINDOW = timedelta(hours=24)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = {"schema": "order_schema"}

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Idempotency key for webhook inserts
    stripe_payment_intent_id = Column(String(255), unique=True, nullable=False, index=True)

    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(64), nullable=False)
    customer_email = Column(String(255), nullable=False)

    meat_type = Column(String(32), nullable=False, index=True)
    cut = Column(String(64), nullable=False)
    weight = Column(String(32), nullable=False)  # option in kg, 'custom' or 'unknown'
    custom_weight = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    pickup_date = Column(DateTime(timezone=True), nullable=False)

    amount_paid = Column(Integer, nullable=False)  # cents
    deposit_amount = Column(String(32), nullable=False)  # display value in euro
    currency = Column(String(3), nullable=False, default="EUR")
    status = Column(String(32), nullable=False, default="paid")  # payment status

    is_finished = Column(Boolean, nullable=False, default=False, index=True)
    # Bumped on every finished-flag write; optimistic concurrency token
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def production_status(self) -> str:
        return STATUS_DONE if self.is_finished else STATUS_PENDING

    @property
    def is_new(self) -> bool:
        if self.created_at is None:
            return False
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - created <= NEW_ORDER_WINDOW
