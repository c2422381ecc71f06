from datetime import datetime, timezone
from decimal import Decimal

import stripe
import structlog
from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config import settings
from shared.errors import BadRequestError
from shared.observability import (
    butcher_deposits_cents_total,
    butcher_orders_created_total,
    butcher_webhook_events_total,
)
from services.order_service.catalog import deposit_cents
from services.order_service.models import Order

from . import stripe_client
from .draft import DEFAULT_MEAT_TYPE, intent_metadata, parse_pickup_date, validate_draft
from .repository import PaymentRepository
from .schemas import OrderDraft

logger = structlog.get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


def _meta(metadata: dict, key: str, default=None):
    value = metadata.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return value


def order_from_intent(intent) -> Order:
    """Rebuilds the order from a succeeded PaymentIntent and its draft metadata."""
    metadata = intent.get("metadata") or {}
    amount = int(intent["amount"])
    notes = _meta(metadata, "notes")

    return Order(
        stripe_payment_intent_id=intent["id"],
        customer_name=_meta(metadata, "customerName", "Unknown Customer"),
        customer_phone=_meta(metadata, "customerPhone", "No Phone"),
        customer_email=_meta(metadata, "customerEmail", "No Email"),
        pickup_date=parse_pickup_date(_meta(metadata, "pickupDate")) or datetime.now(timezone.utc),
        meat_type=_meta(metadata, "meatType", DEFAULT_MEAT_TYPE).lower(),
        weight=_meta(metadata, "weight", "unknown"),
        custom_weight=_meta(metadata, "customWeight"),
        cut=_meta(metadata, "cut", "standard"),
        notes=None if notes == "None" else notes,
        amount_paid=amount,
        deposit_amount=str(Decimal(amount) / 100),
        currency=str(intent.get("currency") or settings.DEPOSIT_CURRENCY).upper(),
        status="paid",
        is_finished=False,
        version=1,
    )


class PaymentService:
    @staticmethod
    async def create_payment_intent(draft: OrderDraft) -> str:
        problems = validate_draft(draft)
        if problems:
            raise BadRequestError("Missing order details", problems)

        metadata = intent_metadata(draft)
        try:
            intent = await stripe_client.create_payment_intent(
                deposit_cents(), settings.DEPOSIT_CURRENCY, metadata
            )
        except stripe.StripeError as exc:
            logger.error("payment_intent_failed", error=str(exc), meat_type=metadata["meatType"])
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create payment",
            )

        logger.info("payment_intent_created", intent_id=intent["id"], meat_type=metadata["meatType"])
        return intent["client_secret"]

    @staticmethod
    def verify_event(payload: bytes, signature: str | None):
        if not signature:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing signature")
        try:
            return stripe_client.construct_event(payload, signature)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("webhook_signature_rejected", error=str(exc))
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")

    @staticmethod
    async def handle_event(db: AsyncSession, event) -> None:
        event_type = event["type"]
        if event_type != PAYMENT_SUCCEEDED:
            butcher_webhook_events_total.labels(event_type=event_type, outcome="ignored").inc()
            return

        intent = event["data"]["object"]
        try:
            order, created = await PaymentRepository.insert_order_once(db, order_from_intent(intent))
        except SQLAlchemyError:
            butcher_webhook_events_total.labels(event_type=event_type, outcome="error").inc()
            logger.exception("webhook_order_save_failed", intent_id=intent["id"])
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="DB error")

        if not created:
            butcher_webhook_events_total.labels(event_type=event_type, outcome="duplicate").inc()
            logger.info("webhook_duplicate_intent", intent_id=intent["id"], order_id=order.id)
            return

        butcher_webhook_events_total.labels(event_type=event_type, outcome="created").inc()
        butcher_orders_created_total.labels(meat_type=order.meat_type).inc()
        butcher_deposits_cents_total.inc(order.amount_paid)
        logger.info(
            "order_created",
            order_id=order.id,
            intent_id=intent["id"],
            meat_type=order.meat_type,
            amount_paid=order.amount_paid,
        )
