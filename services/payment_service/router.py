from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db

from .schemas import OrderDraft, PaymentIntentResponse, WebhookAck
from .service import PaymentService

# Called by the storefront and by Stripe; no admin session involved
router = APIRouter(prefix="/api/stripe", tags=["Payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(draft: OrderDraft):
    client_secret = await PaymentService.create_payment_intent(draft)
    return PaymentIntentResponse(client_secret=client_secret)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="stripe-signature"),
    db: AsyncSession = Depends(get_db),
):
    # Signature verification needs the exact raw bytes
    payload = await request.body()
    event = PaymentService.verify_event(payload, stripe_signature)
    await PaymentService.handle_event(db, event)
    return WebhookAck()
