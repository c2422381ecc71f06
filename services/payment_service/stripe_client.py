"""
Thin wrapper over the Stripe SDK. The SDK is synchronous, so calls that hit
the network run in a worker thread.
"""
import asyncio
import json

import stripe

from shared.config import settings


async def create_payment_intent(amount_cents: int, currency: str, metadata: dict) -> stripe.PaymentIntent:
    return await asyncio.to_thread(
        stripe.PaymentIntent.create,
        api_key=settings.STRIPE_SECRET_KEY,
        amount=amount_cents,
        currency=currency,
        automatic_payment_methods={"enabled": True},
        metadata=metadata,
    )


def construct_event(payload: bytes, signature: str) -> dict:
    """
    Verifies the stripe-signature header and returns the event as plain JSON.

    Raises ValueError for a malformed payload and SignatureVerificationError
    for a bad or expired signature.
    """
    text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    stripe.WebhookSignature.verify_header(text, signature, settings.STRIPE_WEBHOOK_SECRET)
    return json.loads(text)
