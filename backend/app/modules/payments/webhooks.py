"""
Stripe webhook verification and routing.
"""

from typing import Any

import stripe
from loguru import logger

from app.core.config import settings
from app.models.payment import PaymentMethod
from app.modules.payments.service import PaymentService
from app.modules.payments.strategies import PaymentOutcome

# Events that change the state of a payment we store
RECONCILED_EVENTS = {
    "checkout.session.completed",
    "checkout.session.expired",
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
}


def verify_stripe_webhook(payload: bytes, signature: str) -> dict[str, Any] | None:
    """
    Verify Stripe webhook signature and return event.

    Args:
        payload: Raw request body
        signature: Stripe-Signature header

    Returns:
        Verified event data or None if invalid
    """
    try:
        event = stripe.Webhook.construct_event(
            payload,
            signature,
            settings.stripe_webhook_secret,
        )
    except stripe.SignatureVerificationError:
        logger.warning("Invalid Stripe webhook signature")
        return None
    except ValueError as e:
        logger.warning(f"Malformed Stripe webhook payload: {e}")
        return None

    return {
        "type": event.type,
        "data": event.data.object,
    }


async def handle_stripe_event(
    payments: PaymentService,
    event: dict[str, Any],
) -> PaymentOutcome | None:
    """
    Reconcile the payment an event refers to.

    Returns:
        Outcome of the reconciliation, None for ignored events
    """
    event_type = event["type"]
    if event_type not in RECONCILED_EVENTS:
        logger.debug(f"Ignoring Stripe event {event_type}")
        return None

    object_id = getattr(event["data"], "id", None)
    if not object_id:
        logger.warning(f"Stripe event {event_type} without object id")
        return None

    return await payments.confirm_payment(PaymentMethod.STRIPE.value, object_id)
