"""
Webhook Endpoints.

Handles incoming webhooks from external services:
- Stripe (payment confirmations, expirations, failures)
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from loguru import logger

from app.api.v1.endpoints.payments import get_payment_service
from app.core.config import settings
from app.modules.payments.service import PaymentService
from app.modules.payments.webhooks import handle_stripe_event, verify_stripe_webhook

router = APIRouter()


@router.post("/stripe", status_code=200)
async def stripe_webhook(
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
) -> Response:
    """
    Stripe Webhook Endpoint.

    Reconciles the referenced payment against Stripe. Provider errors
    propagate as 5xx so Stripe retries the delivery.
    """
    body = await request.body()
    signature = request.headers.get("Stripe-Signature")

    if not signature:
        raise HTTPException(status_code=401, detail="Missing signature")

    event = verify_stripe_webhook(body, signature)
    if not event:
        raise HTTPException(status_code=401, detail="Invalid signature")

    logger.info(f"Received Stripe webhook: {event['type']}")

    outcome = await handle_stripe_event(payments, event)
    if outcome:
        logger.info(
            f"Webhook reconciled {outcome.transaction_id} as {outcome.status.value}"
        )

    return Response(status_code=200)


@router.get("/health")
async def webhook_health() -> dict:
    """Health check for webhook endpoints."""
    return {
        "status": "healthy",
        "stripe_configured": bool(settings.stripe_webhook_secret),
    }
