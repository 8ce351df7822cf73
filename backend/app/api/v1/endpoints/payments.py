"""
Payment API Endpoints.

Create, confirm and cancel payments through the registered methods.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.modules.payments.schemas import (
    CancelPaymentRequest,
    CreatedPaymentResponse,
    CreatePaymentRequest,
    PaymentOutcomeResponse,
    PaymentRead,
)
from app.modules.payments.service import PaymentService, build_payment_service
from app.modules.payments.strategies import PaymentOutcome

router = APIRouter()


async def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    """Payment service bound to the request's session."""
    return build_payment_service(db)


def _outcome_response(outcome: PaymentOutcome) -> PaymentOutcomeResponse:
    return PaymentOutcomeResponse(
        transaction_id=outcome.transaction_id,
        status=outcome.status,
        provider_response=outcome.raw,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    request: CreatePaymentRequest,
    payments: PaymentService = Depends(get_payment_service),
) -> CreatedPaymentResponse:
    """
    Start a payment.

    Stripe returns ``checkout_url`` when ``redirect_to_checkout`` is set,
    otherwise ``client_secret`` for client-side confirmation.
    """
    created = await payments.create_payment(request)

    return CreatedPaymentResponse(
        **PaymentRead.model_validate(created.payment).model_dump(),
        checkout_url=created.checkout_url,
        client_secret=created.client_secret,
    )


@router.get("/methods")
async def get_payment_methods(
    payments: PaymentService = Depends(get_payment_service),
) -> dict[str, Any]:
    """
    List supported payment methods.

    Also returns the shop currency and the Stripe publishable key the
    client needs to confirm a PaymentIntent with ``client_secret``.
    """
    return {
        "methods": payments.supported_methods(),
        "currency": settings.shop_currency,
        "stripe_publishable_key": settings.stripe_publishable_key or None,
    }


@router.get("/confirm")
async def confirm_payment(
    method: str = Query(..., description="Payment method, e.g. STRIPE"),
    transaction_id: str = Query(..., min_length=1, description="Provider transaction ID"),
    payments: PaymentService = Depends(get_payment_service),
) -> PaymentOutcomeResponse:
    """Reconcile a payment with the provider (return URL target)."""
    outcome = await payments.confirm_payment(method.strip().upper(), transaction_id)
    return _outcome_response(outcome)


@router.post("/cancel")
async def cancel_payment(
    request: CancelPaymentRequest,
    payments: PaymentService = Depends(get_payment_service),
) -> PaymentOutcomeResponse:
    """Cancel a pending payment or refund a completed one."""
    outcome = await payments.cancel_payment(request.method, request.transaction_id)
    return _outcome_response(outcome)
