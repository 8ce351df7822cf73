"""
Stripe payment strategy.

Handles:
- Checkout sessions (hosted page redirect)
- Payment intents (client-side confirmation)
- Confirmation against the provider's reported status
- Cancellation and refunds
"""

from collections.abc import Awaitable, Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from loguru import logger
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BadRequestError, PaymentProviderError
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.modules.payments.events import sync_order_payment_status
from app.modules.payments.schemas import CreatePaymentRequest
from app.modules.payments.strategies.base import (
    CreatedPayment,
    PaymentOutcome,
    PaymentStrategy,
)

PaymentUpdatedHook = Callable[[AsyncSession, str, PaymentStatus], Awaitable[None]]

COMPLETED_STATES = {"succeeded", "complete"}
FAILED_STATES = {"requires_payment_method", "canceled"}


def to_minor_units(amount: Decimal | float | int) -> int:
    """Convert a major-unit amount to cents, rounding half up."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def map_provider_status(provider_status: str | None) -> PaymentStatus:
    """Map a PaymentIntent or Checkout Session status to a local status."""
    if provider_status in COMPLETED_STATES:
        return PaymentStatus.COMPLETED
    if provider_status in FAILED_STATES:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


def snapshot(stripe_object: Any) -> dict[str, Any]:
    """JSON-safe copy of a Stripe object for audit storage."""
    return stripe_object.to_dict(recursive=True, for_json=True)


class StripePaymentStrategy(PaymentStrategy):
    """
    Stripe payment strategy.

    Each operation calls Stripe first and then writes the local payment
    row; the two steps are not transactional.

    Usage:
        strategy = StripePaymentStrategy(db_session)
        created = await strategy.create(request)
        outcome = await strategy.confirm(created.payment.transaction_id)
    """

    method = PaymentMethod.STRIPE
    provider = "stripe"

    def __init__(
        self,
        db: AsyncSession,
        on_updated: PaymentUpdatedHook | None = sync_order_payment_status,
    ) -> None:
        """Initialize Stripe with API key."""
        super().__init__(db)
        stripe.api_key = settings.stripe_secret_key
        self.on_updated = on_updated

    # ==================== Create ====================

    async def create(self, data: CreatePaymentRequest) -> CreatedPayment:
        """
        Start a Stripe payment.

        Args:
            data: Payment request; ``redirect_to_checkout`` selects a hosted
                Checkout Session instead of a PaymentIntent

        Returns:
            Stored payment with ``checkout_url`` or ``client_secret``
        """
        currency = data.currency.lower()
        metadata = {"order_id": str(data.order_id), "user_id": str(data.user_id)}

        if data.redirect_to_checkout:
            return await self._create_checkout_session(data, currency, metadata)
        return await self._create_payment_intent(data, currency, metadata)

    async def _create_checkout_session(
        self,
        data: CreatePaymentRequest,
        currency: str,
        metadata: dict[str, str],
    ) -> CreatedPayment:
        if not data.items:
            raise BadRequestError("Checkout requires at least one item")

        line_items = []
        for item in data.items:
            line_items.append(
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": item.product_name,
                            "images": [item.cover_image] if item.cover_image else [],
                        },
                        "unit_amount": to_minor_units(item.unit_price),
                    },
                    "quantity": item.quantity,
                }
            )

        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=line_items,
                mode="payment",
                success_url=settings.stripe_success_url,
                cancel_url=settings.stripe_cancel_url,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session: {e}")
            raise PaymentProviderError("Unable to create checkout session") from e

        payment = await self._save_payment(
            data,
            transaction_id=session.id,
            raw_response=snapshot(session),
        )
        logger.info(f"Checkout session {session.id} created for order {data.order_id}")

        return CreatedPayment(payment=payment, checkout_url=session.url)

    async def _create_payment_intent(
        self,
        data: CreatePaymentRequest,
        currency: str,
        metadata: dict[str, str],
    ) -> CreatedPayment:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(data.amount),
                currency=currency,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {e}")
            raise PaymentProviderError("Unable to create payment intent") from e

        payment = await self._save_payment(
            data,
            transaction_id=intent.id,
            raw_response=snapshot(intent),
        )
        logger.info(f"Payment intent {intent.id} created for order {data.order_id}")

        return CreatedPayment(payment=payment, client_secret=intent.client_secret)

    # ==================== Confirm ====================

    async def confirm(self, transaction_id: str) -> PaymentOutcome:
        """
        Reconcile a payment with Stripe's reported status.

        The id is tried as a PaymentIntent first, then as a Checkout Session.
        """
        stripe_object = self._retrieve_intent(transaction_id)
        if stripe_object is None:
            stripe_object = self._retrieve_session(transaction_id)
        if stripe_object is None:
            raise PaymentProviderError(f"Stripe object not found for {transaction_id}")

        status = map_provider_status(getattr(stripe_object, "status", None))
        outcome = await self._record(transaction_id, status, stripe_object)
        logger.info(f"Payment {transaction_id} confirmed as {status.value}")

        if self.on_updated:
            await self.on_updated(self.db, transaction_id, status)

        return outcome

    # ==================== Cancel ====================

    async def cancel(self, transaction_id: str) -> PaymentOutcome:
        """
        Cancel a pending payment or refund a succeeded one.

        Checkout Session ids are resolved to their PaymentIntent.
        """
        intent = self._retrieve_intent(transaction_id)

        if intent is None:
            session = self._retrieve_session(transaction_id)
            intent = getattr(session, "payment_intent", None) if session else None
            if intent is None or isinstance(intent, str):
                raise PaymentProviderError(f"Unable to cancel payment {transaction_id}")

        if intent.status == "canceled":
            raise PaymentProviderError(f"Payment {transaction_id} is already canceled")

        try:
            if intent.status == "succeeded":
                result = stripe.Refund.create(payment_intent=intent.id)
                status = PaymentStatus.REFUNDED
            else:
                result = stripe.PaymentIntent.cancel(intent.id)
                status = PaymentStatus.FAILED
        except stripe.StripeError as e:
            logger.error(f"Stripe error cancelling payment {transaction_id}: {e}")
            raise PaymentProviderError(f"Unable to cancel payment {transaction_id}") from e

        outcome = await self._record(transaction_id, status, result)
        logger.info(f"Payment {transaction_id} cancelled as {status.value}")
        return outcome

    # ==================== Helpers ====================

    def _retrieve_intent(self, transaction_id: str) -> Any | None:
        try:
            return stripe.PaymentIntent.retrieve(transaction_id)
        except stripe.StripeError:
            return None

    def _retrieve_session(self, transaction_id: str) -> Any | None:
        try:
            return stripe.checkout.Session.retrieve(
                transaction_id,
                expand=["payment_intent"],
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving {transaction_id}: {e}")
            return None

    async def _record(
        self,
        transaction_id: str,
        status: PaymentStatus,
        stripe_object: Any,
    ) -> PaymentOutcome:
        """Write status and raw provider response to every matching row."""
        raw = snapshot(stripe_object)
        await self.db.execute(
            update(Payment)
            .where(Payment.transaction_id == transaction_id)
            .values(status=status, raw_response=raw)
        )
        await self.db.flush()
        return PaymentOutcome(transaction_id=transaction_id, status=status, raw=raw)
