"""
Payment Service - dispatch to payment strategies by method.
"""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError
from app.modules.payments.schemas import CreatePaymentRequest
from app.modules.payments.strategies import (
    CashPaymentStrategy,
    CreatedPayment,
    PaymentOutcome,
    PaymentStrategy,
    StripePaymentStrategy,
)


class PaymentService:
    """
    Routes payment operations to the strategy registered for a method.

    Usage:
        payments = PaymentService([StripePaymentStrategy(db), CashPaymentStrategy(db)])
        created = await payments.create_payment(request)
    """

    def __init__(self, strategies: Iterable[PaymentStrategy]) -> None:
        """Index strategies by their method identifier."""
        self._strategies: dict[str, PaymentStrategy] = {
            strategy.method.value: strategy for strategy in strategies
        }

    def supported_methods(self) -> list[str]:
        """Registered method identifiers."""
        return sorted(self._strategies)

    async def create_payment(self, data: CreatePaymentRequest) -> CreatedPayment:
        """Start a payment with the strategy for ``data.method``."""
        strategy = self._strategies.get(data.method)
        if not strategy:
            raise BadRequestError("Unsupported payment method")
        return await strategy.create(data)

    async def confirm_payment(self, method: str, transaction_id: str) -> PaymentOutcome:
        """Reconcile a payment with its provider."""
        confirm = getattr(self._strategies.get(method), "confirm", None)
        if confirm is None:
            raise BadRequestError("Confirm not supported for this method")
        return await confirm(transaction_id)

    async def cancel_payment(self, method: str, transaction_id: str) -> PaymentOutcome:
        """Cancel or refund a payment at its provider."""
        cancel = getattr(self._strategies.get(method), "cancel", None)
        if cancel is None:
            raise BadRequestError("Cancel not supported for this method")
        return await cancel(transaction_id)


def build_payment_service(db: AsyncSession) -> PaymentService:
    """Payment service with every supported strategy."""
    return PaymentService(
        [
            StripePaymentStrategy(db),
            CashPaymentStrategy(db),
        ]
    )
