"""
Payment strategy contract.

Every strategy creates payments. Confirming and cancelling are optional
capabilities: a strategy supports them by defining ``confirm`` /
``cancel`` coroutines.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.modules.payments.schemas import CreatePaymentRequest


@dataclass
class CreatedPayment:
    """Stored payment plus client-side completion details."""

    payment: Payment
    checkout_url: str | None = None
    client_secret: str | None = None


@dataclass
class PaymentOutcome:
    """Local status after reconciling with the provider."""

    transaction_id: str
    status: PaymentStatus
    raw: dict[str, Any] = field(default_factory=dict)


class PaymentStrategy(ABC):
    """Base class for payment methods."""

    method: ClassVar[PaymentMethod]
    provider: ClassVar[str]

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @abstractmethod
    async def create(self, data: CreatePaymentRequest) -> CreatedPayment:
        """Start a payment and persist its record."""

    async def _save_payment(
        self,
        data: CreatePaymentRequest,
        transaction_id: str | None = None,
        raw_response: dict[str, Any] | None = None,
    ) -> Payment:
        """Persist a PENDING payment row for this attempt."""
        payment = Payment(
            order_id=data.order_id,
            user_id=data.user_id,
            method=self.method,
            amount=data.amount,
            currency=data.currency,
            status=PaymentStatus.PENDING,
            transaction_id=transaction_id,
            provider=self.provider,
            raw_response=raw_response,
        )
        self.db.add(payment)
        await self.db.flush()
        await self.db.refresh(payment)
        return payment
