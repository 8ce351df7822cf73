"""
Payment request and response schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings
from app.models.payment import PaymentMethod, PaymentStatus


class PaymentItem(BaseModel):
    """Line item shown on a hosted checkout page."""

    product_name: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    cover_image: str | None = None


class CreatePaymentRequest(BaseModel):
    """Initiate a payment for an order."""

    order_id: int
    user_id: int
    method: str
    amount: Decimal = Field(gt=0)
    currency: str = Field(
        default_factory=lambda: settings.shop_currency,
        min_length=3,
        max_length=3,
        validate_default=True,
    )

    # Stripe Checkout
    redirect_to_checkout: bool = False
    items: list[PaymentItem] | None = None

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class CancelPaymentRequest(BaseModel):
    """Cancel or refund a payment at the provider."""

    method: str
    transaction_id: str = Field(min_length=1)

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.strip().upper()


class PaymentRead(BaseModel):
    """Stored payment attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    user_id: int
    method: PaymentMethod
    amount: Decimal
    currency: str
    status: PaymentStatus
    transaction_id: str | None = None
    provider: str
    created_at: datetime
    updated_at: datetime


class CreatedPaymentResponse(PaymentRead):
    """Payment plus what the client needs to finish it."""

    checkout_url: str | None = None
    client_secret: str | None = None


class PaymentOutcomeResponse(BaseModel):
    """Result of a confirm or cancel reconciliation."""

    transaction_id: str
    status: PaymentStatus
    provider_response: dict[str, Any]
