from app.modules.payments.strategies.base import (
    CreatedPayment,
    PaymentOutcome,
    PaymentStrategy,
)
from app.modules.payments.strategies.cash import CashPaymentStrategy
from app.modules.payments.strategies.stripe import StripePaymentStrategy

__all__ = [
    "CashPaymentStrategy",
    "CreatedPayment",
    "PaymentOutcome",
    "PaymentStrategy",
    "StripePaymentStrategy",
]
