"""
Payments Module - pluggable payment methods.

Features:
- Strategy dispatch keyed by payment method
- Stripe Checkout sessions and payment intents
- Confirmation, cancellation and refunds
- Cash payments
- Order status sync after reconciliation
"""

from app.modules.payments.service import PaymentService, build_payment_service

__all__ = [
    "PaymentService",
    "build_payment_service",
]
