"""
Cash on delivery.
"""

from loguru import logger

from app.models.payment import PaymentMethod
from app.modules.payments.schemas import CreatePaymentRequest
from app.modules.payments.strategies.base import CreatedPayment, PaymentStrategy


class CashPaymentStrategy(PaymentStrategy):
    """Records a pending cash payment; settled outside the system."""

    method = PaymentMethod.CASH
    provider = "cash"

    async def create(self, data: CreatePaymentRequest) -> CreatedPayment:
        payment = await self._save_payment(data)
        logger.info(f"Cash payment {payment.id} recorded for order {data.order_id}")
        return CreatedPayment(payment=payment)
