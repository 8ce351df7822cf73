"""
Order updates driven by payment status changes.
"""

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment, PaymentStatus
from app.models.shop import Order, OrderStatus


async def sync_order_payment_status(
    db: AsyncSession,
    transaction_id: str,
    status: PaymentStatus,
) -> None:
    """
    Move a pending order along after its payment was reconciled.

    COMPLETED -> order is processing and marked paid.
    FAILED -> order is cancelled.
    Orders that already left ``pending`` are not touched.
    """
    result = await db.execute(
        select(Payment).where(Payment.transaction_id == transaction_id).limit(1)
    )
    payment = result.scalar_one_or_none()
    if not payment:
        return

    order = await db.get(Order, payment.order_id)
    if not order or order.status != OrderStatus.PENDING:
        return

    if status == PaymentStatus.COMPLETED:
        order.payment_status = PaymentStatus.COMPLETED
        order.status = OrderStatus.PROCESSING
    elif status == PaymentStatus.FAILED:
        order.status = OrderStatus.CANCELLED
    else:
        return

    await db.flush()
    logger.info(f"Order {order.order_number} moved to {order.status.value}")
