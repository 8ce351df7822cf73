"""ORM models. Importing this package registers every table on ``Base.metadata``."""

from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.shop import Category, Order, OrderStatus, Product
from app.models.user import User

__all__ = [
    "Category",
    "Order",
    "OrderStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Product",
    "User",
]
