
# Import all models to register them with SQLModel
from app.models.product import Product
from app.models.cart import CartItem
from app.models.order import Order, OrderItem, OrderStatus

__all__ = [
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
]
