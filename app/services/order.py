from typing import List, Optional, Tuple
from sqlmodel import Session, select
from app.core.errors import ForbiddenError, NotFoundError
from app.models.cart import CartItem
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.schemas import OrderItemRead, OrderRead, ProductRead
from app.services.cart import require_user_id

class OrderService:
    def __init__(self, session: Session):
        self.session = session

    def create_order(
        self,
        user_id: str,
        shipping_address: str,
        status: OrderStatus,
        lines: List[Tuple[CartItem, Product]],
    ) -> Order:
        """
        Add an order and one item per cart line to the current transaction.

        Prices are copied from the products as loaded by the caller, so the
        order keeps them even if the catalog changes later. Flushes to obtain
        ids but does not commit.
        """
        total_amount = sum(product.price * item.quantity for item, product in lines)
        order = Order(
            user_id=user_id,
            total_amount=total_amount,
            status=status,
            shipping_address=shipping_address,
        )
        self.session.add(order)
        self.session.flush()

        for item, product in lines:
            self.session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=item.quantity,
                price=product.price,
            ))
        self.session.flush()
        return order

    def to_view(self, order: Order) -> OrderRead:
        items_with_details = []
        for item in order.items:
            product = self.session.get(Product, item.product_id)
            items_with_details.append(OrderItemRead(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.price * item.quantity,
                product=ProductRead.model_validate(product) if product else None,
            ))

        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            total_amount=order.total_amount,
            status=order.status,
            shipping_address=order.shipping_address,
            created_at=order.created_at,
            items=items_with_details,
        )

    def get_order(self, order_id: int, user_id: Optional[str] = None) -> OrderRead:
        order = self.session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND", id=order_id)

        # Verify ownership if a user was given
        if user_id and order.user_id != user_id:
            raise ForbiddenError("Forbidden - order does not belong to user", code="FORBIDDEN")
        return self.to_view(order)

    def list_user_orders(self, user_id: str) -> List[OrderRead]:
        user_id = require_user_id(user_id)
        orders = self.session.exec(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()
        return [self.to_view(order) for order in orders]
