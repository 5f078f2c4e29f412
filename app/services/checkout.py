import logging
import time
from typing import Dict, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, delete
from app.core.config import settings
from app.core.errors import ConflictError, InternalError, NotFoundError, TransientError, ValidationError
from app.db.session import is_retryable, transaction
from app.models.cart import CartItem
from app.models.order import OrderStatus
from app.models.product import Product
from app.schemas import OrderRead
from app.services.cart import require_user_id
from app.services.catalog import ProductService
from app.services.order import OrderService

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 10


def validate_shipping_address(shipping_address: Optional[str]) -> str:
    if shipping_address is None or not str(shipping_address).strip():
        raise ValidationError("shippingAddress is required", code="MISSING_SHIPPING_ADDRESS")
    address = str(shipping_address).strip()
    if len(address) < MIN_ADDRESS_LENGTH:
        raise ValidationError(
            f"shippingAddress must be at least {MIN_ADDRESS_LENGTH} characters",
            code="INVALID_SHIPPING_ADDRESS",
        )
    return address


def validate_status(status: Optional[str]) -> OrderStatus:
    if status is None:
        return OrderStatus.PENDING
    try:
        return OrderStatus(status)
    except ValueError:
        raise ValidationError(
            f"status must be one of: {', '.join(OrderStatus.values())}",
            code="INVALID_STATUS",
        )


class CheckoutService:
    """
    Turns a user's cart into an order.

    Validation, order rows, stock decrements and the cart clear all happen in
    one transaction: a checkout either fully succeeds or leaves cart, stock
    and orders untouched. Lock contention is retried with a fresh transaction.
    """

    def __init__(self, session: Session, max_attempts: Optional[int] = None, backoff: Optional[float] = None):
        self.session = session
        self.max_attempts = max_attempts or settings.CHECKOUT_MAX_ATTEMPTS
        self.backoff = settings.CHECKOUT_RETRY_BACKOFF if backoff is None else backoff
        self.products = ProductService(session)
        self.orders = OrderService(session)

    def place_order(self, user_id: str, shipping_address: str, status: Optional[str] = None) -> OrderRead:
        # Request validation happens before touching the store
        user_id = require_user_id(user_id)
        address = validate_shipping_address(shipping_address)
        order_status = validate_status(status)

        attempt = 0
        while True:
            attempt += 1
            try:
                order = self._place_order_once(user_id, address, order_status)
                break
            except SQLAlchemyError as e:
                if not is_retryable(e):
                    logger.exception("Checkout for user %s failed with a storage error", user_id)
                    raise InternalError("Internal server error while placing order")
                if attempt >= self.max_attempts:
                    logger.error("Checkout for user %s gave up after %s attempts: %s", user_id, attempt, e)
                    raise TransientError("Storage is busy, please retry the checkout", attempts=attempt)
                logger.warning("Checkout for user %s hit contention (%s/%s): %s", user_id, attempt, self.max_attempts, e)
                time.sleep(self.backoff * attempt)

        logger.info("Order %s placed for user %s", order.id, user_id)
        return order

    def _place_order_once(self, user_id: str, shipping_address: str, status: OrderStatus) -> OrderRead:
        with transaction(self.session):
            lines = self._load_cart(user_id)
            self._validate_lines(lines)
            order = self.orders.create_order(user_id, shipping_address, status, lines)
            for item, product in lines:
                self.products.decrement_stock(product.id, item.quantity)
            self._clear_cart(user_id, len(lines))
            # Built before commit so no read is needed once the order exists
            self.session.refresh(order)
            view = self.orders.to_view(order)
        return view

    def _load_cart(self, user_id: str) -> List[Tuple[CartItem, Optional[Product]]]:
        # Locking the lines makes a second checkout of the same cart wait,
        # then find it empty
        items = self.session.exec(
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).all()
        if not items:
            raise ConflictError("Cart is empty", code="EMPTY_CART")

        # Lock the products in id order so concurrent checkouts cannot deadlock
        product_ids = sorted({item.product_id for item in items})
        products: Dict[int, Product] = {
            p.id: p for p in self.session.exec(
                select(Product)
                .where(Product.id.in_(product_ids))
                .order_by(Product.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).all()
        }
        return [(item, products.get(item.product_id)) for item in items]

    def _clear_cart(self, user_id: str, expected: int) -> None:
        result = self.session.exec(delete(CartItem).where(CartItem.user_id == user_id))
        if result.rowcount != expected:
            # Another checkout took these lines first
            logger.warning("Checkout for user %s expected %s cart lines, removed %s", user_id, expected, result.rowcount)
            raise ConflictError("Cart is empty", code="EMPTY_CART")

    def _validate_lines(self, lines: List[Tuple[CartItem, Optional[Product]]]) -> None:
        """Check every line before anything is written."""
        for item, product in lines:
            if product is None:
                logger.info("Checkout rejected: product %s no longer exists", item.product_id)
                raise NotFoundError(
                    f"Product with ID {item.product_id} not found",
                    code="PRODUCT_NOT_FOUND",
                    productId=item.product_id,
                )
            if product.stock < item.quantity:
                logger.info("Checkout rejected: %s has %s in stock, %s requested", product.name, product.stock, item.quantity)
                raise ConflictError(
                    f"Insufficient stock for product: {product.name}. Available: {product.stock}, Requested: {item.quantity}",
                    code="INSUFFICIENT_STOCK",
                    productId=product.id,
                    productName=product.name,
                    available=product.stock,
                    requested=item.quantity,
                )
