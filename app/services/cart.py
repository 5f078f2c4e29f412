import logging
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, delete
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.session import transaction
from app.models.cart import CartItem
from app.models.product import Product
from app.schemas import CartItemRead, CartLineRead, CartRead, ProductRead

logger = logging.getLogger(__name__)


def require_user_id(user_id: Optional[str]) -> str:
    if user_id is None or not str(user_id).strip():
        raise ValidationError("userId is required", code="MISSING_USER_ID")
    return str(user_id).strip()


def validate_quantity(quantity) -> int:
    if quantity is None:
        raise ValidationError("Quantity is required", code="MISSING_QUANTITY")
    # bool is an int subclass, reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", code="INVALID_QUANTITY")
    return quantity


def to_line(item: CartItem, product: Product) -> CartLineRead:
    return CartLineRead(
        id=item.id,
        user_id=item.user_id,
        product_id=item.product_id,
        quantity=item.quantity,
        created_at=item.created_at,
        product=ProductRead.model_validate(product),
        subtotal=product.price * item.quantity,
    )


class CartService:
    def __init__(self, session: Session):
        self.session = session

    def _lines(self, user_id: str) -> List[Tuple[CartItem, Product]]:
        return self.session.exec(
            select(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.id)
        ).all()

    def _get_product(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND", productId=product_id)
        return product

    @staticmethod
    def _check_stock(product: Product, requested: int) -> None:
        if product.stock < requested:
            raise ConflictError(
                f"Insufficient stock available for {product.name}",
                code="INSUFFICIENT_STOCK",
                productId=product.id,
                available=product.stock,
                requested=requested,
            )

    def list_for_user(self, user_id: str) -> CartRead:
        """Get all cart items for a user with product details"""
        user_id = require_user_id(user_id)
        items = [to_line(item, product) for item, product in self._lines(user_id)]
        return CartRead(items=items, total=sum(line.subtotal for line in items))

    def add_or_merge(self, user_id: str, product_id: int, quantity: int) -> CartLineRead:
        """Add item to cart or update quantity if already exists"""
        user_id = require_user_id(user_id)
        quantity = validate_quantity(quantity)
        product = self._get_product(product_id)
        self._check_stock(product, quantity)

        try:
            return self._merge_or_insert(user_id, product, quantity)
        except IntegrityError:
            # Another request inserted the same (user, product) line first
            logger.info("Cart line for user %s product %s appeared concurrently, merging", user_id, product_id)
            return self._merge_or_insert(user_id, product, quantity)

    def _merge_or_insert(self, user_id: str, product: Product, quantity: int) -> CartLineRead:
        with transaction(self.session):
            existing_item = self.session.exec(
                select(CartItem).where(
                    CartItem.user_id == user_id,
                    CartItem.product_id == product.id
                )
            ).first()

            if existing_item:
                new_quantity = existing_item.quantity + quantity
                self._check_stock(product, new_quantity)
                existing_item.quantity = new_quantity
                item = existing_item
            else:
                item = CartItem(user_id=user_id, product_id=product.id, quantity=quantity)
            self.session.add(item)

        self.session.refresh(item)
        self.session.refresh(product)
        logger.debug("Cart line %s for user %s now has quantity %s", item.id, user_id, item.quantity)
        return to_line(item, product)

    def _get_line(self, cart_item_id: int, user_id: Optional[str]) -> CartItem:
        item = self.session.get(CartItem, cart_item_id)
        if not item or (user_id is not None and item.user_id != user_id):
            raise NotFoundError("Cart item not found", code="CART_ITEM_NOT_FOUND", id=cart_item_id)
        return item

    def update_quantity(self, cart_item_id: int, quantity: int, user_id: Optional[str] = None) -> CartLineRead:
        """Update cart item quantity"""
        item = self._get_line(cart_item_id, user_id)
        quantity = validate_quantity(quantity)
        product = self._get_product(item.product_id)
        self._check_stock(product, quantity)

        with transaction(self.session):
            item.quantity = quantity
            self.session.add(item)
        self.session.refresh(item)
        self.session.refresh(product)
        return to_line(item, product)

    def remove(self, cart_item_id: int, user_id: Optional[str] = None) -> CartItemRead:
        """Remove item from cart"""
        item = self._get_line(cart_item_id, user_id)
        removed = CartItemRead.model_validate(item)
        with transaction(self.session):
            self.session.delete(item)
        return removed

    def clear_for_user(self, user_id: str) -> int:
        """Clear all items from user's cart"""
        user_id = require_user_id(user_id)
        with transaction(self.session):
            result = self.session.exec(delete(CartItem).where(CartItem.user_id == user_id))
        logger.info("Cleared %s cart line(s) for user %s", result.rowcount, user_id)
        return result.rowcount
