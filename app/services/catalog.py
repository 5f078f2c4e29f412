import logging
from typing import Any, Dict, Optional
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, delete, or_
from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError
from app.db.session import transaction
from app.models.cart import CartItem
from app.models.product import Product
from app.schemas import ProductPage, ProductRead

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "price": Product.price,
    "rating": Product.rating,
    "name": Product.name,
    "createdAt": Product.created_at,
}

class ProductService:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND", productId=product_id)
        return product

    def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort: str = "createdAt",
        order: str = "desc",
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> ProductPage:
        """
        Filter, sort and paginate the catalog.

        ``search`` matches name, description or brand. Unknown sort keys fall
        back to ``createdAt``; anything but ``asc`` sorts descending.
        """
        conditions = []
        if search:
            term = f"%{search}%"
            conditions.append(or_(
                Product.name.ilike(term),
                Product.description.ilike(term),
                Product.brand.ilike(term),
            ))
        if category:
            conditions.append(Product.category == category)
        if brand:
            conditions.append(Product.brand == brand)
        if min_price is not None:
            conditions.append(Product.price >= min_price)
        if max_price is not None:
            conditions.append(Product.price <= max_price)

        if limit is None:
            limit = settings.PRODUCTS_PAGE_SIZE
        limit = max(1, min(limit, settings.PRODUCTS_MAX_PAGE_SIZE))
        offset = max(0, offset)

        column = SORT_COLUMNS.get(sort, Product.created_at)
        ordering = column.asc() if order == "asc" else column.desc()

        query = select(Product).where(*conditions).order_by(ordering, Product.id).limit(limit).offset(offset)
        count_query = select(func.count()).select_from(Product).where(*conditions)

        products = self.session.exec(query).all()
        total = self.session.exec(count_query).one()
        return ProductPage(products=[ProductRead.model_validate(p) for p in products], total=total)

    def decrement_stock(self, product_id: int, amount: int) -> None:
        """
        Take ``amount`` units out of stock inside the caller's transaction.

        The update only matches while enough stock is left, so a concurrent
        checkout that got there first makes this fail instead of overselling.
        Does not commit.
        """
        result = self.session.exec(
            update(Product)
            .where(Product.id == product_id, Product.stock >= amount)
            .values(stock=Product.stock - amount)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 1:
            return

        product = self.session.get(Product, product_id, populate_existing=True)
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found", code="PRODUCT_NOT_FOUND", productId=product_id)
        raise ConflictError(
            f"Insufficient stock for product: {product.name}. Available: {product.stock}, Requested: {amount}",
            code="INSUFFICIENT_STOCK",
            productId=product.id,
            productName=product.name,
            available=product.stock,
            requested=amount,
        )

    def create_product(self, data: Dict[str, Any]) -> Product:
        product = Product(**data)
        with transaction(self.session):
            self.session.add(product)
        self.session.refresh(product)
        logger.info("Created product %s (%s)", product.id, product.name)
        return product

    def update_product(self, product_id: int, changes: Dict[str, Any]) -> Product:
        product = self.get_by_id(product_id)
        with transaction(self.session):
            for field, value in changes.items():
                setattr(product, field, value)
            self.session.add(product)
        self.session.refresh(product)
        logger.info("Updated product %s: %s", product_id, sorted(changes))
        return product

    def delete_product(self, product_id: int) -> ProductRead:
        product = self.get_by_id(product_id)
        snapshot = ProductRead.model_validate(product)
        try:
            with transaction(self.session):
                self.session.exec(delete(CartItem).where(CartItem.product_id == product_id))
                self.session.delete(product)
        except IntegrityError:
            raise ConflictError("Product is referenced by existing orders", code="PRODUCT_IN_USE", productId=product_id)
        logger.info("Deleted product %s", product_id)
        return snapshot
