from typing import Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel
from app.models.product import utcnow

class CartItem(SQLModel, table=True):
    # One line per (user, product); adding the same product again merges quantity
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_cartitem_user_product"),)

    id: Optional[int] = Field(default=None, primary_key=True)

    # References
    user_id: str = Field(index=True)
    product_id: int = Field(foreign_key="product.id")

    # Cart Details
    quantity: int = Field(default=1, ge=1)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
