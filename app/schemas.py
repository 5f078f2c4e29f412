from typing import Any, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from app.models.order import OrderStatus


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys; Python code keeps snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Products

class ProductRead(CamelModel):
    id: int
    name: str
    description: str
    price: float
    image_url: str
    category: str
    brand: str
    stock: int
    rating: float
    features: List[str] = []
    created_at: datetime

class ProductPage(CamelModel):
    products: List[ProductRead]
    total: int

class ProductCreate(CamelModel):
    name: str = Field(min_length=3)
    description: str = Field(min_length=10)
    price: float = Field(gt=0)
    image_url: str = Field(min_length=1)
    category: str = Field(min_length=1)
    brand: str = Field(min_length=1)
    stock: int = Field(ge=0)
    rating: float = Field(ge=0, le=5)
    features: List[str] = []

    model_config = ConfigDict(str_strip_whitespace=True)

class ProductUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = Field(default=None, min_length=10)
    price: Optional[float] = Field(default=None, gt=0)
    image_url: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    brand: Optional[str] = Field(default=None, min_length=1)
    stock: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    features: Optional[List[str]] = None

    model_config = ConfigDict(str_strip_whitespace=True)

class ProductDeleted(CamelModel):
    success: bool = True
    message: str
    product: ProductRead


# Cart

class CartItemRead(CamelModel):
    id: int
    user_id: str
    product_id: int
    quantity: int
    created_at: datetime

class CartLineRead(CartItemRead):
    product: ProductRead
    subtotal: float

class CartRead(CamelModel):
    items: List[CartLineRead] = []
    total: float = 0

class CartItemCreate(CamelModel):
    user_id: Optional[str] = None
    product_id: int
    # Checked by the cart service so bad values get INVALID_QUANTITY
    quantity: Optional[Any] = None

class CartItemUpdate(CamelModel):
    quantity: Optional[Any] = None

class CartCleared(CamelModel):
    success: bool = True
    message: str = "Cart cleared"
    deleted_count: int

class CartItemRemoved(CamelModel):
    success: bool = True
    message: str = "Item removed from cart"
    item: CartItemRead


# Orders

class OrderItemRead(CamelModel):
    id: int
    product_id: int
    quantity: int
    price: float
    subtotal: float
    # Current catalog entry, None once the product has been deleted
    product: Optional[ProductRead] = None

class OrderRead(CamelModel):
    id: int
    user_id: str
    total_amount: float
    status: OrderStatus
    shipping_address: str
    created_at: datetime
    items: List[OrderItemRead] = []

class OrderCreate(CamelModel):
    user_id: Optional[str] = None
    shipping_address: Optional[str] = None
    status: Optional[str] = None
