from typing import Optional, List
from datetime import datetime, timezone
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str = Field(index=True)
    description: str
    image_url: str
    category: str = Field(index=True)
    brand: str = Field(index=True)

    # Pricing
    price: float

    # Inventory
    stock: int = Field(default=0)

    # Metadata
    rating: float = Field(default=0.0)
    features: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
