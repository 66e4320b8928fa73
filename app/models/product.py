from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    name: str
    slug: str = Field(index=True)
    price: float
    currency: str = Field(default="IDR")

    # ebooks are digital; printed books go through shipments
    is_physical: bool = Field(default=False)

    cover: Optional[str] = None
    sku: Optional[str] = None
    weight: Optional[int] = None  # grams

    created_at: datetime = Field(default_factory=datetime.utcnow)
