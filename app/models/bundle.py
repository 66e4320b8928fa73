from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from typing import List, Optional
from datetime import datetime

from app.models.product import Product


class BundleProduct(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("bundle_id", "product_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    bundle_id: int = Field(foreign_key="bundle.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)


class Bundle(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    name: str
    slug: str = Field(index=True)
    price: float
    currency: str = Field(default="IDR")
    cover: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    products: List[Product] = Relationship(link_model=BundleProduct)
