from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class Entitlement(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("customer_id", "product_id", name="uq_entitlement_customer_product"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(foreign_key="product.id", index=True)

    download_key: str

    created_at: datetime = Field(default_factory=datetime.utcnow)
