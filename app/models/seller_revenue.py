from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional
from datetime import datetime


class SellerRevenue(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("transaction_id", "seller_id", name="uq_sellerrevenue_transaction_seller"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: int = Field(foreign_key="transaction.id", index=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    type: str = Field(default="sale")
    amount: float
    info: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
