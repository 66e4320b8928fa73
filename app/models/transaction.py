from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime

from app.constants.transaction_status import TransactionStatus
from app.models.transaction_item import TransactionItem


class Transaction(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="user.id", index=True)

    status: str = Field(default=TransactionStatus.pending.value, index=True)

    gateway_order_id: str = Field(index=True, unique=True)
    currency: str = Field(default="IDR")
    total: float

    # raw gateway payloads, one snapshot per outcome category
    gateway_success: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    gateway_pending: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    gateway_error: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List[TransactionItem] = Relationship(back_populates="transaction")
