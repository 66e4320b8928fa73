from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from enum import Enum
from typing import Optional
from datetime import datetime


class ShipmentStatus(str, Enum):
    unpaid = "unpaid"
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    canceled = "canceled"


class Shipment(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("transaction_id", "seller_id", name="uq_shipment_transaction_seller"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: int = Field(foreign_key="transaction.id", index=True)
    seller_id: int = Field(foreign_key="seller.id", index=True)

    carrier: str
    service: str
    cost: float

    status: str = Field(default=ShipmentStatus.unpaid.value, index=True)
    awb: Optional[str] = None

    # recipient snapshot, copied at creation time
    recipient_name: str
    recipient_phone: str
    address_line: str
    city: str
    province: str
    postal_code: str
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
