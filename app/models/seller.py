from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Seller(SQLModel, table=True):
    """Owning party of products; the unit physical shipments are split by."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    name: str
    avatar: Optional[str] = None
    phone: Optional[str] = None

    # pickup / origin address
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
