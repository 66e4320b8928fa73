from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import CheckConstraint
from typing import Optional, TYPE_CHECKING

from app.models.bundle import Bundle
from app.models.product import Product

if TYPE_CHECKING:
    from app.models.transaction import Transaction


class TransactionItem(SQLModel, table=True):
    """One product-or-bundle line of a transaction. Never updated after checkout."""

    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (bundle_id IS NULL)",
            name="ck_transactionitem_product_xor_bundle",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    transaction_id: int = Field(foreign_key="transaction.id", index=True)
    product_id: Optional[int] = Field(default=None, foreign_key="product.id", index=True)
    bundle_id: Optional[int] = Field(default=None, foreign_key="bundle.id", index=True)

    name: str
    quantity: int = 1
    unit_price: float
    total_price: float

    transaction: Optional["Transaction"] = Relationship(back_populates="items")
    product: Optional[Product] = Relationship()
    bundle: Optional[Bundle] = Relationship()

    @property
    def seller_id(self) -> Optional[int]:
        if self.product is not None:
            return self.product.seller_id
        if self.bundle is not None:
            return self.bundle.seller_id
        return None

    @property
    def is_physical(self) -> bool:
        return self.product is not None and self.product.is_physical
