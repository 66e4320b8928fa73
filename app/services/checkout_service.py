from typing import List, Optional

from sqlmodel import Session

from app.constants.transaction_status import TransactionStatus
from app.exceptions import FulfillmentError, NotFound
from app.models.bundle import Bundle
from app.models.product import Product
from app.models.transaction import Transaction
from app.models.transaction_item import TransactionItem


def create_transaction(
    session: Session,
    *,
    customer_id: int,
    gateway_order_id: str,
    items: List[dict],
    currency: str = "IDR",
    status: Optional[str] = None,
) -> Transaction:
    """
    Record a checkout as a pre-paid transaction.

    ``items`` entries carry either ``product_id`` or ``bundle_id`` plus an
    optional ``quantity``; prices are taken from the catalogue.
    """
    status = TransactionStatus(status or TransactionStatus.pending).value
    if status not in (TransactionStatus.cart.value, TransactionStatus.pending.value):
        raise FulfillmentError(f"Checkout cannot start in status {status}")

    lines = []
    for entry in items:
        product_id = entry.get("product_id")
        bundle_id = entry.get("bundle_id")
        quantity = int(entry.get("quantity", 1))

        if (product_id is None) == (bundle_id is None):
            raise FulfillmentError("Line item must reference exactly one of product or bundle")
        if quantity < 1:
            raise FulfillmentError("Line item quantity must be at least 1")

        if product_id is not None:
            ref = session.get(Product, product_id)
            if not ref:
                raise NotFound("Product", product_id)
        else:
            ref = session.get(Bundle, bundle_id)
            if not ref:
                raise NotFound("Bundle", bundle_id)

        lines.append(TransactionItem(
            product_id=product_id,
            bundle_id=bundle_id,
            name=ref.name,
            quantity=quantity,
            unit_price=ref.price,
            total_price=ref.price * quantity,
        ))

    transaction = Transaction(
        customer_id=customer_id,
        gateway_order_id=gateway_order_id,
        currency=currency,
        status=status,
        total=sum(line.total_price for line in lines),
        items=lines,
    )

    session.add(transaction)
    session.commit()
    session.refresh(transaction)
    return transaction
