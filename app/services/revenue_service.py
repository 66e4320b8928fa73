import logging
from typing import Dict, List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.seller_revenue import SellerRevenue
from app.models.transaction import Transaction

logger = logging.getLogger(__name__)


def revenue_by_seller(transaction: Transaction) -> Dict[int, float]:
    totals: Dict[int, float] = {}
    for item in transaction.items:
        seller_id = item.seller_id
        if seller_id is None:
            continue
        totals[seller_id] = totals.get(seller_id, 0.0) + item.total_price
    return totals


def _find(session: Session, transaction_id: int, seller_id: int):
    return session.exec(
        select(SellerRevenue)
        .where(SellerRevenue.transaction_id == transaction_id)
        .where(SellerRevenue.seller_id == seller_id)
    ).first()


def record_seller_revenue(session: Session, transaction: Transaction) -> List[SellerRevenue]:
    """
    Credit each seller once for a paid transaction. Safe to call repeatedly;
    ``UNIQUE(transaction_id, seller_id)`` settles concurrent callers.
    Does not commit.
    """
    created = []
    for seller_id, amount in revenue_by_seller(transaction).items():
        if _find(session, transaction.id, seller_id) is not None:
            continue

        entry = SellerRevenue(
            transaction_id=transaction.id,
            seller_id=seller_id,
            amount=amount,
            info={
                "order_id": transaction.gateway_order_id,
                "customer_id": transaction.customer_id,
                "currency": transaction.currency,
            },
        )
        try:
            with session.begin_nested():
                session.add(entry)
        except IntegrityError:
            if _find(session, transaction.id, seller_id) is None:
                raise
            logger.info(f"Revenue for seller {seller_id} on transaction {transaction.id} already recorded")
            continue

        logger.info(f"Recorded {amount} revenue for seller {seller_id} on transaction {transaction.id}")
        created.append(entry)
    return created
