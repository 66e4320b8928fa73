import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.constants.transaction_status import SHIPPABLE_STATUSES, TransactionStatus
from app.exceptions import (
    InvalidStatus,
    MissingShippingChoice,
    NotFound,
    PersistenceError,
    UnexpectedShippingChoice,
)
from app.models.product import Product
from app.models.seller import Seller
from app.models.shipment import Shipment, ShipmentStatus
from app.models.transaction import Transaction
from app.models.transaction_item import TransactionItem
from app.models.user import User
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

RECIPIENT_FIELDS = (
    "recipient_name",
    "recipient_phone",
    "address_line",
    "city",
    "province",
    "postal_code",
    "notes",
)


# ---------- SPLITTING ----------

def physical_items_by_seller(transaction: Transaction) -> Dict[int, List[TransactionItem]]:
    groups: Dict[int, List[TransactionItem]] = {}
    for item in transaction.items:
        if not item.is_physical:
            continue
        groups.setdefault(item.product.seller_id, []).append(item)
    return groups


def shipments_for_transaction(session: Session, transaction_id: int) -> List[Shipment]:
    return list(session.exec(
        select(Shipment)
        .where(Shipment.transaction_id == transaction_id)
        .order_by(Shipment.id)
    ).all())


def _locked_status(session: Session, transaction_id: int) -> str:
    """Fresh status of the transaction; the row stays locked until commit."""
    transaction = session.exec(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).one()
    return transaction.status


def _promote_if_paid(session: Session, transaction_id: int) -> int:
    """Release unpaid shipments if the transaction is paid by now. Commits."""
    try:
        released = 0
        if _locked_status(session, transaction_id) == TransactionStatus.paid.value:
            released = release_unpaid_shipments(session, transaction_id)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Releasing shipments of transaction {transaction_id} failed")
        raise PersistenceError(f"Could not release shipments: {e}") from e
    return released


def split_into_shipments(
    session: Session,
    transaction: Transaction,
    shipping_choices: List[dict],
    recipient: dict,
) -> List[Shipment]:
    """
    Create one shipment per seller among the transaction's physical items.

    Every seller group needs a shipping choice and every choice needs a seller
    group; both are checked before anything is written, and all shipments of
    one call are committed together. Calling again for a transaction that
    already has shipments returns the existing ones.

    The initial shipment status is decided on a locked re-read of the
    transaction, not on the copy the caller loaded earlier.
    """
    if transaction.status not in SHIPPABLE_STATUSES:
        raise InvalidStatus(
            transaction.status,
            f"Cannot arrange shipping for a {transaction.status} transaction",
        )

    groups = physical_items_by_seller(transaction)
    if not groups:
        return []

    existing = shipments_for_transaction(session, transaction.id)
    if existing:
        logger.info(f"Transaction {transaction.id} already has {len(existing)} shipment(s)")
        _promote_if_paid(session, transaction.id)
        return existing

    choices = {int(choice["seller_id"]): choice for choice in shipping_choices}

    missing = set(groups) - set(choices)
    if missing:
        raise MissingShippingChoice(missing)

    unexpected = set(choices) - set(groups)
    if unexpected:
        raise UnexpectedShippingChoice(unexpected)

    snapshot = {field: recipient.get(field) for field in RECIPIENT_FIELDS}

    shipments = []
    try:
        current = _locked_status(session, transaction.id)
        if current not in SHIPPABLE_STATUSES:
            session.rollback()
            raise InvalidStatus(current, f"Cannot arrange shipping for a {current} transaction")

        status = (
            ShipmentStatus.pending.value
            if current == TransactionStatus.paid.value
            else ShipmentStatus.unpaid.value
        )
        for seller_id in sorted(groups):
            choice = choices[seller_id]
            shipment = Shipment(
                transaction_id=transaction.id,
                seller_id=seller_id,
                carrier=choice["carrier"],
                service=choice["service"],
                cost=float(choice["cost"]),
                status=status,
                **snapshot,
            )
            session.add(shipment)
            shipments.append(shipment)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        existing = shipments_for_transaction(session, transaction.id)
        if existing:
            logger.info(f"Shipments for transaction {transaction.id} were created concurrently")
            _promote_if_paid(session, transaction.id)
            return existing
        logger.exception(f"Creating shipments for transaction {transaction.id} failed")
        raise PersistenceError(f"Could not create shipments: {e}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Creating shipments for transaction {transaction.id} failed")
        raise PersistenceError(f"Could not create shipments: {e}") from e

    if status == ShipmentStatus.unpaid.value:
        _promote_if_paid(session, transaction.id)

    for shipment in shipments:
        session.refresh(shipment)
        logger.info(
            f"Shipment {shipment.id} created for transaction {transaction.id}, "
            f"seller {shipment.seller_id} via {shipment.carrier} {shipment.service}"
        )
    return shipments


def release_unpaid_shipments(session: Session, transaction_id: int) -> int:
    """Shipments arranged before payment become ``pending`` once paid. Does not commit."""
    result = session.exec(
        update(Shipment)
        .where(Shipment.transaction_id == transaction_id)
        .where(Shipment.status == ShipmentStatus.unpaid.value)
        .values(status=ShipmentStatus.pending.value, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info(f"Released {result.rowcount} shipment(s) of transaction {transaction_id}")
    return result.rowcount


# ---------- QUERIES ----------

def seller_ids_for_user(session: Session, user_id: int) -> List[int]:
    return list(session.exec(
        select(Seller.id).where(Seller.user_id == user_id)
    ).all())


def items_for_shipment(session: Session, shipment: Shipment) -> List[TransactionItem]:
    """Line items of the parent transaction that belong to the shipment's seller."""
    return list(session.exec(
        select(TransactionItem)
        .join(Product, Product.id == TransactionItem.product_id)
        .where(TransactionItem.transaction_id == shipment.transaction_id)
        .where(Product.seller_id == shipment.seller_id)
        .order_by(TransactionItem.id)
    ).all())


def list_shipments(
    session: Session,
    user: User,
    status_filter: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """Shipments the user bought or sells, newest first."""
    visible = [Transaction.customer_id == user.id]
    seller_ids = seller_ids_for_user(session, user.id)
    if seller_ids:
        visible.append(Shipment.seller_id.in_(seller_ids))

    query = (
        select(Shipment)
        .join(Transaction, Transaction.id == Shipment.transaction_id)
        .where(or_(*visible))
    )
    if status_filter and status_filter != "all":
        query = query.where(Shipment.status == status_filter)
    query = query.order_by(Shipment.created_at.desc(), Shipment.id.desc())

    data = paginate(session=session, query=query, page=page, limit=limit)
    data["status"] = status_filter or "all"
    data["results"] = [
        {
            "id": s.id,
            "transaction_id": s.transaction_id,
            "seller_id": s.seller_id,
            "created_at": s.created_at,
            "status": s.status,
            "carrier": s.carrier,
            "service": s.service,
            "awb": s.awb,
            "items": [
                {
                    "name": item.name,
                    "cover": item.product.cover if item.product else None,
                    "quantity": item.quantity,
                }
                for item in items_for_shipment(session, s)
            ],
        }
        for s in data["results"]
    ]
    return data


def shipment_detail(session: Session, shipment_id: int, user: User) -> dict:
    """
    One shipment as seen by its buyer or its seller.

    Anyone else gets NotFound, same as for a missing id.
    """
    shipment = session.get(Shipment, shipment_id)
    if not shipment:
        raise NotFound("Shipment", shipment_id)

    transaction = session.get(Transaction, shipment.transaction_id)
    seller = session.get(Seller, shipment.seller_id)

    is_buyer = transaction is not None and transaction.customer_id == user.id
    is_seller = seller is not None and seller.user_id == user.id
    if not (is_buyer or is_seller):
        raise NotFound("Shipment", shipment_id)

    buyer = session.get(User, transaction.customer_id)
    items = items_for_shipment(session, shipment)

    return {
        "id": shipment.id,
        "status": shipment.status,
        "awb": shipment.awb,
        "courier": {
            "carrier": shipment.carrier,
            "service": shipment.service,
        },
        "shipping_cost": shipment.cost,
        "dates": {
            "created": shipment.created_at,
            "shipped": shipment.shipped_at,
            "delivered": shipment.delivered_at,
        },
        "order_id": transaction.gateway_order_id,
        "transaction_id": transaction.id,
        "seller": {
            "id": seller.id,
            "name": seller.name,
            "avatar": seller.avatar,
            "phone": seller.phone,
        },
        "buyer": {
            "id": buyer.id,
            "name": buyer.full_name,
            "email": buyer.email,
        },
        "shipping_address": {field: getattr(shipment, field) for field in RECIPIENT_FIELDS},
        "items": [
            {
                "name": item.name,
                "sku": item.product.sku,
                "cover": item.product.cover,
                "weight": item.product.weight,
                "quantity": item.quantity,
                "price": item.unit_price,
                "total": item.total_price,
            }
            for item in items
        ],
        "viewer": "seller" if is_seller else "buyer",
    }
