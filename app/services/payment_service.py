"""
Payment confirmation: the synchronous direct path and the gateway webhook.

Both paths look the transaction up by gateway order id, map the reported
outcome through ``transaction_status`` and write through ``transition()``.
When a transaction becomes paid, entitlements, seller revenue and shipment
release happen in the same database transaction as the status change.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.constants.transaction_status import TransactionStatus
from app.exceptions import InvalidSignature, InvalidStatus, NotFound, PersistenceError
from app.models.gateway_notification import GatewayNotification, ProcessingOutcome
from app.models.transaction import Transaction
from app.models.user import User
from app.services.entitlement_service import grant
from app.services.gateway_signature import verify_notification_signature
from app.services.revenue_service import record_seller_revenue
from app.services.shipment_service import release_unpaid_shipments
from app.services.transaction_status import (
    map_direct_status,
    map_gateway_status,
    transition,
)

logger = logging.getLogger(__name__)

PAID = TransactionStatus.paid.value


def get_transaction_by_order_ref(session: Session, order_ref: str) -> Transaction:
    transaction = session.exec(
        select(Transaction).where(Transaction.gateway_order_id == order_ref)
    ).first()
    if not transaction:
        raise NotFound("Transaction", order_ref)
    return transaction


def apply_paid_effects(session: Session, transaction: Transaction):
    """Everything a paid transaction is owed. Idempotent; does not commit."""
    grant(session, transaction.customer_id, transaction.items)
    record_seller_revenue(session, transaction)
    release_unpaid_shipments(session, transaction.id)


def _commit(session: Session, order_ref: str):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[{order_ref}] Commit failed")
        raise PersistenceError(f"Could not save payment for {order_ref}: {e}") from e


# ---------- DIRECT CONFIRMATION ----------

def confirm_direct(
    session: Session,
    order_ref: str,
    status: str,
    amount: Optional[float] = None,
) -> dict:
    """
    Client-observed gateway success.

    Sets the transaction paid once and grants access. A transaction that is
    already paid is left alone and still reported as success.
    """
    transaction = get_transaction_by_order_ref(session, order_ref)

    target = map_direct_status(status)
    if target != PAID:
        raise InvalidStatus(status)

    if transaction.status == PAID:
        logger.info(f"[{order_ref}] Direct confirmation for an already paid transaction")
        return {"order_id": order_ref, "already_paid": True}

    payload = {
        "order_id": order_ref,
        "gross_amount": amount,
        "timestamp": datetime.utcnow().isoformat(),
        "source": "direct",
    }

    try:
        changed = transition(session, transaction.id, PAID, payload)
        if changed:
            apply_paid_effects(session, transaction)
    except PersistenceError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[{order_ref}] Direct confirmation failed")
        raise PersistenceError(f"Could not confirm payment for {order_ref}: {e}") from e

    if not changed:
        session.rollback()
        current = session.get(Transaction, transaction.id).status
        if current == PAID:
            # the webhook got there first
            return {"order_id": order_ref, "already_paid": True}
        raise InvalidStatus(current, f"Transaction {order_ref} is already {current}")

    _commit(session, order_ref)
    return {"order_id": order_ref, "already_paid": False}


# ---------- WEBHOOK ----------

def parse_notification(raw_body: Union[bytes, str]) -> dict:
    try:
        notification = json.loads(raw_body)
    except (TypeError, ValueError):
        raise InvalidSignature("Malformed notification body")
    if not isinstance(notification, dict):
        raise InvalidSignature("Malformed notification body")
    return notification


def handle_webhook(session: Session, raw_body: Union[bytes, str], server_key: str) -> dict:
    """
    Process one gateway push notification.

    Raises InvalidSignature or NotFound before touching the database.
    Unmapped statuses and refused regressions are recorded and reported as
    processed, so the gateway stops retrying them.
    """
    notification = parse_notification(raw_body)
    order_ref = str(notification.get("order_id") or "UNKNOWN_ORDER")

    if not verify_notification_signature(notification, server_key):
        logger.warning(f"[{order_ref}] Invalid notification signature")
        raise InvalidSignature("Invalid signature")

    transaction_status = notification.get("transaction_status")
    fraud_status = notification.get("fraud_status")
    logger.info(
        f"[{order_ref}] Notification received: "
        f"transaction_status={transaction_status} fraud_status={fraud_status}"
    )

    try:
        transaction = get_transaction_by_order_ref(session, order_ref)
    except NotFound:
        logger.warning(f"[{order_ref}] Notification for unknown transaction")
        raise

    target = map_gateway_status(transaction_status, fraud_status)

    try:
        if target is None:
            logger.warning(
                f"[{order_ref}] Unmapped gateway status "
                f"({transaction_status}, {fraud_status}); no status change"
            )
            outcome = ProcessingOutcome.unmapped
        else:
            changed = transition(session, transaction.id, target, notification)
            current = transaction.status
            outcome = ProcessingOutcome.applied if changed else ProcessingOutcome.ignored
            if not changed:
                logger.warning(f"[{order_ref}] Ignoring {target}: transaction is {current}")
            if target == PAID and current == PAID:
                apply_paid_effects(session, transaction)

        session.add(GatewayNotification(
            transaction_id=transaction.id,
            gateway_order_id=order_ref,
            transaction_status=transaction_status,
            fraud_status=fraud_status,
            outcome=outcome.value,
            resulting_status=transaction.status,
            payload=notification,
        ))
    except PersistenceError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"[{order_ref}] Processing notification failed")
        raise PersistenceError(f"Could not process notification for {order_ref}: {e}") from e

    _commit(session, order_ref)
    return {
        "order_id": order_ref,
        "outcome": outcome.value,
        "status": transaction.status,
    }


# ---------- STATUS VIEW ----------

def payment_status(session: Session, order_ref: str, user: User) -> dict:
    """The buyer's view of one transaction and its last gateway outcome."""
    transaction = get_transaction_by_order_ref(session, order_ref)
    if transaction.customer_id != user.id:
        raise NotFound("Transaction", order_ref)

    payment_info = None
    if transaction.gateway_success:
        payment_info = {"status": "success", **_payment_fields(transaction.gateway_success)}
    elif transaction.gateway_pending:
        payment_info = {"status": "pending", **_payment_fields(transaction.gateway_pending)}
    elif transaction.gateway_error:
        payment_info = {"status": "error", **_payment_fields(transaction.gateway_error)}

    return {
        "order_id": transaction.gateway_order_id,
        "transaction_id": transaction.id,
        "status": transaction.status,
        "total_amount": transaction.total,
        "currency": transaction.currency,
        "created_at": transaction.created_at,
        "updated_at": transaction.updated_at,
        "items": [
            {
                "name": item.name,
                "quantity": item.quantity,
                "price": item.unit_price,
                "type": "product" if item.product_id is not None else "bundle",
            }
            for item in transaction.items
        ],
        "payment_info": payment_info,
    }


def _payment_fields(snapshot: dict) -> dict:
    return {
        "payment_type": snapshot.get("payment_type"),
        "transaction_time": snapshot.get("transaction_time") or snapshot.get("timestamp"),
        "va_numbers": snapshot.get("va_numbers"),
        "fraud_status": snapshot.get("fraud_status"),
    }
