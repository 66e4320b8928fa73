"""
Transaction status state machine.

One mapping table serves both the direct confirmation path and the gateway
webhook, and every status write goes through ``transition()``, a single
conditional UPDATE guarded by the allowed source statuses. Concurrent callers
racing on the same order therefore converge: exactly one of them moves the row,
the others see ``False`` and must not repeat the side effects of the move.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import inspect, null, update
from sqlmodel import Session

from app.constants.transaction_status import TransactionStatus, sources_for
from app.models.transaction import Transaction

logger = logging.getLogger(__name__)


# (transaction_status, fraud_status) -> internal status.
# A ``None`` fraud status matches any fraud status.
GATEWAY_STATUS_MAP = {
    ("capture", "challenge"): TransactionStatus.challenge.value,
    ("capture", "accept"): TransactionStatus.paid.value,
    ("settlement", None): TransactionStatus.paid.value,
    ("pending", None): TransactionStatus.pending.value,
    ("deny", None): TransactionStatus.failed.value,
    ("cancel", None): TransactionStatus.canceled.value,
    ("expire", None): TransactionStatus.expired.value,
    ("failure", None): TransactionStatus.failed.value,
}

# client-observed outcomes reported to the direct confirmation endpoint
DIRECT_STATUS_MAP = {
    "success": TransactionStatus.paid.value,
}

SNAPSHOT_COLUMN = {
    "paid": "gateway_success",
    "pending": "gateway_pending",
    "challenge": "gateway_pending",
    "failed": "gateway_error",
    "canceled": "gateway_error",
    "expired": "gateway_error",
    "fraud": "gateway_error",
}

# statuses that may be re-applied to refresh their payload snapshot
REPEATABLE = {"pending", "challenge"}


def map_gateway_status(transaction_status: Optional[str], fraud_status: Optional[str] = None) -> Optional[str]:
    """Translate gateway vocabulary to an internal status, ``None`` if unmapped."""
    if not transaction_status:
        return None
    exact = GATEWAY_STATUS_MAP.get((transaction_status, fraud_status))
    if exact is not None:
        return exact
    if transaction_status == "capture":
        # capture always depends on the fraud verdict
        return None
    return GATEWAY_STATUS_MAP.get((transaction_status, None))


def map_direct_status(status: Optional[str]) -> Optional[str]:
    return DIRECT_STATUS_MAP.get(status)


def transition(
    session: Session,
    transaction_id: int,
    target: str,
    payload: Optional[dict] = None,
) -> bool:
    """
    Compare-and-swap the status of one transaction.

    The row only changes when its current status is an allowed source for
    ``target``. Returns True when this call moved (or refreshed) the row.
    Does not commit.
    """
    target = TransactionStatus(target).value

    sources = sources_for(target)
    if target in REPEATABLE:
        sources.append(target)
    if not sources:
        return False

    values = {"status": target, "updated_at": datetime.utcnow()}
    column = SNAPSHOT_COLUMN.get(target)
    if column and payload is not None:
        values[column] = payload
    if target == TransactionStatus.paid.value:
        values["gateway_pending"] = null()
        values["gateway_error"] = null()

    stmt = (
        update(Transaction)
        .where(Transaction.id == transaction_id)
        .where(Transaction.status.in_(sources))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = session.exec(stmt)
    _expire_cached(session, transaction_id)

    changed = result.rowcount == 1
    if changed:
        logger.info(f"Transaction {transaction_id} -> {target}")
    else:
        logger.info(
            f"Transaction {transaction_id} not moved to {target}: "
            f"current status is not one of {sources}"
        )
    return changed


def _expire_cached(session: Session, transaction_id: int):
    for obj in list(session.identity_map.values()):
        if isinstance(obj, Transaction) and inspect(obj).identity == (transaction_id,):
            session.expire(obj)
