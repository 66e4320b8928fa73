import logging
from datetime import datetime, timedelta

from sqlmodel import Session, select

from app.config import settings
from app.constants.transaction_status import TransactionStatus
from app.database import engine
from app.models.transaction import Transaction
from app.services.transaction_status import transition

logger = logging.getLogger(__name__)

STALE_STATUSES = [TransactionStatus.cart.value, TransactionStatus.pending.value]


def expire_stale_transactions(session: Session, now: datetime = None) -> int:
    """
    Expire unpaid transactions older than the configured window.

    Each row goes through the same guarded transition as gateway updates, so a
    payment landing at the same moment wins and the row is skipped.
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(minutes=settings.TRANSACTION_EXPIRY_MINUTES)

    candidates = session.exec(
        select(Transaction.id)
        .where(Transaction.status.in_(STALE_STATUSES))
        .where(Transaction.created_at < cutoff)
    ).all()

    expired = 0
    for transaction_id in candidates:
        if transition(
            session,
            transaction_id,
            TransactionStatus.expired.value,
            {"reason": "payment window elapsed", "expired_at": now.isoformat()},
        ):
            expired += 1

    session.commit()
    logger.info(f"Expired {expired} of {len(candidates)} stale transaction(s)")
    return expired


def run():
    with Session(engine) as session:
        expire_stale_transactions(session)


if __name__ == "__main__":
    run()
