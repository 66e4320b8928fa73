from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.config import settings
from app.constants.transaction_status import TransactionStatus
from app.database import get_session
from app.models.transaction import Transaction
from app.models.user import User
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()

STATUSES = {status.value for status in TransactionStatus}


@router.get("")
def purchase_history(
    status: Optional[str] = None,
    page: int = 1,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(Transaction).where(Transaction.customer_id == current_user.id)

    # unknown filters fall back to everything
    if status and status != "all" and status in STATUSES:
        query = query.where(Transaction.status == status)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())

    data = paginate(
        session=session,
        query=query,
        page=page,
        limit=settings.TRANSACTIONS_PER_PAGE,
    )
    data["results"] = [
        {
            "id": t.id,
            "order_id": t.gateway_order_id,
            "status": t.status,
            "total": t.total,
            "currency": t.currency,
            "created_at": t.created_at,
            "items": [
                {
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                }
                for item in t.items
            ],
        }
        for t in data["results"]
    ]
    return data
