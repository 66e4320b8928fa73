import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.exceptions import (
    InvalidStatus,
    MissingShippingChoice,
    NotFound,
    PersistenceError,
    UnexpectedShippingChoice,
)
from app.models.transaction import Transaction
from app.models.user import User
from app.schemas.shipment_schemas import ShipmentCreateRequest, ShipmentCreateResponse
from app.services.shipment_service import (
    RECIPIENT_FIELDS,
    list_shipments,
    shipment_detail,
    split_into_shipments,
)
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ShipmentCreateResponse)
def create_shipments(
    payload: ShipmentCreateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    transaction = session.get(Transaction, payload.transaction_id)
    if not transaction or transaction.customer_id != current_user.id:
        raise HTTPException(404, "Transaction not found")

    recipient = {field: getattr(payload, field) for field in RECIPIENT_FIELDS}
    choices = [choice.model_dump() for choice in payload.shipments]

    try:
        shipments = split_into_shipments(session, transaction, choices, recipient)
    except (MissingShippingChoice, UnexpectedShippingChoice, InvalidStatus) as e:
        raise HTTPException(400, e.message)
    except PersistenceError:
        raise HTTPException(500, "Could not create shipments")

    return {
        "success": True,
        "message": f"{len(shipments)} shipment(s) created successfully.",
        "data": [
            {"id": s.id, "seller_id": s.seller_id, "status": s.status}
            for s in shipments
        ],
    }


@router.get("")
def my_shipments(
    status: Optional[str] = None,
    page: int = 1,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return list_shipments(
        session,
        current_user,
        status_filter=status,
        page=page,
        limit=settings.SHIPMENTS_PER_PAGE,
    )


@router.get("/{shipment_id}")
def get_shipment(
    shipment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return shipment_detail(session, shipment_id, current_user)
    except NotFound:
        raise HTTPException(404, "Shipment not found")
