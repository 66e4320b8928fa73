import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.database import get_session
from app.exceptions import InvalidSignature, InvalidStatus, NotFound, PersistenceError
from app.models.user import User
from app.schemas.payment_schemas import DirectConfirmRequest, DirectConfirmResponse, WebhookResponse
from app.services.payment_service import confirm_direct, handle_webhook, payment_status
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

# buyer-facing failure messages
MESSAGES = {
    "not_found": "Transaksi tidak ditemukan",
    "invalid_status": "Status pembayaran tidak valid",
    "error": "Terjadi kesalahan dalam memproses pembayaran",
}


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


@router.post("/confirm", response_model=DirectConfirmResponse)
def confirm_payment(
    payload: DirectConfirmRequest,
    session: Session = Depends(get_session),
):
    """Called by the client after the gateway reported success in the browser."""
    try:
        result = confirm_direct(
            session,
            payload.order_id,
            payload.status,
            payload.gross_amount,
        )
    except NotFound:
        return _failure(404, MESSAGES["not_found"])
    except InvalidStatus:
        return _failure(400, MESSAGES["invalid_status"])
    except PersistenceError:
        logger.exception(f"[{payload.order_id}] Direct confirmation could not be saved")
        return _failure(500, MESSAGES["error"])

    return {
        "success": True,
        "message": (
            "Payment already processed"
            if result["already_paid"]
            else "Payment processed successfully"
        ),
        "data": {"order_id": result["order_id"]},
    }


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    session: Session = Depends(get_session),
):
    """Gateway push notification. Only signature and lookup failures are errors."""
    raw_body = await request.body()

    try:
        result = await run_in_threadpool(
            handle_webhook, session, raw_body, settings.MIDTRANS_SERVER_KEY
        )
    except InvalidSignature as e:
        return JSONResponse(status_code=400, content={"status": "error", "message": e.message})
    except NotFound:
        return JSONResponse(status_code=404, content={"status": "error", "message": "Transaction not found"})
    except PersistenceError:
        # non-2xx so the gateway retries the delivery
        logger.exception("Webhook processing could not be saved")
        return JSONResponse(status_code=500, content={"status": "error", "message": "Internal server error"})

    return {
        "status": "success",
        "message": f"Notification processed ({result['outcome']})",
    }


@router.get("/status/{order_id}")
def get_payment_status(
    order_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return payment_status(session, order_id, current_user)
    except NotFound:
        raise HTTPException(404, MESSAGES["not_found"])
