from pydantic import BaseModel
from typing import Optional


class DirectConfirmRequest(BaseModel):
    order_id: str
    status: str
    gross_amount: Optional[float] = None


class DirectConfirmData(BaseModel):
    order_id: str


class DirectConfirmResponse(BaseModel):
    success: bool
    message: str
    data: Optional[DirectConfirmData] = None


class WebhookResponse(BaseModel):
    status: str   # success | error
    message: str
