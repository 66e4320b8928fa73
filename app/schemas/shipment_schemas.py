from pydantic import BaseModel, Field
from typing import List, Optional


class ShippingChoice(BaseModel):
    seller_id: int
    carrier: str          # e.g. jne
    service: str          # e.g. REG
    cost: float = Field(ge=0)


class ShipmentCreateRequest(BaseModel):
    transaction_id: int

    recipient_name: str
    recipient_phone: str
    address_line: str
    city: str
    province: str
    postal_code: str
    notes: Optional[str] = None

    shipments: List[ShippingChoice]


class CreatedShipment(BaseModel):
    id: int
    seller_id: int
    status: str


class ShipmentCreateResponse(BaseModel):
    success: bool
    message: str
    data: List[CreatedShipment]
