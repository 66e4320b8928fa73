from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class ProcessingOutcome(str, Enum):
    applied = "applied"      # status moved
    ignored = "ignored"      # repeat or refused regression
    unmapped = "unmapped"    # gateway vocabulary we do not act on


class GatewayNotification(SQLModel, table=True):
    """Append-only log of authenticated gateway notifications."""

    id: Optional[int] = Field(default=None, primary_key=True)

    transaction_id: Optional[int] = Field(default=None, foreign_key="transaction.id", index=True)
    gateway_order_id: str = Field(index=True)

    transaction_status: Optional[str] = None
    fraud_status: Optional[str] = None
    outcome: str
    resulting_status: Optional[str] = None

    payload: dict = Field(sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
