from enum import Enum


class TransactionStatus(str, Enum):
    cart = "cart"
    pending = "pending"
    challenge = "challenge"
    paid = "paid"
    failed = "failed"
    canceled = "canceled"
    expired = "expired"
    fraud = "fraud"
    refunded = "refunded"


_OUTCOMES = ["challenge", "paid", "failed", "canceled", "expired", "fraud"]

ALLOWED_TRANSITIONS = {
    "cart": ["pending"] + _OUTCOMES,
    "pending": list(_OUTCOMES),
    "challenge": ["paid", "failed", "canceled", "expired", "fraud"],
    "paid": [],
    "failed": [],
    "canceled": [],
    "expired": [],
    "fraud": [],
    "refunded": [],
}

TERMINAL_STATUSES = {
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
}

# statuses a shipment may still be arranged for
SHIPPABLE_STATUSES = {"cart", "pending", "challenge", "paid"}


def sources_for(target: str) -> list:
    """Statuses from which ``target`` can be reached."""
    return [
        status for status, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    ]
