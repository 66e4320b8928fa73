"""
Errors raised by the fulfillment services.

Routes translate these into HTTP responses; services never swallow them.
"""

from typing import Any, Dict, Optional


class FulfillmentError(Exception):
    """Base class for fulfillment pipeline errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFound(FulfillmentError):
    def __init__(self, entity: str, key: Any, message: Optional[str] = None):
        self.entity = entity
        self.key = key
        super().__init__(
            message or f"{entity} {key} not found",
            details={"entity": entity, "key": str(key)},
        )


class InvalidSignature(FulfillmentError):
    """Webhook payload failed authenticity verification."""


class InvalidStatus(FulfillmentError):
    def __init__(self, status: Any, message: Optional[str] = None):
        self.status = status
        super().__init__(
            message or f"Invalid status: {status}",
            details={"status": status},
        )


class MissingShippingChoice(FulfillmentError):
    def __init__(self, seller_ids):
        self.seller_ids = sorted(seller_ids)
        super().__init__(
            f"No shipping choice for seller(s) {self.seller_ids}",
            details={"seller_ids": self.seller_ids},
        )


class UnexpectedShippingChoice(FulfillmentError):
    def __init__(self, seller_ids):
        self.seller_ids = sorted(seller_ids)
        super().__init__(
            f"Seller(s) {self.seller_ids} have no physical items in this order",
            details={"seller_ids": self.seller_ids},
        )


class PersistenceError(FulfillmentError):
    """A database write failed; state may need re-delivery to converge."""
