"""
Midtrans notification signature scheme.

signature_key = SHA512(order_id + status_code + gross_amount + server_key), hex.
Verification is local; nothing here calls the gateway.
"""

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNED_FIELDS = ("order_id", "status_code", "gross_amount")


def notification_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_notification_signature(notification: dict, server_key: str) -> bool:
    if not server_key:
        logger.error("Server key not configured for signature verification")
        return False

    signature = notification.get("signature_key")
    if not signature or any(not notification.get(field) for field in SIGNED_FIELDS):
        logger.warning("Notification is missing fields required for signature verification")
        return False

    expected = notification_signature(
        str(notification["order_id"]),
        str(notification["status_code"]),
        str(notification["gross_amount"]),
        server_key,
    )
    return hmac.compare_digest(expected, str(signature))
