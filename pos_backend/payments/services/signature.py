"""
PATH: payments/services/signature.py

MIDTRANS NOTIFICATION SIGNATURE

signature_key = sha512(order_id + status_code + gross_amount + server_key)
as lowercase hex. Fields are concatenated exactly as received.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

PAID_STATUSES = {"capture", "settlement"}
PENDING_STATUSES = {"pending"}
FAILED_STATUSES = {"deny", "expire", "cancel"}


class SignatureError(Exception):
    pass


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class PaymentNotification:
    order_id: str
    status_code: str
    gross_amount: str
    signature_key: str
    transaction_status: str
    fraud_status: str

    @classmethod
    def from_payload(cls, payload: dict) -> "PaymentNotification":
        payload = payload or {}
        return cls(
            order_id=_as_text(payload.get("order_id")),
            status_code=_as_text(payload.get("status_code")),
            gross_amount=_as_text(payload.get("gross_amount")),
            signature_key=_as_text(payload.get("signature_key")),
            transaction_status=_as_text(payload.get("transaction_status")).lower(),
            fraud_status=_as_text(payload.get("fraud_status")),
        )

    @property
    def outcome(self) -> str:
        return classify_status(self.transaction_status)


def generate_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_notification(notification: PaymentNotification, *, server_key: str) -> None:
    """
    Raises SignatureError unless signature_key matches (constant-time).
    """
    if not server_key:
        raise ValueError("server_key is required to verify notifications")

    expected = generate_signature(
        notification.order_id,
        notification.status_code,
        notification.gross_amount,
        server_key,
    )
    if not hmac.compare_digest(expected.encode("utf-8"), notification.signature_key.encode("utf-8")):
        raise SignatureError("Invalid signature")


def classify_status(transaction_status: str) -> str:
    s = (transaction_status or "").strip().lower()
    if s in PAID_STATUSES:
        return "paid"
    if s in PENDING_STATUSES:
        return "pending"
    if s in FAILED_STATUSES:
        return "failed"
    return "unknown"
