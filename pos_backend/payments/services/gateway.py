"""
PATH: payments/services/gateway.py

PAYMENT GATEWAY ADAPTER

What checkout needs from a payment provider:
- create_session(order_id, gross_amount, customer) -> PaymentSession
- a prompt that shows the session to the payer and reports a PaymentOutcome

SnapGateway talks to Midtrans. IssuedSessionGateway and
ReportedOutcomePrompt replay a session / outcome the client already went
through (the Snap popup runs in the browser, between two HTTP calls).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol

from payments.services.midtrans import (
    MidtransConfig,
    MidtransError,
    build_qris_parameter,
    create_snap_transaction,
)


class PaymentOutcome(str, enum.Enum):
    SUCCESS = "success"
    PENDING = "pending"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class PaymentSession:
    order_id: str
    gross_amount: int
    token: str
    redirect_url: str = ""

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "gross_amount": self.gross_amount,
            "token": self.token,
            "redirect_url": self.redirect_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentSession":
        return cls(
            order_id=str(data["order_id"]),
            gross_amount=int(data["gross_amount"]),
            token=str(data["token"]),
            redirect_url=str(data.get("redirect_url") or ""),
        )


class PaymentGateway(Protocol):
    def create_session(self, *, order_id: str, gross_amount: int, customer: Optional[dict] = None) -> PaymentSession:
        ...


class PaymentPrompt(Protocol):
    def present(self, session: PaymentSession) -> PaymentOutcome:
        ...


class SnapGateway:
    """QRIS / e-wallet Snap sessions."""

    def __init__(self, config: MidtransConfig | None = None):
        self._config = config

    def create_session(self, *, order_id: str, gross_amount: int, customer: Optional[dict] = None) -> PaymentSession:
        parameter = build_qris_parameter(order_id=order_id, gross_amount=gross_amount, customer=customer)
        created = create_snap_transaction(parameter=parameter, config=self._config)
        return PaymentSession(
            order_id=order_id,
            gross_amount=int(gross_amount),
            token=created["token"],
            redirect_url=created.get("redirect_url") or "",
        )


class IssuedSessionGateway:
    """Hands back a session that was created earlier for the same order."""

    def __init__(self, session: PaymentSession):
        self._session = session

    def create_session(self, *, order_id: str, gross_amount: int, customer: Optional[dict] = None) -> PaymentSession:
        if order_id != self._session.order_id or int(gross_amount) != self._session.gross_amount:
            raise MidtransError(
                "Cart changed after the payment session was issued",
                http_status=409,
            )
        return self._session


class ReportedOutcomePrompt:
    def __init__(self, outcome: PaymentOutcome | str):
        self._outcome = PaymentOutcome(outcome)

    def present(self, session: PaymentSession) -> PaymentOutcome:
        return self._outcome
