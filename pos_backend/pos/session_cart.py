"""
PATH: pos/session_cart.py

Cart store bound to the cashier's Django session. Each dispatch writes the
new state back, so the cart survives between HTTP calls without touching
any business table.
"""

from __future__ import annotations

from pos.cart import Cart, CartStore

SESSION_KEY = "pos_cart"
PENDING_PAYMENT_KEY = "pos_pending_payment"


class SessionCartStore(CartStore):
    def __init__(self, session):
        self._session = session
        super().__init__(Cart.from_list(session.get(SESSION_KEY) or []))

    def _on_change(self, state: Cart) -> None:
        self._session[SESSION_KEY] = state.to_list()
        self._session.modified = True


def get_pending_payment(session):
    return session.get(PENDING_PAYMENT_KEY)


def set_pending_payment(session, payload: dict) -> None:
    session[PENDING_PAYMENT_KEY] = payload
    session.modified = True


def clear_pending_payment(session) -> None:
    if PENDING_PAYMENT_KEY in session:
        del session[PENDING_PAYMENT_KEY]
        session.modified = True


def cart_fingerprint(cart: Cart) -> list:
    """Line items as sorted [product_id, quantity] pairs, JSON-safe for the session."""
    return sorted([item.product_id, item.quantity] for item in cart.items)
