# sales/services/checkout_orchestrator.py

"""
CHECKOUT ORCHESTRATOR (APPLICATION SERVICE)

Purpose:
- Turn the cashier's cart into a completed sale across several stores of
  record: product stock, the two ledger views, store statistics.
- Take QRIS payments through the payment gateway before anything is written.

Sequence:
1. Snapshot the cart into a CheckoutRequest (validation happens here)
2. QRIS only: create a gateway session and present it to the payer
   - error  -> GatewayError, nothing written
   - closed -> CheckoutCancelled, nothing written, cart kept
3. Decrement stock per item (atomic relative UPDATE, every item attempted)
4. Append Sale, then Transaction
5. Increment store statistics (skipped with a warning if no store resolves)
6. Re-read sold products: out-of-stock / low-stock notifications
7. SaleCompleted notification
8. Clear the cart

Hard rules:
- Money is whole Rupiah; totals come from the snapshot, never re-read.
- No DB transaction spans the steps and nothing is rolled back. A failure
  in 3-5 raises PartialWriteError; the CheckoutIntent written before step 3
  records which steps completed so resume_checkout() can finish the job.
- Notifications never fail a checkout.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional, Union

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction

from notifications.emitters import CollectingEmitter, Emitter, safe_emit
from notifications.events import LowStock, SaleCompleted, StockDepleted
from payments.services.gateway import (
    PaymentGateway,
    PaymentOutcome,
    PaymentPrompt,
    PaymentSession,
    SnapGateway,
)
from payments.services.midtrans import MidtransError, new_order_id
from pos.cart import ClearCart
from products.services.inventory import decrement_many, read_stock
from sales.models import CheckoutIntent, LedgerRecord
from sales.services.checkout_request import (
    CheckoutCancelled,
    CheckoutRequest,
    ReceiptSummary,
    build_checkout_request,
)
from sales.services.exceptions import (
    CheckoutError,
    CheckoutValidationError,
    GatewayError,
    IntentAlreadyCompleted,
    PartialWriteError,
)
from sales.services.ledger import append_sale, append_transaction
from store.services.stats import apply_increment, resolve_store_id

logger = logging.getLogger(__name__)

CheckoutResult = Union[ReceiptSummary, CheckoutCancelled]

__all__ = [
    "CheckoutCancelled",
    "CheckoutError",
    "CheckoutResult",
    "CheckoutValidationError",
    "GatewayError",
    "PartialWriteError",
    "ReceiptSummary",
    "begin_qris_payment",
    "checkout_cart",
    "resume_checkout",
]


def _low_stock_threshold() -> int:
    return int(getattr(settings, "LOW_STOCK_THRESHOLD", 5))


def _cash_order_id() -> str:
    return f"CASH-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6].upper()}"


def _snapshot(*, cart, payment_method, store_id, user_id, order_id) -> CheckoutRequest:
    method = (payment_method or "").strip().lower()
    if not order_id:
        order_id = new_order_id() if method == LedgerRecord.PAYMENT_QRIS else _cash_order_id()

    resolved_store_id = resolve_store_id(store_id=store_id, user_id=user_id)
    if store_id and resolved_store_id is None:
        raise CheckoutValidationError("Store not found for this user.")

    return build_checkout_request(
        cart=cart.state,
        payment_method=method,
        store_id=resolved_store_id,
        user_id=user_id,
        order_id=order_id,
    )


# =====================================================
# PAYMENT (QRIS)
# =====================================================

def _create_session(request: CheckoutRequest, gateway: PaymentGateway, customer) -> PaymentSession:
    try:
        return gateway.create_session(
            order_id=request.order_id,
            gross_amount=request.total_amount,
            customer=customer,
        )
    except MidtransError as exc:
        logger.error(
            "Payment session could not be created",
            extra={"order_id": request.order_id, "http_status": exc.http_status, "error": exc.message},
        )
        raise GatewayError(exc.message, gateway_status=exc.http_status) from exc


def begin_qris_payment(
    *,
    cart,
    store_id=None,
    user_id=None,
    gateway: Optional[PaymentGateway] = None,
    customer: Optional[dict] = None,
) -> PaymentSession:
    """
    First half of a QRIS checkout driven over HTTP: validate the cart and
    issue the Snap session the browser will show.
    """
    request = _snapshot(
        cart=cart,
        payment_method=LedgerRecord.PAYMENT_QRIS,
        store_id=store_id,
        user_id=user_id,
        order_id=None,
    )
    session = _create_session(request, gateway or SnapGateway(), customer)
    logger.info("QRIS session issued", extra={"order_id": session.order_id, "gross_amount": session.gross_amount})
    return session


def _collect_payment(request, *, gateway, prompt, customer) -> PaymentOutcome:
    if prompt is None:
        raise CheckoutValidationError("QRIS checkout needs a payment prompt")

    session = _create_session(request, gateway or SnapGateway(), customer)
    outcome = PaymentOutcome(prompt.present(session))

    logger.info("QRIS payment outcome", extra={"order_id": request.order_id, "outcome": outcome.value})

    if outcome == PaymentOutcome.ERROR:
        raise GatewayError("QRIS payment failed")
    return outcome


# =====================================================
# WRITE STEPS
# =====================================================

def _fail(intent: CheckoutIntent, message: str, *, step: str, failed_products=None) -> PartialWriteError:
    intent.mark_failed(message)
    logger.error(
        "Checkout partially written",
        extra={
            "order_id": intent.order_id,
            "intent_id": str(intent.id),
            "step": step,
            "failed_products": list(failed_products or []),
            "completed_steps": list(intent.completed_steps or []),
        },
    )
    return PartialWriteError(message, intent_id=intent.id, step=step, failed_products=failed_products)


def _apply_steps(intent: CheckoutIntent, request: CheckoutRequest) -> CheckoutIntent:
    """
    Run every step the intent has not completed yet, in order.
    """
    # ---- stock ----
    pending = [
        (item.product_id, item.quantity)
        for item in request.items
        if not intent.has_step(f"stock:{item.product_id}")
    ]
    if pending:
        result = decrement_many(pending)
        intent.mark_steps([f"stock:{pid}" for pid in result.succeeded])
        if not result.ok:
            raise _fail(
                intent,
                f"Stock update failed for {', '.join(result.failed_ids)}",
                step="stock",
                failed_products=result.failed_ids,
            )

    # ---- ledger ----
    if not intent.has_step("sale"):
        try:
            sale = append_sale(request, store_id=request.store_id)
        except DatabaseError as exc:
            raise _fail(intent, f"Sale record failed: {exc}", step="sale") from exc
        intent.mark_steps(["sale"], sale_id=sale.id)

    if not intent.has_step("transaction"):
        try:
            txn = append_transaction(request, store_id=request.store_id)
        except DatabaseError as exc:
            raise _fail(intent, f"Transaction record failed: {exc}", step="transaction") from exc
        intent.mark_steps(["transaction"], transaction_id=txn.id)

    # ---- stats ----
    if not intent.has_step("stats"):
        if request.store_id is None:
            logger.warning(
                "No store for sale; store stats not updated",
                extra={"order_id": request.order_id, "user_id": request.acting_user_id},
            )
        else:
            try:
                apply_increment(
                    request.store_id,
                    sales_delta=1,
                    revenue_delta=request.total_amount,
                    profit_delta=request.total_profit,
                    at=request.created_at,
                )
            except DatabaseError as exc:
                raise _fail(intent, f"Store stats update failed: {exc}", step="stats") from exc
        intent.mark_steps(["stats"])

    intent.mark_completed()
    return intent


def _post_sale_notifications(request: CheckoutRequest, emitter: Emitter) -> None:
    threshold = _low_stock_threshold()

    for item in request.items:
        try:
            remaining = read_stock(item.product_id)
        except DatabaseError:
            logger.exception("Post-sale stock read failed", extra={"product_id": item.product_id})
            continue

        if remaining is None:
            continue
        if remaining <= 0:
            safe_emit(emitter, StockDepleted(product_id=item.product_id, product_name=item.name))
        elif remaining <= threshold:
            safe_emit(
                emitter,
                LowStock(product_id=item.product_id, product_name=item.name, remaining=int(remaining)),
            )


def _finish(intent: CheckoutIntent, request: CheckoutRequest, emitter: CollectingEmitter) -> ReceiptSummary:
    _post_sale_notifications(request, emitter)

    safe_emit(
        emitter,
        SaleCompleted(
            total_amount=request.total_amount,
            payment_method=request.payment_method,
            sale_id=str(intent.sale_id) if intent.sale_id else None,
        ),
    )

    return ReceiptSummary(
        request=request,
        sale_id=str(intent.sale_id),
        transaction_id=str(intent.transaction_id),
        intent_id=str(intent.id),
        notifications=emitter.as_dicts(),
    )


# =====================================================
# ENTRY POINTS
# =====================================================

def checkout_cart(
    *,
    cart,
    payment_method: str,
    store_id=None,
    user_id=None,
    gateway: Optional[PaymentGateway] = None,
    prompt: Optional[PaymentPrompt] = None,
    emitter: Optional[Emitter] = None,
    order_id: Optional[str] = None,
    customer: Optional[dict] = None,
) -> CheckoutResult:
    """
    cart is a CartStore (anything with .state and .dispatch()).
    """
    collector = CollectingEmitter(forward_to=emitter) if emitter is not None else CollectingEmitter()

    request = _snapshot(
        cart=cart,
        payment_method=payment_method,
        store_id=store_id,
        user_id=user_id,
        order_id=order_id,
    )

    if request.payment_method == LedgerRecord.PAYMENT_QRIS:
        outcome = _collect_payment(request, gateway=gateway, prompt=prompt, customer=customer)
        if outcome == PaymentOutcome.CLOSED:
            logger.info("QRIS popup closed; checkout cancelled", extra={"order_id": request.order_id})
            return CheckoutCancelled(order_id=request.order_id)

    try:
        with transaction.atomic():
            intent = CheckoutIntent.objects.create(
                order_id=request.order_id,
                user_id=request.acting_user_id,
                payload=request.to_payload(),
            )
    except IntegrityError as exc:
        raise CheckoutValidationError(f"Order {request.order_id} was already checked out") from exc

    logger.info(
        "Checkout started",
        extra={
            "order_id": request.order_id,
            "intent_id": str(intent.id),
            "payment_method": request.payment_method,
            "total_amount": request.total_amount,
        },
    )

    _apply_steps(intent, request)
    receipt = _finish(intent, request, collector)

    cart.dispatch(ClearCart())
    return receipt


def resume_checkout(*, intent: CheckoutIntent, emitter: Optional[Emitter] = None) -> ReceiptSummary:
    """
    Finish a failed or interrupted checkout. Only the missing steps run.
    """
    if intent.status == CheckoutIntent.STATUS_COMPLETED:
        raise IntentAlreadyCompleted(f"Order {intent.order_id} is already complete")

    request = CheckoutRequest.from_payload(intent.payload)
    collector = CollectingEmitter(forward_to=emitter) if emitter is not None else CollectingEmitter()

    logger.info(
        "Resuming checkout",
        extra={
            "order_id": intent.order_id,
            "intent_id": str(intent.id),
            "completed_steps": list(intent.completed_steps or []),
        },
    )

    _apply_steps(intent, request)
    return _finish(intent, request, collector)
