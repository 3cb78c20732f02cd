# pos/views/api.py

"""
POS API VIEWS

Purpose:
- Session-scoped cart (add / update / remove / clear)
- Cash checkout
- QRIS checkout in two calls:
    1) POST checkout/qris/                    issue the Snap session
    2) POST checkout/qris/<order_id>/result/  report what the popup returned

Hard rules:
- Prices come from the catalog when an item is added; the client never sends money.
- Add / update are checked against live stock (409 INSUFFICIENT_STOCK).
- The cart lives in the cashier's session, never in business tables.
"""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from payments.services.gateway import IssuedSessionGateway, PaymentOutcome, PaymentSession, ReportedOutcomePrompt
from payments.services.midtrans import get_config
from pos.cart import AddItem, CartCapacityError, ClearCart, ProductRef, RemoveItem, SetQuantity
from pos.serializers import CartSerializer
from pos.session_cart import (
    SessionCartStore,
    cart_fingerprint,
    clear_pending_payment,
    get_pending_payment,
    set_pending_payment,
)
from products.models import Product
from sales.services.checkout_orchestrator import (
    CheckoutCancelled,
    CheckoutValidationError,
    GatewayError,
    PartialWriteError,
    begin_qris_payment,
    checkout_cart,
)
from users.permissions import IsStoreStaff

logger = logging.getLogger(__name__)


# =====================================================
# SWAGGER INPUT SERIALIZERS
# =====================================================

class AddCartItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


class CheckoutInputSerializer(serializers.Serializer):
    store_id = serializers.UUIDField(required=False, allow_null=True)


class CustomerInputSerializer(serializers.Serializer):
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")


class QrisStartInputSerializer(CheckoutInputSerializer):
    customer = CustomerInputSerializer(required=False)


class QrisResultInputSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=[o.value for o in PaymentOutcome])


# =====================================================
# API ERROR NORMALIZATION
# =====================================================

def error_response(*, code: str, message: str, http_status: int, **extra):
    body = {"code": code, "message": message}
    body.update(extra)
    return Response({"error": body}, status=http_status)


# =====================================================
# HELPERS
# =====================================================

def _cart_payload(cart) -> dict:
    return CartSerializer(
        {
            "items": [dict(i.to_dict(), subtotal=i.subtotal) for i in cart.items],
            "total_items": cart.total_items,
            "total_price": cart.total_price,
        }
    ).data


def _receipt_payload(receipt) -> dict:
    request = receipt.request
    return {
        "status": "completed",
        "order_id": request.order_id,
        "sale_id": receipt.sale_id,
        "transaction_id": receipt.transaction_id,
        "payment_method": request.payment_method,
        "store_id": request.store_id,
        "total_amount": request.total_amount,
        "total_items": request.total_item_count,
        "items": request.ledger_items(),
        "notifications": receipt.notifications,
    }


def _live_stock(product_id) -> int:
    return int(Product.objects.filter(id=product_id).values_list("stock", flat=True).first() or 0)


def _checkout_error_response(exc):
    if isinstance(exc, CheckoutValidationError):
        return error_response(
            code="CHECKOUT_INVALID",
            message=str(exc),
            http_status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, GatewayError):
        return error_response(
            code="PAYMENT_FAILED",
            message=str(exc),
            http_status=status.HTTP_502_BAD_GATEWAY,
        )
    if isinstance(exc, PartialWriteError):
        return error_response(
            code="CHECKOUT_PARTIAL",
            message=str(exc),
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            intent_id=str(exc.intent_id) if exc.intent_id else None,
            failed_products=exc.failed_products,
        )
    raise exc


# =====================================================
# CART VIEWS
# =====================================================

class CartView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(responses={200: CartSerializer}, description="Current session cart")
    def get(self, request):
        cart = SessionCartStore(request.session)
        return Response(_cart_payload(cart.state), status=status.HTTP_200_OK)


class AddCartItemView(APIView):
    """
    Add one unit of a product (appends the line if it is new).
    """

    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        request=AddCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Add one unit of a product to the cart",
    )
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = get_object_or_404(Product, id=serializer.validated_data["product_id"], is_active=True)
        cart = SessionCartStore(request.session)

        try:
            state = cart.dispatch(AddItem(product=ProductRef.from_product(product), live_stock=product.stock))
        except CartCapacityError as exc:
            return error_response(
                code="INSUFFICIENT_STOCK",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
                available=exc.available,
            )

        return Response(_cart_payload(state), status=status.HTTP_200_OK)


class UpdateCartItemView(APIView):
    """
    Replace a line's quantity. Zero or less removes the line.
    """

    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        request=UpdateCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Set the quantity of a cart line",
    )
    def post(self, request, product_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = SessionCartStore(request.session)
        try:
            state = cart.dispatch(
                SetQuantity(
                    product_id=str(product_id),
                    quantity=serializer.validated_data["quantity"],
                    live_stock=_live_stock(product_id),
                )
            )
        except CartCapacityError as exc:
            return error_response(
                code="INSUFFICIENT_STOCK",
                message=str(exc),
                http_status=status.HTTP_409_CONFLICT,
                available=exc.available,
            )

        return Response(_cart_payload(state), status=status.HTTP_200_OK)


class RemoveCartItemView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(request=None, responses={200: CartSerializer}, description="Remove a cart line")
    def post(self, request, product_id):
        cart = SessionCartStore(request.session)
        state = cart.dispatch(RemoveItem(product_id=str(product_id)))
        return Response(_cart_payload(state), status=status.HTTP_200_OK)


class ClearCartView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(request=None, responses={200: CartSerializer}, description="Empty the cart")
    def post(self, request):
        cart = SessionCartStore(request.session)
        state = cart.dispatch(ClearCart())
        clear_pending_payment(request.session)
        return Response(_cart_payload(state), status=status.HTTP_200_OK)


# =====================================================
# CHECKOUT VIEWS
# =====================================================

class CashCheckoutView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        request=CheckoutInputSerializer,
        responses={201: dict},
        description="Cash checkout of the session cart",
        examples=[
            OpenApiExample(
                "Own store",
                value={},
                request_only=True,
            ),
            OpenApiExample(
                "Explicit store",
                value={"store_id": "07d0722f-92fd-4a83-b84e-6e25f034a647"},
                request_only=True,
            ),
        ],
    )
    def post(self, request):
        serializer = CheckoutInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = SessionCartStore(request.session)

        try:
            receipt = checkout_cart(
                cart=cart,
                payment_method="cash",
                store_id=serializer.validated_data.get("store_id"),
                user_id=request.user.id,
            )
        except (CheckoutValidationError, GatewayError, PartialWriteError) as exc:
            return _checkout_error_response(exc)

        return Response(_receipt_payload(receipt), status=status.HTTP_201_CREATED)


class QrisCheckoutStartView(APIView):
    """
    Issue a Snap session for the current cart. The client opens the Snap
    popup with the token and reports the result to the result endpoint.
    """

    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        request=QrisStartInputSerializer,
        responses={201: dict},
        description="Start a QRIS payment for the session cart",
    )
    def post(self, request):
        serializer = QrisStartInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store_id = serializer.validated_data.get("store_id")
        cart = SessionCartStore(request.session)

        try:
            session = begin_qris_payment(
                cart=cart,
                store_id=store_id,
                user_id=request.user.id,
                customer=serializer.validated_data.get("customer"),
            )
        except (CheckoutValidationError, GatewayError) as exc:
            return _checkout_error_response(exc)

        set_pending_payment(
            request.session,
            dict(
                session.to_dict(),
                store_id=str(store_id) if store_id else None,
                items=cart_fingerprint(cart.state),
            ),
        )

        return Response(
            {
                "order_id": session.order_id,
                "token": session.token,
                "redirect_url": session.redirect_url,
                "gross_amount": session.gross_amount,
                "client_key": get_config().client_key,
            },
            status=status.HTTP_201_CREATED,
        )


class QrisCheckoutResultView(APIView):
    permission_classes = [IsAuthenticated, IsStoreStaff]

    @extend_schema(
        request=QrisResultInputSerializer,
        responses={200: dict, 201: dict},
        description="Report the Snap popup outcome (success / pending / error / closed)",
    )
    def post(self, request, order_id):
        serializer = QrisResultInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pending = get_pending_payment(request.session)
        if not pending or pending.get("order_id") != order_id:
            return error_response(
                code="PAYMENT_NOT_FOUND",
                message="No pending QRIS payment for this order.",
                http_status=status.HTTP_404_NOT_FOUND,
            )

        session = PaymentSession.from_dict(pending)
        cart = SessionCartStore(request.session)

        if (
            cart.state.total_price != session.gross_amount
            or cart_fingerprint(cart.state) != pending.get("items")
        ):
            return error_response(
                code="CART_CHANGED",
                message="Cart changed after the QRIS payment was started.",
                http_status=status.HTTP_409_CONFLICT,
            )

        try:
            result = checkout_cart(
                cart=cart,
                payment_method="qris",
                store_id=pending.get("store_id"),
                user_id=request.user.id,
                gateway=IssuedSessionGateway(session),
                prompt=ReportedOutcomePrompt(serializer.validated_data["outcome"]),
                order_id=order_id,
            )
        except (CheckoutValidationError, GatewayError, PartialWriteError) as exc:
            clear_pending_payment(request.session)
            return _checkout_error_response(exc)

        clear_pending_payment(request.session)

        if isinstance(result, CheckoutCancelled):
            return Response(
                {"status": "cancelled", "order_id": result.order_id},
                status=status.HTTP_200_OK,
            )

        return Response(_receipt_payload(result), status=status.HTTP_201_CREATED)
