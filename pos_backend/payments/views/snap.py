# payments/views/snap.py

"""
SNAP TRANSACTION ENDPOINTS (AllowAny, throttled)

POST /api/create-transaction/   {amount, name?, email?}           -> {token, redirect_url}
POST /api/checkout/             {orderId, grossAmount, customer?}  -> {snapToken}

Gateway failures mirror Midtrans' HTTP status with
{error, message, error_messages, mode}.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import serializers, status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from payments.services.midtrans import (
    MidtransError,
    MidtransNotConfigured,
    build_qris_parameter,
    build_transaction_parameter,
    create_snap_transaction,
    get_config,
    new_order_id,
)

logger = logging.getLogger(__name__)


class GatewayThrottle(AnonRateThrottle):
    scope = "gateway"


# =====================================================
# INPUT SERIALIZERS
# =====================================================

class CreateTransactionInputSerializer(serializers.Serializer):
    amount = serializers.FloatField()
    name = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.CharField(required=False, allow_blank=True, default="")


class CustomerInputSerializer(serializers.Serializer):
    firstName = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.CharField(required=False, allow_blank=True, default="")
    phone = serializers.CharField(required=False, allow_blank=True, default="")


class SnapCheckoutInputSerializer(serializers.Serializer):
    orderId = serializers.CharField(max_length=64)
    grossAmount = serializers.IntegerField(min_value=1)
    customer = CustomerInputSerializer(required=False)


# =====================================================
# ERROR SHAPES
# =====================================================

def gateway_error_response(exc: MidtransError, *, mode: str):
    if isinstance(exc, MidtransNotConfigured):
        return Response({"error": exc.message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    body = {
        "error": "Failed to create transaction",
        "message": exc.message,
        "mode": mode,
    }
    if exc.error_messages is not None:
        body["error_messages"] = exc.error_messages
    return Response(body, status=exc.http_status)


# =====================================================
# VIEWS
# =====================================================

class CreateTransactionView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [GatewayThrottle]

    @extend_schema(
        request=CreateTransactionInputSerializer,
        responses={200: dict},
        description="Create a Snap transaction and return its token and redirect URL",
    )
    def post(self, request):
        config = get_config()
        if not config.server_key:
            return gateway_error_response(MidtransNotConfigured(), mode=config.mode)

        serializer = CreateTransactionInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response({"error": "Invalid amount"}, status=status.HTTP_400_BAD_REQUEST)

        amount = int(round(serializer.validated_data["amount"]))
        if amount <= 0:
            return Response({"error": "Invalid amount"}, status=status.HTTP_400_BAD_REQUEST)

        parameter = build_transaction_parameter(
            order_id=new_order_id(with_suffix=True),
            amount=amount,
            name=serializer.validated_data["name"],
            email=serializer.validated_data["email"],
        )

        try:
            created = create_snap_transaction(parameter=parameter, config=config)
        except MidtransError as exc:
            logger.error(
                "Create transaction error",
                extra={"http_status": exc.http_status, "error": exc.message},
            )
            return gateway_error_response(exc, mode=config.mode)

        return Response(
            {"token": created["token"], "redirect_url": created["redirect_url"]},
            status=status.HTTP_200_OK,
        )


class SnapCheckoutView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [GatewayThrottle]

    @extend_schema(
        request=SnapCheckoutInputSerializer,
        responses={200: dict},
        description="Create a QRIS Snap session for an existing order id",
    )
    def post(self, request):
        serializer = SnapCheckoutInputSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "orderId and grossAmount are required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        customer = data.get("customer") or {}

        config = get_config()
        parameter = build_qris_parameter(
            order_id=data["orderId"],
            gross_amount=data["grossAmount"],
            customer={
                "first_name": customer.get("firstName"),
                "email": customer.get("email"),
                "phone": customer.get("phone"),
            },
        )

        try:
            created = create_snap_transaction(parameter=parameter, config=config)
        except MidtransError as exc:
            logger.error(
                "Checkout error",
                extra={"order_id": data["orderId"], "http_status": exc.http_status, "error": exc.message},
            )
            return gateway_error_response(exc, mode=config.mode)

        return Response({"snapToken": created["token"]}, status=status.HTTP_200_OK)
