# payments/views/notification.py

"""
MIDTRANS PAYMENT NOTIFICATION (WEBHOOK)

POST /api/midtrans/notification/
POST /api/notification/

Responses:
- 403 {"error": "Invalid signature"}   nothing else happens
- 200 {"message": "OK"}                signature valid, status logged
- 500 {"error": "Internal Server Error"}

Orders are not updated here: the cashier's checkout already wrote the sale,
and Sale.order_id lets the log lines be matched to it.
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.parsers import JSONParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from payments.services.midtrans import get_config
from payments.services.signature import PaymentNotification, SignatureError, verify_notification

logger = logging.getLogger(__name__)


class WebhookThrottle(AnonRateThrottle):
    scope = "webhook"


class MidtransNotificationView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    parser_classes = [JSONParser]
    throttle_classes = [WebhookThrottle]

    def post(self, request, *args, **kwargs):
        try:
            notification = PaymentNotification.from_payload(request.data)
            config = get_config()

            if not config.server_key:
                logger.error("Midtrans notification received but MIDTRANS_SERVER_KEY is not set")
                return Response(
                    {"error": "Internal Server Error"},
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR,
                )

            try:
                verify_notification(notification, server_key=config.server_key)
            except SignatureError:
                logger.warning("Invalid signature from Midtrans", extra={"order_id": notification.order_id})
                return Response({"error": "Invalid signature"}, status=status.HTTP_403_FORBIDDEN)

            log_extra = {
                "order_id": notification.order_id,
                "transaction_status": notification.transaction_status,
                "fraud_status": notification.fraud_status,
            }
            outcome = notification.outcome

            if outcome == "paid":
                logger.info("Order %s PAID", notification.order_id, extra=log_extra)
            elif outcome == "pending":
                logger.info("Order %s PENDING", notification.order_id, extra=log_extra)
            elif outcome == "failed":
                logger.warning(
                    "Order %s FAILED: %s",
                    notification.order_id,
                    notification.transaction_status,
                    extra=log_extra,
                )
            else:
                logger.warning("Order %s unknown status", notification.order_id, extra=log_extra)

            return Response({"message": "OK"}, status=status.HTTP_200_OK)

        except Exception:
            logger.exception("Unhandled Midtrans notification error")
            return Response(
                {"error": "Internal Server Error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
