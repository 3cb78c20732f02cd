# payments/tests.py

"""
PAYMENTS TESTS

Run with:
    python manage.py test payments -v 2

No test talks to Midtrans: urlopen / _request_json are mocked.
"""

from __future__ import annotations

import base64
import hashlib
import io
import json
from unittest import mock
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from payments.services.gateway import (
    IssuedSessionGateway,
    PaymentOutcome,
    PaymentSession,
    ReportedOutcomePrompt,
    SnapGateway,
)
from payments.services.midtrans import (
    QRIS_ENABLED_PAYMENTS,
    SNAP_PRODUCTION_URL,
    SNAP_SANDBOX_URL,
    MidtransConfig,
    MidtransError,
    MidtransNotConfigured,
    build_qris_parameter,
    create_snap_transaction,
    get_config,
    new_order_id,
    resolve_mode,
)
from payments.services.signature import (
    PaymentNotification,
    SignatureError,
    classify_status,
    generate_signature,
    verify_notification,
)

SERVER_KEY = "SB-Mid-server-test"

MIDTRANS_TEST_SETTINGS = {
    "MIDTRANS": {
        "SERVER_KEY": SERVER_KEY,
        "CLIENT_KEY": "SB-Mid-client-test",
        "IS_PRODUCTION": False,
        "TIMEOUT": 5,
    }
}

NO_KEY_SETTINGS = {
    "MIDTRANS": {
        "SERVER_KEY": "",
        "CLIENT_KEY": "",
        "IS_PRODUCTION": False,
        "TIMEOUT": 5,
    }
}

SNAP_RESPONSE = {"token": "snap-token-123", "redirect_url": "https://example.test/snap"}


def _signed_payload(**overrides):
    payload = {
        "order_id": "ORDER-1",
        "status_code": "200",
        "gross_amount": "10000.00",
        "transaction_status": "settlement",
        "fraud_status": "accept",
    }
    payload.update(overrides)
    payload.setdefault(
        "signature_key",
        generate_signature(payload["order_id"], payload["status_code"], payload["gross_amount"], SERVER_KEY),
    )
    return payload


# =====================================================
# SIGNATURE
# =====================================================

class SignatureTests(SimpleTestCase):
    """
    GUARANTEES:
    - signature = sha512(order_id + status_code + gross_amount + server_key), lowercase hex
    - Any single-character change is rejected
    - Verification without a server key is a configuration error, not a pass
    """

    def test_known_vector(self):
        expected = hashlib.sha512(b"ORDER-120010000SECRET").hexdigest()

        signature = generate_signature("ORDER-1", "200", "10000", "SECRET")

        self.assertEqual(signature, expected)
        self.assertEqual(len(signature), 128)
        self.assertEqual(signature, signature.lower())

    def test_fields_are_concatenated_as_received(self):
        self.assertNotEqual(
            generate_signature("ORDER-1", "200", "10000.00", "SECRET"),
            generate_signature("ORDER-1", "200", "10000", "SECRET"),
        )

    def test_valid_signature_passes(self):
        notification = PaymentNotification.from_payload(_signed_payload())
        verify_notification(notification, server_key=SERVER_KEY)

    def test_one_character_mutation_is_rejected(self):
        payload = _signed_payload()
        sig = payload["signature_key"]
        payload["signature_key"] = ("0" if sig[0] != "0" else "1") + sig[1:]

        with self.assertRaises(SignatureError):
            verify_notification(PaymentNotification.from_payload(payload), server_key=SERVER_KEY)

    def test_non_ascii_signature_is_rejected(self):
        payload = _signed_payload()
        payload["signature_key"] = "\u00e9" + payload["signature_key"][1:]

        with self.assertRaises(SignatureError):
            verify_notification(PaymentNotification.from_payload(payload), server_key=SERVER_KEY)

    def test_changed_amount_is_rejected(self):
        payload = _signed_payload()
        payload["gross_amount"] = "10001.00"

        with self.assertRaises(SignatureError):
            verify_notification(PaymentNotification.from_payload(payload), server_key=SERVER_KEY)

    def test_missing_server_key_is_an_error(self):
        with self.assertRaises(ValueError):
            verify_notification(PaymentNotification.from_payload(_signed_payload()), server_key="")

    def test_classify_status(self):
        self.assertEqual(classify_status("capture"), "paid")
        self.assertEqual(classify_status("settlement"), "paid")
        self.assertEqual(classify_status("pending"), "pending")
        self.assertEqual(classify_status("expire"), "failed")
        self.assertEqual(classify_status("refund"), "unknown")


# =====================================================
# CONFIG
# =====================================================

class MidtransConfigTests(SimpleTestCase):
    def test_sandbox_key_forces_sandbox(self):
        self.assertFalse(resolve_mode("SB-Mid-server-abc", True))

    def test_live_key_forces_production(self):
        self.assertTrue(resolve_mode("Mid-server-abc", False))
        self.assertTrue(resolve_mode("MIxyz", False))

    def test_flag_is_kept_when_key_agrees(self):
        self.assertFalse(resolve_mode("SB-Mid-server-abc", False))
        self.assertTrue(resolve_mode("Mid-server-abc", True))
        self.assertTrue(resolve_mode("", True))

    @override_settings(
        PAYMENTS={"MIDTRANS": {"SERVER_KEY": "SB-Mid-server-abc", "CLIENT_KEY": "c", "IS_PRODUCTION": True}}
    )
    def test_get_config_applies_override(self):
        config = get_config()

        self.assertFalse(config.is_production)
        self.assertEqual(config.mode, "sandbox")
        self.assertEqual(config.snap_url, SNAP_SANDBOX_URL)
        self.assertEqual(config.key_prefix, "SB-Mid-serve")
        self.assertEqual(len(config.key_fingerprint), 12)

    def test_production_url(self):
        config = MidtransConfig(server_key="Mid-server-abc", client_key="", is_production=True)
        self.assertEqual(config.snap_url, SNAP_PRODUCTION_URL)

    def test_order_ids(self):
        self.assertRegex(new_order_id(), r"^ORDER-\d+$")
        self.assertRegex(new_order_id(with_suffix=True), r"^ORDER-\d+-\d+$")

    def test_qris_parameter_defaults_customer(self):
        parameter = build_qris_parameter(order_id="ORDER-1", gross_amount=15000)

        self.assertEqual(parameter["transaction_details"], {"order_id": "ORDER-1", "gross_amount": 15000})
        self.assertEqual(parameter["enabled_payments"], QRIS_ENABLED_PAYMENTS)
        self.assertEqual(parameter["customer_details"]["first_name"], "Customer")


# =====================================================
# SNAP HTTP
# =====================================================

class SnapHttpTests(SimpleTestCase):
    def setUp(self):
        self.config = MidtransConfig(server_key=SERVER_KEY, client_key="", is_production=False, timeout=5)

    @mock.patch("payments.services.midtrans.urlopen")
    def test_posts_with_basic_auth(self, urlopen):
        urlopen.return_value.__enter__.return_value.read.return_value = json.dumps(SNAP_RESPONSE).encode()

        created = create_snap_transaction(
            parameter=build_qris_parameter(order_id="ORDER-1", gross_amount=5000),
            config=self.config,
        )

        self.assertEqual(created, SNAP_RESPONSE)

        req = urlopen.call_args.args[0]
        expected_auth = "Basic " + base64.b64encode(f"{SERVER_KEY}:".encode()).decode()
        self.assertEqual(req.full_url, SNAP_SANDBOX_URL)
        self.assertEqual(req.get_method(), "POST")
        self.assertEqual(req.get_header("Authorization"), expected_auth)
        self.assertEqual(json.loads(req.data)["transaction_details"]["gross_amount"], 5000)

    @mock.patch("payments.services.midtrans.urlopen")
    def test_http_error_mirrors_status(self, urlopen):
        body = io.BytesIO(b'{"error_messages": ["Access denied"]}')
        urlopen.side_effect = HTTPError(SNAP_SANDBOX_URL, 401, "Unauthorized", hdrs=None, fp=body)

        with self.assertRaises(MidtransError) as ctx:
            create_snap_transaction(parameter={"transaction_details": {}}, config=self.config)

        self.assertEqual(ctx.exception.http_status, 401)
        self.assertEqual(ctx.exception.error_messages, ["Access denied"])

    @mock.patch("payments.services.midtrans.urlopen")
    def test_network_error_is_500(self, urlopen):
        urlopen.side_effect = URLError("timed out")

        with self.assertRaises(MidtransError) as ctx:
            create_snap_transaction(parameter={"transaction_details": {}}, config=self.config)

        self.assertEqual(ctx.exception.http_status, 500)

    @mock.patch("payments.services.midtrans.urlopen")
    def test_response_without_token_is_error(self, urlopen):
        urlopen.return_value.__enter__.return_value.read.return_value = b'{"status_code": "400"}'

        with self.assertRaises(MidtransError):
            create_snap_transaction(parameter={"transaction_details": {}}, config=self.config)

    def test_missing_key_is_not_configured(self):
        config = MidtransConfig(server_key="", client_key="", is_production=False)

        with self.assertRaises(MidtransNotConfigured):
            create_snap_transaction(parameter={}, config=config)


class GatewayAdapterTests(SimpleTestCase):
    def test_snap_gateway_builds_session(self):
        config = MidtransConfig(server_key=SERVER_KEY, client_key="", is_production=False)

        with mock.patch("payments.services.midtrans._request_json", return_value=SNAP_RESPONSE) as request_json:
            session = SnapGateway(config).create_session(order_id="ORDER-9", gross_amount=12000)

        self.assertEqual(session, PaymentSession("ORDER-9", 12000, "snap-token-123", "https://example.test/snap"))
        body = request_json.call_args.kwargs["body"]
        self.assertEqual(body["enabled_payments"], QRIS_ENABLED_PAYMENTS)

    def test_issued_session_rejects_other_amount(self):
        gateway = IssuedSessionGateway(PaymentSession("ORDER-9", 12000, "tok"))

        self.assertEqual(gateway.create_session(order_id="ORDER-9", gross_amount=12000).token, "tok")
        with self.assertRaises(MidtransError):
            gateway.create_session(order_id="ORDER-9", gross_amount=13000)

    def test_reported_outcome(self):
        prompt = ReportedOutcomePrompt("closed")
        self.assertEqual(prompt.present(PaymentSession("ORDER-9", 1, "tok")), PaymentOutcome.CLOSED)

        with self.assertRaises(ValueError):
            ReportedOutcomePrompt("maybe")


# =====================================================
# HTTP ENDPOINTS
# =====================================================

@override_settings(PAYMENTS=MIDTRANS_TEST_SETTINGS)
class NotificationWebhookTests(TestCase):
    """
    GUARANTEES:
    - 403 for a bad signature, 200 for a good one
    - 500 (never 200) when the server key is missing
    - No authentication is required
    """

    def setUp(self):
        self.client = APIClient()
        self.url = reverse("payments:midtrans-notification")

    def test_valid_signature_returns_ok(self):
        response = self.client.post(self.url, _signed_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"message": "OK"})

    def test_invalid_signature_returns_403(self):
        response = self.client.post(self.url, _signed_payload(signature_key="deadbeef"), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {"error": "Invalid signature"})

    def test_non_ascii_signature_returns_403(self):
        good = _signed_payload()["signature_key"]
        response = self.client.post(self.url, _signed_payload(signature_key="\u00e9" + good[1:]), format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json(), {"error": "Invalid signature"})

    def test_every_status_is_acknowledged(self):
        for transaction_status in ("capture", "pending", "deny", "expire", "cancel", "refund"):
            response = self.client.post(
                self.url,
                _signed_payload(transaction_status=transaction_status),
                format="json",
            )
            self.assertEqual(response.status_code, status.HTTP_200_OK, transaction_status)

    def test_alias_route(self):
        response = self.client.post(reverse("payments:notification"), _signed_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(PAYMENTS=NO_KEY_SETTINGS)
    def test_missing_server_key_returns_500(self):
        response = self.client.post(self.url, _signed_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {"error": "Internal Server Error"})


@override_settings(PAYMENTS=MIDTRANS_TEST_SETTINGS)
class CreateTransactionViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("payments:create-transaction")

    def test_returns_token_and_redirect(self):
        with mock.patch("payments.services.midtrans._request_json", return_value=SNAP_RESPONSE) as request_json:
            response = self.client.post(self.url, {"amount": 25000, "name": "Budi"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), SNAP_RESPONSE)

        body = request_json.call_args.kwargs["body"]
        self.assertEqual(body["transaction_details"]["gross_amount"], 25000)
        self.assertRegex(body["transaction_details"]["order_id"], r"^ORDER-\d+-\d+$")
        self.assertEqual(body["customer_details"]["first_name"], "Budi")

    def test_invalid_amount(self):
        for amount in ("abc", 0, -5):
            response = self.client.post(self.url, {"amount": amount}, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.json(), {"error": "Invalid amount"})

    def test_gateway_error_mirrors_status(self):
        error = MidtransError("Access denied", http_status=401, error_messages=["Access denied"])
        with mock.patch("payments.services.midtrans._request_json", side_effect=error):
            response = self.client.post(self.url, {"amount": 1000}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error_messages"], ["Access denied"])
        self.assertEqual(response.json()["mode"], "sandbox")

    @override_settings(PAYMENTS=NO_KEY_SETTINGS)
    def test_missing_key_returns_500(self):
        response = self.client.post(self.url, {"amount": 1000}, format="json")
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


@override_settings(PAYMENTS=MIDTRANS_TEST_SETTINGS)
class SnapCheckoutViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("payments:snap-checkout")

    def test_returns_snap_token(self):
        payload = {
            "orderId": "ORDER-42",
            "grossAmount": 18000,
            "customer": {"firstName": "Sari", "email": "sari@example.com"},
        }
        with mock.patch("payments.services.midtrans._request_json", return_value=SNAP_RESPONSE) as request_json:
            response = self.client.post(self.url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"snapToken": "snap-token-123"})

        body = request_json.call_args.kwargs["body"]
        self.assertEqual(body["transaction_details"]["order_id"], "ORDER-42")
        self.assertEqual(body["customer_details"]["first_name"], "Sari")
        self.assertEqual(body["enabled_payments"], QRIS_ENABLED_PAYMENTS)

    def test_missing_fields(self):
        response = self.client.post(self.url, {"orderId": "ORDER-42"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json(), {"error": "orderId and grossAmount are required"})
