# payments/services/midtrans.py
from __future__ import annotations

import base64
import hashlib
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

SNAP_SANDBOX_URL = "https://app.sandbox.midtrans.com/snap/v1/transactions"
SNAP_PRODUCTION_URL = "https://app.midtrans.com/snap/v1/transactions"

QRIS_ENABLED_PAYMENTS = ["gopay", "shopeepay", "other_qris"]

DEFAULT_CUSTOMER = {
    "first_name": "Customer",
    "email": "customer@example.com",
    "phone": "08123456789",
}


class MidtransError(Exception):
    """
    Snap rejected the request or could not be reached.

    http_status mirrors Midtrans' status when there was one (500 otherwise).
    """

    def __init__(self, message: str, *, http_status: int = 500, error_messages=None, raw=None):
        super().__init__(message)
        self.message = message
        self.http_status = http_status
        self.error_messages = error_messages
        self.raw = raw or {}


class MidtransNotConfigured(MidtransError):
    def __init__(self):
        super().__init__("Server misconfigured: MIDTRANS_SERVER_KEY missing", http_status=500)


# =====================================================
# CONFIG
# =====================================================

@dataclass(frozen=True)
class MidtransConfig:
    server_key: str
    client_key: str
    is_production: bool
    timeout: int = 25

    @property
    def mode(self) -> str:
        return "production" if self.is_production else "sandbox"

    @property
    def snap_url(self) -> str:
        return SNAP_PRODUCTION_URL if self.is_production else SNAP_SANDBOX_URL

    @property
    def key_prefix(self) -> str:
        return self.server_key[:12]

    @property
    def key_fingerprint(self) -> str:
        if not self.server_key:
            return ""
        return hashlib.sha256(self.server_key.encode("utf-8")).hexdigest()[:12]


def resolve_mode(server_key: str, is_production: bool) -> bool:
    """
    The key decides the mode when the flag disagrees with it:
    - "SB-" keys are sandbox keys
    - "Mid-" / "MI" keys are production keys
    """
    if not server_key:
        return is_production

    if server_key.startswith("SB-") and is_production:
        logger.warning("Sandbox key detected with MIDTRANS_IS_PRODUCTION=true. Forcing sandbox mode.")
        return False

    if (server_key.startswith("Mid-") or server_key.startswith("MI")) and not is_production:
        logger.warning("Live key detected with MIDTRANS_IS_PRODUCTION=false. Forcing production mode.")
        return True

    return is_production


def get_config() -> MidtransConfig:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("MIDTRANS") or {}

    server_key = (cfg.get("SERVER_KEY") or "").strip()
    config = MidtransConfig(
        server_key=server_key,
        client_key=(cfg.get("CLIENT_KEY") or "").strip(),
        is_production=resolve_mode(server_key, bool(cfg.get("IS_PRODUCTION", False))),
        timeout=int(cfg.get("TIMEOUT") or 25),
    )

    if not server_key:
        logger.warning("MIDTRANS_SERVER_KEY not set")

    return config


# =====================================================
# ORDER IDS + PARAMETERS
# =====================================================

def new_order_id(*, with_suffix: bool = False) -> str:
    millis = int(time.time() * 1000)
    if with_suffix:
        return f"ORDER-{millis}-{random.randint(0, 99999)}"
    return f"ORDER-{millis}"


def build_qris_parameter(*, order_id: str, gross_amount: int, customer: dict | None = None) -> dict:
    customer = customer or {}
    return {
        "transaction_details": {
            "order_id": order_id,
            "gross_amount": int(gross_amount),
        },
        "customer_details": {
            "first_name": customer.get("first_name") or DEFAULT_CUSTOMER["first_name"],
            "email": customer.get("email") or DEFAULT_CUSTOMER["email"],
            "phone": customer.get("phone") or DEFAULT_CUSTOMER["phone"],
        },
        "enabled_payments": list(QRIS_ENABLED_PAYMENTS),
    }


def build_transaction_parameter(*, order_id: str, amount: int, name: str = "", email: str = "") -> dict:
    return {
        "transaction_details": {
            "order_id": order_id,
            "gross_amount": int(amount),
        },
        "credit_card": {"secure": True},
        "customer_details": {
            "first_name": name or DEFAULT_CUSTOMER["first_name"],
            "email": email or DEFAULT_CUSTOMER["email"],
        },
    }


# =====================================================
# HTTP
# =====================================================

def _parse_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw or "")
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _auth_header(server_key: str) -> str:
    token = base64.b64encode(f"{server_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _request_json(method: str, url: str, *, body: dict | None, config: MidtransConfig) -> dict[str, Any]:
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        url,
        data=data,
        headers={
            "Authorization": _auth_header(config.server_key),
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=config.timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raw = ""
        try:
            raw = e.read().decode("utf-8", errors="replace")
        except OSError:
            raw = ""
        parsed = _parse_json(raw)

        error_messages = parsed.get("error_messages")
        if not error_messages and parsed.get("validation_messages"):
            error_messages = [parsed.get("validation_messages")]

        raise MidtransError(
            parsed.get("message") or f"Midtrans HTTPError: {e.code}",
            http_status=int(e.code),
            error_messages=error_messages,
            raw=parsed,
        ) from e
    except URLError as e:
        raise MidtransError(f"Midtrans URLError: {e.reason}") from e

    parsed = _parse_json(raw)
    if not parsed:
        raise MidtransError("Midtrans returned non-JSON response")
    return parsed


def create_snap_transaction(*, parameter: dict, config: MidtransConfig | None = None) -> dict:
    """
    POST the parameter to Snap. Returns {"token", "redirect_url"}.
    """
    config = config or get_config()
    if not config.server_key:
        raise MidtransNotConfigured()

    order_id = (parameter.get("transaction_details") or {}).get("order_id")

    logger.info(
        "Creating Snap transaction",
        extra={"order_id": order_id, "mode": config.mode, "key_prefix": config.key_prefix},
    )

    parsed = _request_json("POST", config.snap_url, body=parameter, config=config)

    token = parsed.get("token")
    if not token:
        raise MidtransError(
            parsed.get("message") or "Snap response has no token",
            error_messages=parsed.get("error_messages"),
            raw=parsed,
        )

    return {"token": token, "redirect_url": parsed.get("redirect_url") or ""}
