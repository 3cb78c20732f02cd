# sales/services/exceptions.py


class CheckoutError(Exception):
    """Base checkout exception"""


class CheckoutValidationError(CheckoutError):
    """Cart / payment method rejected before anything was written."""


class GatewayError(CheckoutError):
    """Payment gateway failed or the payer's payment errored. Nothing was written."""

    def __init__(self, message: str, *, gateway_status=None):
        super().__init__(message)
        self.gateway_status = gateway_status


class PartialWriteError(CheckoutError):
    """
    Some business writes happened and a later one failed.

    No rollback is attempted. The CheckoutIntent (intent_id) records which
    steps completed so the checkout can be resumed.
    """

    def __init__(self, message: str, *, intent_id=None, step: str = "", failed_products=None):
        super().__init__(message)
        self.intent_id = intent_id
        self.step = step
        self.failed_products = list(failed_products or [])


class IntentAlreadyCompleted(CheckoutError):
    pass
