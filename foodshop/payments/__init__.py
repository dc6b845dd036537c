from foodshop.payments.capture import CaptureCommitService
from foodshop.payments.paypal import PayPalClient, build_paypal_client

__all__ = ["CaptureCommitService", "PayPalClient", "build_paypal_client"]
