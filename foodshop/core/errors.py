from __future__ import annotations

from typing import Any


class ShopError(Exception):
    pass


class DataSourceError(ShopError):
    """Every configured tier failed (or none is configured)."""


class RemoteStoreError(DataSourceError):
    def __init__(self, message: str, status_code: int | None = None, payload: dict[str, Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class InputValidationError(ShopError, ValueError):
    """Missing checkout fields or a malformed admin payload; raised before any network call."""


class SubmissionInProgressError(ShopError):
    pass


class PaymentUnavailableError(ShopError):
    def __init__(self, reasons: list[str]):
        super().__init__("PayPal is unavailable: " + "; ".join(reasons))
        self.reasons = reasons


class ProviderError(ShopError):
    pass


class ProviderRejectedError(ProviderError):
    def __init__(self, provider_status: str, message: str | None = None):
        super().__init__(message or f"PayPal order not completed (status: {provider_status})")
        self.provider_status = provider_status


class PostCapturePersistenceError(ShopError):
    """Funds were captured by the provider but the order could not be recorded.

    Needs manual reconciliation: the capture must not be retried.
    """

    def __init__(self, provider_order_id: str, message: str | None = None):
        super().__init__(
            message
            or f"Payment {provider_order_id} was captured but the order could not be recorded. "
            "Please contact staff with this reference instead of paying again."
        )
        self.provider_order_id = provider_order_id


class AdminAuthorizationError(ShopError, PermissionError):
    pass


class PaymentFlowStateError(ShopError):
    """A PayPal checkout step was invoked out of order."""
