"""Error taxonomy shared by the payment and consultation endpoints.

Every error that can reach a client is a ``ServiceError`` and renders to
``{"success": false, "error": ..., "details": ..., "hint": ...}``.
"""

from typing import Optional


class ServiceError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None, details: Optional[str] = None, hint: Optional[str] = None):
        self.error = error or self.error
        self.details = details
        self.hint = hint
        super().__init__(self.error)

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.error}
        if self.details:
            body["details"] = self.details
        if self.hint:
            body["hint"] = self.hint
        return body


class ConfigurationError(ServiceError):
    status_code = 500
    error = "Server configuration error"


class ValidationError(ServiceError):
    status_code = 400
    error = "Invalid request"


class PaymentRequiredError(ServiceError):
    status_code = 402
    error = "Payment required"


class VerificationError(ServiceError):
    status_code = 400
    error = "Payment verification failed"


class UpstreamGatewayError(ServiceError):
    status_code = 500
    error = "Failed to create payment order"


class StorageError(ServiceError):
    """Persistence failed. ``operator_hint`` is for logs only."""

    status_code = 500
    error = "Failed to save consultation request"

    def __init__(self, error: Optional[str] = None, details: Optional[str] = None, operator_hint: Optional[str] = None):
        super().__init__(error, details)
        self.operator_hint = operator_hint


class NotificationError(ServiceError):
    error = "Notification delivery failed"
