# storefront/domain/errors.py
"""
Typed failures raised by the service layer.

Every error carries a stable ``kind`` and the HTTP status the API layer
renders it with. Stock and not-found failures name the product or order
involved so the client can re-fetch and re-prompt.
"""


class StorefrontError(Exception):
    kind = "storefront_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StorefrontError):
    kind = "not_found"
    status_code = 404

    def __init__(self, message: str, resource_id: str | None = None):
        super().__init__(message)
        self.resource_id = resource_id


class InsufficientStock(StorefrontError):
    kind = "insufficient_stock"
    status_code = 409

    def __init__(self, product_id: str, requested: int, available: int, name: str | None = None):
        label = name or product_id
        super().__init__(
            f"Insufficient stock for {label}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidIdentity(StorefrontError):
    kind = "invalid_identity"
    status_code = 400


class TransactionConflict(StorefrontError):
    """The store aborted the transaction; nothing was persisted, retry is safe."""

    kind = "transaction_conflict"
    status_code = 409


class ValidationError(StorefrontError):
    kind = "validation_error"
    status_code = 422


class AccessDenied(StorefrontError):
    kind = "access_denied"
    status_code = 403


class PaymentVerificationFailed(StorefrontError):
    kind = "payment_verification_failed"
    status_code = 402
