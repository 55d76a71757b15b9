# common/exceptions.py

"""
STOREFRONT SERVICE ERRORS

Centralized domain errors shared by cart, orders, payments and shipping.

Every error carries:
- code: machine-readable identifier returned in the API envelope
- http_status: status the view edge answers with
"""

from __future__ import annotations


class StorefrontError(Exception):
    """Base exception for all storefront service failures."""

    code = "STOREFRONT_ERROR"
    http_status = 500

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(StorefrontError):
    """Request is well-formed but violates a business rule."""

    code = "VALIDATION_ERROR"
    http_status = 400


class EmptyCartError(ValidationError):
    """Cart has no items."""

    code = "EMPTY_CART"


class NotFoundError(StorefrontError):
    """Referenced resource does not exist (or is not visible to the caller)."""

    code = "NOT_FOUND"
    http_status = 404


class InsufficientStockError(StorefrontError):
    """Raised when requested quantity exceeds available stock."""

    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(self, message: str = "", *, product_id=None, requested=None, available=None):
        super().__init__(message)
        self.product_id = product_id
        self.requested = requested
        self.available = available


class UnauthorizedError(StorefrontError):
    """Caller identity could not be established."""

    code = "UNAUTHORIZED"
    http_status = 401


class InvalidTransitionError(StorefrontError):
    """Order status change is not allowed from the current status."""

    code = "INVALID_TRANSITION"
    http_status = 409


class DuplicateEventError(StorefrontError):
    """Payment event was already reconciled (acknowledged as a no-op)."""

    code = "DUPLICATE_EVENT"
    http_status = 200


class ExternalServiceError(StorefrontError):
    """Payment gateway or carrier-rate provider failed."""

    code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class InternalError(StorefrontError):
    """Unexpected failure while materializing state."""

    code = "INTERNAL_ERROR"
    http_status = 500
