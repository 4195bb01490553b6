"""Error taxonomy for the storefront.

Every failure carries a stable ``reason`` identifier alongside a
human-readable message. The API layer maps each error kind to an HTTP
status; command handlers let these propagate so the unit of work rolls
back before the caller sees the error.
"""

from enum import Enum


class Reason(Enum):
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    ORDER_NOT_FOUND = "OrderNotFound"
    VARIANT_NOT_FOUND = "VariantNotFound"
    PRODUCT_NOT_FOUND = "ProductNotFound"
    PRODUCT_INACTIVE = "ProductInactive"
    PRODUCT_UNAVAILABLE = "ProductUnavailable"
    VARIANT_UNAVAILABLE = "VariantUnavailable"
    COMBO_SELECTIONS_REQUIRED = "ComboSelectionsRequired"
    INVALID_COMBO_SELECTION = "InvalidComboSelection"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_TRANSITION = "InvalidTransition"
    ORDER_NOT_CANCELLABLE = "OrderNotCancellable"
    DISCOUNT_LIMIT_REACHED = "DiscountLimitReached"
    DUPLICATE_CODE = "DuplicateCode"
    AUTHENTICATION_REQUIRED = "AuthenticationRequired"
    FORBIDDEN = "Forbidden"
    TRANSACTION_REQUIRED = "TransactionRequired"
    INTERNAL_ERROR = "InternalError"


class StorefrontError(Exception):
    """Base class for every failure surfaced by the storefront."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, reason: Reason | str, message: str, details: dict | None = None):
        super().__init__(message)
        self.reason = reason.value if isinstance(reason, Enum) else reason
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"type": self.kind, "reason": self.reason, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self):
        return f"{type(self).__name__}(reason={self.reason!r}, message={self.message!r})"


class InputError(StorefrontError):
    """Malformed input, rejected before anything is written."""

    kind = "ValidationError"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None, reason: Reason | str = Reason.VALIDATION_ERROR):
        super().__init__(reason, message, details)


class NotFoundError(StorefrontError):
    kind = "NotFoundError"
    status_code = 404


class ConflictError(StorefrontError):
    """A business rule refused the operation (stock, lifecycle, discount limits)."""

    kind = "ConflictError"
    status_code = 400


class AuthorizationError(StorefrontError):
    kind = "AuthorizationError"
    status_code = 403

    def __init__(self, message: str = "Access denied", reason: Reason | str = Reason.FORBIDDEN):
        super().__init__(reason, message)


class AuthenticationRequired(AuthorizationError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, reason=Reason.AUTHENTICATION_REQUIRED)


class InternalError(StorefrontError):
    kind = "InternalError"
    status_code = 500
