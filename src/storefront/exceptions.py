"""Storefront error taxonomy.

Every error carries a stable ``code`` and a client-safe ``message``; the API
layer renders them as ``{"error": code, "message": message}`` with
``status_code``. Field-level input problems use Protean's ``ValidationError``.
"""

from enum import Enum


class StorefrontError(Exception):
    code = "storefront_error"
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AuthError(StorefrontError):
    """No valid identity where one is required."""

    code = "auth_required"
    status_code = 401
    default_message = "You must be logged in to do that"


class ForbiddenError(StorefrontError):
    """Identity present but lacking the permission or ownership required."""

    code = "forbidden"
    status_code = 403
    default_message = "You do not have permission to do that"


class NotFoundError(StorefrontError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class ConflictError(StorefrontError):
    """A concurrent operation holds the resource for longer than we wait."""

    code = "conflict"
    status_code = 409
    default_message = "Another request is already working on this. Try again shortly"


class PaymentFailureKind(Enum):
    DECLINED = "declined"
    NETWORK = "network"
    INVALID_SOURCE = "invalid_source"


_PAYMENT_STATUS = {
    PaymentFailureKind.DECLINED: 402,
    PaymentFailureKind.NETWORK: 503,
    PaymentFailureKind.INVALID_SOURCE: 400,
}


class PaymentError(StorefrontError):
    """The payment processor refused or could not be reached."""

    default_message = "Payment failed"

    def __init__(
        self,
        kind: PaymentFailureKind | str,
        message: str | None = None,
        timed_out: bool = False,
    ) -> None:
        self.kind = PaymentFailureKind(kind)
        self.timed_out = timed_out
        super().__init__(message)

    @property
    def code(self) -> str:
        return f"payment_{self.kind.value}"

    @property
    def status_code(self) -> int:
        return _PAYMENT_STATUS[self.kind]


class PersistenceError(StorefrontError):
    """Writing to the data store failed.

    The underlying exception is kept on ``cause`` for logs; ``message`` never
    includes storage detail.
    """

    code = "persistence_failed"
    status_code = 500
    default_message = "Could not save your changes"

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ReconciliationRequired(StorefrontError):
    """A charge succeeded but no order could be recorded for it."""

    code = "reconciliation_required"
    status_code = 500
    default_message = "Your payment was taken but the order could not be recorded. Our team has been notified"

    def __init__(
        self,
        charge_id: str | None = None,
        record_id: str | None = None,
        message: str | None = None,
    ) -> None:
        self.charge_id = charge_id
        self.record_id = record_id
        super().__init__(message)
