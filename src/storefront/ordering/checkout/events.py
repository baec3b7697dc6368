"""Domain events for the CheckoutAttempt aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="CheckoutAttempt")
class CheckoutCharged:
    """The payment processor accepted the charge for a checkout."""

    __version__ = "v1"

    idempotency_key = String(required=True, max_length=255)
    user_id = Identifier(required=True)
    charge_id = String(required=True, max_length=255)
    charged_amount = Integer(required=True)
    charged_at = DateTime(required=True)


@storefront.event(part_of="CheckoutAttempt")
class CheckoutCompleted:
    __version__ = "v1"

    idempotency_key = String(required=True, max_length=255)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    completed_at = DateTime(required=True)


@storefront.event(part_of="CheckoutAttempt")
class CheckoutFailed:
    __version__ = "v1"

    idempotency_key = String(required=True, max_length=255)
    user_id = Identifier(required=True)
    failure_kind = String(required=True, max_length=50)
    reason = Text()
    failed_at = DateTime(required=True)


@storefront.event(part_of="CheckoutAttempt")
class CheckoutNeedsReconciliation:
    """Money was taken but the order could not be saved."""

    __version__ = "v1"

    idempotency_key = String(required=True, max_length=255)
    user_id = Identifier(required=True)
    charge_id = String(required=True, max_length=255)
    reconciliation_id = Identifier()
    flagged_at = DateTime(required=True)
