"""Domain events for the ReconciliationRecord aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="ReconciliationRecord")
class ReconciliationOpened:
    """A charge went through but its order could not be saved."""

    __version__ = "v1"

    record_id = Identifier(required=True)
    charge_id = String(required=True, max_length=255)
    charged_amount = Integer(required=True)
    user_id = Identifier(required=True)
    idempotency_key = String(required=True, max_length=255)
    opened_at = DateTime(required=True)


@storefront.event(part_of="ReconciliationRecord")
class ReconciliationResolved:
    __version__ = "v1"

    record_id = Identifier(required=True)
    charge_id = String(required=True, max_length=255)
    resolved_by = Identifier(required=True)
    note = Text()
    resolved_at = DateTime(required=True)
