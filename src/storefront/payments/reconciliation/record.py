"""ReconciliationRecord aggregate.

Written when money was taken but no order exists for it, so that someone can
refund the charge or recreate the order by hand.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.payments.reconciliation.events import ReconciliationOpened, ReconciliationResolved


class ReconciliationStatus(Enum):
    OPEN = "Open"
    RESOLVED = "Resolved"


@storefront.aggregate
class ReconciliationRecord:
    charge_id = String(required=True, max_length=255)
    charged_amount = Integer(required=True, min_value=0)
    currency = String(required=True, max_length=3)
    user_id = Identifier(required=True)
    idempotency_key = String(required=True, max_length=255)
    reason = Text(required=True)
    lines = Text()  # JSON snapshot of the cart that was charged
    status = String(choices=ReconciliationStatus, default=ReconciliationStatus.OPEN.value)
    resolution_note = Text()
    resolved_by = Identifier()
    opened_at = DateTime()
    resolved_at = DateTime()

    @classmethod
    def open(cls, charge_id, charged_amount, currency, user_id, idempotency_key, reason, lines=None):
        now = datetime.now(UTC)
        record = cls(
            charge_id=charge_id,
            charged_amount=charged_amount,
            currency=currency,
            user_id=user_id,
            idempotency_key=idempotency_key,
            reason=reason,
            lines=lines,
            status=ReconciliationStatus.OPEN.value,
            opened_at=now,
        )
        record.raise_(
            ReconciliationOpened(
                record_id=str(record.id),
                charge_id=charge_id,
                charged_amount=charged_amount,
                user_id=str(user_id),
                idempotency_key=idempotency_key,
                opened_at=now,
            )
        )
        return record

    def resolve(self, resolved_by, note=None):
        if self.status == ReconciliationStatus.RESOLVED.value:
            raise ValidationError({"status": ["This record is already resolved"]})

        now = datetime.now(UTC)
        self.status = ReconciliationStatus.RESOLVED.value
        self.resolved_by = resolved_by
        self.resolution_note = note
        self.resolved_at = now
        self.raise_(
            ReconciliationResolved(
                record_id=str(self.id),
                charge_id=self.charge_id,
                resolved_by=str(resolved_by),
                note=note,
                resolved_at=now,
            )
        )
