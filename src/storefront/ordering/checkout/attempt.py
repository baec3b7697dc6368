"""CheckoutAttempt aggregate: the idempotency ledger for checkout.

One record per idempotency key. It remembers whether the key's checkout is
still running, was charged, produced an order, failed before any money
moved, or needs manual reconciliation. ``tries`` counts restarts after a
failure and is part of every payment idempotency key, so a resumed attempt
reuses its payment key while a restarted one gets a new one.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.ordering.checkout.events import (
    CheckoutCharged,
    CheckoutCompleted,
    CheckoutFailed,
    CheckoutNeedsReconciliation,
)


class AttemptStatus(Enum):
    STARTED = "Started"
    CHARGED = "Charged"
    COMPLETED = "Completed"
    FAILED = "Failed"
    RECONCILIATION_REQUIRED = "ReconciliationRequired"


_VALID_TRANSITIONS = {
    AttemptStatus.STARTED: {AttemptStatus.CHARGED, AttemptStatus.FAILED},
    AttemptStatus.CHARGED: {AttemptStatus.COMPLETED, AttemptStatus.RECONCILIATION_REQUIRED},
    AttemptStatus.FAILED: {AttemptStatus.STARTED},
    AttemptStatus.COMPLETED: set(),
    AttemptStatus.RECONCILIATION_REQUIRED: set(),
}


@storefront.aggregate
class CheckoutAttempt:
    idempotency_key = String(identifier=True, required=True, max_length=255)
    user_id = Identifier(required=True)
    status = String(choices=AttemptStatus, default=AttemptStatus.STARTED.value)
    tries = Integer(default=1, min_value=1)
    amount = Integer(min_value=0)
    currency = String(max_length=3)
    charge_id = String(max_length=255)
    charged_amount = Integer(min_value=0)
    order_id = Identifier()
    reconciliation_id = Identifier()
    failure_kind = String(max_length=50)
    failure_reason = Text()
    started_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def begin(cls, idempotency_key, user_id, amount, currency):
        now = datetime.now(UTC)
        return cls(
            idempotency_key=idempotency_key,
            user_id=user_id,
            status=AttemptStatus.STARTED.value,
            tries=1,
            amount=amount,
            currency=currency,
            started_at=now,
            updated_at=now,
        )

    def _assert_can_transition(self, target):
        current = AttemptStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot move checkout from {current.value} to {target.value}"]})

    def _set_status(self, target):
        self._assert_can_transition(target)
        self.status = target.value
        self.updated_at = datetime.now(UTC)

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def payment_key(self, call_number) -> str:
        return f"{self.idempotency_key}-{self.tries}-{call_number}"

    def restart(self, amount, currency):
        """Try again after a failure; later payment calls use new keys."""
        self._set_status(AttemptStatus.STARTED)
        self.tries += 1
        self.amount = amount
        self.currency = currency
        self.failure_kind = None
        self.failure_reason = None

    def resume(self, amount, currency):
        """Pick up an attempt that never recorded an outcome.

        Payment keys are unchanged, so the processor returns any charge it
        already made instead of charging again.
        """
        if AttemptStatus(self.status) != AttemptStatus.STARTED:
            raise ValidationError({"status": ["Only a started checkout can be resumed"]})
        self.amount = amount
        self.currency = currency
        self.updated_at = datetime.now(UTC)

    def mark_charged(self, charge_id, charged_amount):
        self._set_status(AttemptStatus.CHARGED)
        self.charge_id = charge_id
        self.charged_amount = charged_amount
        self.raise_(
            CheckoutCharged(
                idempotency_key=self.idempotency_key,
                user_id=str(self.user_id),
                charge_id=charge_id,
                charged_amount=charged_amount,
                charged_at=self.updated_at,
            )
        )

    def mark_completed(self, order_id):
        self._set_status(AttemptStatus.COMPLETED)
        self.order_id = order_id
        self.raise_(
            CheckoutCompleted(
                idempotency_key=self.idempotency_key,
                user_id=str(self.user_id),
                order_id=str(order_id),
                completed_at=self.updated_at,
            )
        )

    def mark_failed(self, failure_kind, reason=None):
        self._set_status(AttemptStatus.FAILED)
        self.failure_kind = failure_kind
        self.failure_reason = reason
        self.raise_(
            CheckoutFailed(
                idempotency_key=self.idempotency_key,
                user_id=str(self.user_id),
                failure_kind=failure_kind,
                reason=reason,
                failed_at=self.updated_at,
            )
        )

    def mark_reconciliation_required(self, reconciliation_id=None, reason=None):
        self._set_status(AttemptStatus.RECONCILIATION_REQUIRED)
        self.reconciliation_id = reconciliation_id
        self.failure_kind = "reconciliation_required"
        self.failure_reason = reason
        self.raise_(
            CheckoutNeedsReconciliation(
                idempotency_key=self.idempotency_key,
                user_id=str(self.user_id),
                charge_id=self.charge_id,
                reconciliation_id=reconciliation_id,
                flagged_at=self.updated_at,
            )
        )
