"""Opening and resolving reconciliation records."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.exceptions import NotFoundError
from storefront.identity.access import Identity, authorize
from storefront.identity.user.user import User
from storefront.payments.reconciliation.record import ReconciliationRecord
from storefront.utils.logging import get_audit_logger

audit_logger = get_audit_logger()


@storefront.command(part_of="ReconciliationRecord")
class RecordReconciliation:
    charge_id = String(required=True, max_length=255)
    charged_amount = Integer(required=True, min_value=0)
    currency = String(required=True, max_length=3)
    user_id = Identifier(required=True)
    idempotency_key = String(required=True, max_length=255)
    reason = Text(required=True)
    lines = Text()


@storefront.command(part_of="ReconciliationRecord")
class ResolveReconciliation:
    actor_id = Identifier(required=True)
    record_id = Identifier(required=True)
    note = Text()


@storefront.command_handler(part_of=ReconciliationRecord)
class ReconciliationHandler:
    @handle(RecordReconciliation)
    def record(self, command):
        record = ReconciliationRecord.open(
            charge_id=command.charge_id,
            charged_amount=command.charged_amount,
            currency=command.currency,
            user_id=command.user_id,
            idempotency_key=command.idempotency_key,
            reason=command.reason,
            lines=command.lines,
        )
        current_domain.repository_for(ReconciliationRecord).add(record)
        return str(record.id)

    @handle(ResolveReconciliation)
    def resolve(self, command):
        actor = current_domain.repository_for(User).get_or_not_found(command.actor_id)
        authorize("reconciliation.manage", actor.to_identity())

        repo = current_domain.repository_for(ReconciliationRecord)
        try:
            record = repo.get(command.record_id)
        except ObjectNotFoundError:
            raise NotFoundError(f"No reconciliation record found for id {command.record_id}") from None

        record.resolve(resolved_by=str(actor.id), note=command.note)
        repo.add(record)
        audit_logger.warning(
            "Reconciliation resolved",
            record_id=str(record.id),
            charge_id=record.charge_id,
            resolved_by=str(actor.id),
        )
        return str(record.id)


def list_reconciliations(identity: Identity | None, status: str | None = None) -> list[ReconciliationRecord]:
    authorize("reconciliation.manage", identity)
    query = current_domain.repository_for(ReconciliationRecord)._dao.query
    if status:
        query = query.filter(status=status)
    records = query.all().items
    return sorted(records, key=lambda record: record.opened_at, reverse=True)


def find_by_charge(charge_id: str) -> ReconciliationRecord | None:
    records = current_domain.repository_for(ReconciliationRecord)._dao.query.filter(charge_id=charge_id).all().items
    return records[0] if records else None
