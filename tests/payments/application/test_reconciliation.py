import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.exceptions import AuthError, ForbiddenError
from storefront.payments.reconciliation.record import ReconciliationRecord, ReconciliationStatus
from storefront.payments.reconciliation.resolution import (
    RecordReconciliation,
    ResolveReconciliation,
    find_by_charge,
    list_reconciliations,
)


@pytest.fixture
def record(make_user):
    owner = make_user()
    record_id = current_domain.process(
        RecordReconciliation(
            charge_id="ch_orphan",
            charged_amount=1300,
            currency="USD",
            user_id=str(owner.id),
            idempotency_key="key-1",
            reason="RuntimeError: database unavailable",
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(ReconciliationRecord).get(record_id)


@pytest.fixture
def admin(make_user):
    return make_user(permissions=["ADMIN"])


def _resolve(actor, record, note="Refunded"):
    return current_domain.process(
        ResolveReconciliation(actor_id=str(actor.id), record_id=str(record.id), note=note),
        asynchronous=False,
    )


class TestReconciliation:
    def test_records_are_found_by_charge(self, record):
        assert find_by_charge("ch_orphan").id == record.id
        assert find_by_charge("ch_other") is None

    def test_admin_lists_open_records(self, record, admin):
        assert [r.id for r in list_reconciliations(admin.to_identity(), status="Open")] == [record.id]
        assert list_reconciliations(admin.to_identity(), status="Resolved") == []

    def test_non_admin_cannot_list(self, record, make_user):
        with pytest.raises(ForbiddenError):
            list_reconciliations(make_user().to_identity())
        with pytest.raises(AuthError):
            list_reconciliations(None)

    def test_admin_resolves(self, record, admin):
        _resolve(admin, record)
        resolved = current_domain.repository_for(ReconciliationRecord).get(record.id)
        assert resolved.status == ReconciliationStatus.RESOLVED.value
        assert resolved.resolved_by == str(admin.id)
        assert resolved.resolution_note == "Refunded"

    def test_resolving_twice_is_rejected(self, record, admin):
        _resolve(admin, record)
        with pytest.raises(ValidationError):
            _resolve(admin, record)

    def test_non_admin_cannot_resolve(self, record, make_user):
        with pytest.raises(ForbiddenError):
            _resolve(make_user(), record)
        assert current_domain.repository_for(ReconciliationRecord).get(record.id).status == "Open"
