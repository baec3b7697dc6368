"""FastAPI endpoints for reconciliation records and fake gateway control."""

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from storefront.api.dependencies import current_identity, request_context
from storefront.config import get_settings
from storefront.context import RequestContext
from storefront.payments.api.schemas import (
    ConfigureGatewayRequest,
    ReconciliationResponse,
    ResolveReconciliationRequest,
    StatusResponse,
)
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.reconciliation.record import ReconciliationRecord
from storefront.payments.reconciliation.resolution import ResolveReconciliation, list_reconciliations


def reconciliation_response(record: ReconciliationRecord) -> ReconciliationResponse:
    return ReconciliationResponse(
        id=str(record.id),
        charge_id=record.charge_id,
        charged_amount=record.charged_amount,
        currency=record.currency,
        user_id=str(record.user_id),
        idempotency_key=record.idempotency_key,
        reason=record.reason,
        status=record.status,
        resolution_note=record.resolution_note,
        resolved_by=str(record.resolved_by) if record.resolved_by else None,
        opened_at=record.opened_at,
        resolved_at=record.resolved_at,
    )


# ---------------------------------------------------------------------------
# Reconciliation Router
# ---------------------------------------------------------------------------
reconciliation_router = APIRouter(prefix="/reconciliations", tags=["reconciliations"])


@reconciliation_router.get("", response_model=list[ReconciliationResponse])
async def get_reconciliations(
    status: str | None = None,
    context: RequestContext = Depends(request_context),
) -> list[ReconciliationResponse]:
    records = list_reconciliations(current_identity(context), status=status)
    return [reconciliation_response(record) for record in records]


@reconciliation_router.put("/{record_id}/resolve", response_model=ReconciliationResponse)
async def resolve_reconciliation(
    record_id: str,
    body: ResolveReconciliationRequest,
    context: RequestContext = Depends(request_context),
) -> ReconciliationResponse:
    command = ResolveReconciliation(
        actor_id=current_identity(context).user_id,
        record_id=record_id,
        note=body.note,
    )
    current_domain.process(command, asynchronous=False)
    return reconciliation_response(current_domain.repository_for(ReconciliationRecord).get(record_id))


# ---------------------------------------------------------------------------
# Gateway Router (development only)
# ---------------------------------------------------------------------------
gateway_router = APIRouter(prefix="/payments/gateway", tags=["payments"])


@gateway_router.post("/configure", response_model=StatusResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> StatusResponse:
    gateway = get_gateway()
    if get_settings().is_production or not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=404, detail="Not found")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_kind=body.failure_kind,
        failure_reason=body.failure_reason,
        delay_seconds=body.delay_seconds,
        charged_amount=body.charged_amount,
    )
    return StatusResponse()
