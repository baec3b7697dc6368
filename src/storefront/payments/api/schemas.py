"""Pydantic request/response schemas for the payments API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ReconciliationResponse(BaseModel):
    id: str
    charge_id: str
    charged_amount: int
    currency: str
    user_id: str
    idempotency_key: str
    reason: str
    status: str
    resolution_note: str | None = None
    resolved_by: str | None = None
    opened_at: datetime | None = None
    resolved_at: datetime | None = None


class ResolveReconciliationRequest(BaseModel):
    note: str | None = Field(default=None, max_length=2000)


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_kind: Literal["declined", "network", "invalid_source"] = "declined"
    failure_reason: str = "Your card was declined"
    delay_seconds: float = Field(default=0.0, ge=0)
    charged_amount: int | None = Field(default=None, ge=0)


class StatusResponse(BaseModel):
    status: str = "ok"
