"""Payments API package."""

from storefront.payments.api.routes import gateway_router, reconciliation_router

__all__ = ["gateway_router", "reconciliation_router"]
