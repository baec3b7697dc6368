"""Storefront domain: accounts, catalogue, cart and checkout.

A single Protean domain so that checkout reads users, items, cart lines and
the idempotency ledger from one store, and can persist an order together with
the cart lines it consumes in one unit of work.

Protean only discovers elements one folder below this module, so the modules
that declare them are listed here and imported by ``init_storefront``.
"""

import importlib

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)

ELEMENT_MODULES = (
    "storefront.identity.user.email",
    "storefront.identity.user.events",
    "storefront.identity.user.user",
    "storefront.identity.user.repository",
    "storefront.identity.user.registration",
    "storefront.identity.user.password_reset",
    "storefront.identity.user.permissions",
    "storefront.catalogue.item.events",
    "storefront.catalogue.item.item",
    "storefront.catalogue.item.management",
    "storefront.ordering.cart.events",
    "storefront.ordering.cart.cart_item",
    "storefront.ordering.cart.items",
    "storefront.ordering.checkout.events",
    "storefront.ordering.checkout.attempt",
    "storefront.ordering.order.events",
    "storefront.ordering.order.order",
    "storefront.ordering.order.placement",
    "storefront.payments.reconciliation.events",
    "storefront.payments.reconciliation.record",
    "storefront.payments.reconciliation.resolution",
)

_initialized = False


def init_storefront() -> Domain:
    """Register every element module with the domain, then initialize it once."""
    global _initialized
    if not _initialized:
        for module in ELEMENT_MODULES:
            importlib.import_module(module)
        storefront.init()
        _initialized = True
        logger.debug("Storefront domain initialized", elements=len(ELEMENT_MODULES))
    return storefront
