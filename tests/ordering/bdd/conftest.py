"""Shared BDD fixtures for checkout."""

import pytest
from storefront.ordering.cart.ledger import CartLedger
from storefront.ordering.checkout.orchestrator import CheckoutOrchestrator


@pytest.fixture()
def catalogue():
    """Items by title."""
    return {}


@pytest.fixture()
def ledger():
    return CartLedger()


@pytest.fixture()
def orchestrator():
    return CheckoutOrchestrator()


@pytest.fixture()
def outcomes():
    """Checkout outcomes in the order they happened."""
    return []
