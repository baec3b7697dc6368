import pytest
from storefront.ordering.cart.ledger import CartLedger


@pytest.fixture
def ledger():
    return CartLedger()


@pytest.fixture
def seller(make_user):
    return make_user(email="seller@example.com", permissions=["USER", "ITEMCREATE"])


@pytest.fixture
def socks(seller, make_item):
    return make_item(seller, title="Fuzzy socks", price=500)


@pytest.fixture
def mug(seller, make_item):
    return make_item(seller, title="Mug", price=300, description="Holds coffee")


@pytest.fixture
def shopper(make_user):
    return make_user(email="shopper@example.com")
