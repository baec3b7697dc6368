import os
import threading
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config environment before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    # Cheapest bcrypt cost so signups stay fast
    os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def _storefront_domain():
    from storefront.domain import init_storefront

    storefront = init_storefront()
    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_storefront_domain):
    from storefront.utils.db import drop_db, setup_db

    setup_db(_storefront_domain)

    yield

    drop_db(_storefront_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_storefront_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _storefront_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain
    from storefront.config import reset_settings
    from storefront.identity.mail import reset_mailer
    from storefront.payments.gateway import reset_gateway

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()

    reset_gateway()
    reset_mailer()
    reset_settings()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    """A fresh FakeGateway installed as the active payment gateway."""
    from storefront.payments.gateway import set_gateway
    from storefront.payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def mailer():
    from storefront.identity.mail import set_mailer
    from storefront.identity.mail.fake_adapter import FakeMailer

    fake = FakeMailer()
    set_mailer(fake)
    return fake


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_user():
    """Sign up a user and optionally replace their permissions."""
    from protean import current_domain
    from storefront.identity.user.registration import SignUp
    from storefront.identity.user.user import User

    counter = {"n": 0}

    def _make(email=None, name="Test Shopper", password="correct horse", permissions=None):
        counter["n"] += 1
        email = email or f"shopper{counter['n']}@example.com"
        user_id = current_domain.process(SignUp(email=email, name=name, password=password), asynchronous=False)
        repo = current_domain.repository_for(User)
        user = repo.get(user_id)
        if permissions is not None:
            user.update_permissions(permissions)
            repo.add(user)
            user = repo.get(user_id)
        return user

    return _make


@pytest.fixture()
def make_item():
    """List an item for sale, owned by ``owner``."""
    from protean import current_domain
    from storefront.catalogue.item.item import Item
    from storefront.catalogue.item.management import CreateItem

    def _make(owner, title="Fuzzy socks", price=500, description="Warm and fuzzy", image=None):
        item_id = current_domain.process(
            CreateItem(
                actor_id=str(owner.id),
                title=title,
                description=description,
                price=price,
                image=image,
            ),
            asynchronous=False,
        )
        return current_domain.repository_for(Item).get(item_id)

    return _make


@pytest.fixture()
def context_for(gateway):
    """Build a RequestContext carrying a real session token for ``user``."""
    from storefront.context import RequestContext
    from storefront.identity.tokens import issue_token

    def _context(user=None, token=None):
        if user is not None:
            token = issue_token(str(user.id))
        return RequestContext.from_token(token, gateway=gateway)

    return _context


@pytest.fixture()
def client(gateway, mailer):
    """A TestClient over every router, without the request middleware."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from storefront.api.errors import register_error_handlers
    from storefront.catalogue.api import item_router
    from storefront.identity.api import auth_router, users_router
    from storefront.ordering.api import cart_router, order_router
    from storefront.payments.api import gateway_router, reconciliation_router

    app = FastAPI()
    for router in (auth_router, users_router, item_router, cart_router, order_router, reconciliation_router, gateway_router):
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


class InMemoryRedis:
    """The slice of the redis client the lock families use: SET NX PX and EVAL of the release script."""

    def __init__(self):
        self.values = {}
        self.expiries = {}
        self.set_failures = 0
        self._guard = threading.Lock()

    def set(self, name, value, nx=False, px=None):
        from redis.exceptions import ConnectionError

        with self._guard:
            if self.set_failures:
                self.set_failures -= 1
                raise ConnectionError("connection reset")
            if nx and name in self.values:
                return None
            self.values[name] = value
            self.expiries[name] = px
            return True

    def eval(self, script, numkeys, key, token):
        with self._guard:
            if self.values.get(key) != token:
                return 0
            del self.values[key]
            self.expiries.pop(key, None)
            return 1


@pytest.fixture()
def shared_redis():
    """One Redis shared by every lock family built on it, standing in for several workers."""
    return InMemoryRedis()
