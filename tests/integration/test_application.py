"""End-to-end tests through the assembled application in ``src/app.py``."""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from protean import current_domain
from storefront.identity.user.user import User


@pytest.fixture
def app_client(gateway, mailer):
    from app import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def signed_up(app_client):
    response = app_client.post(
        "/auth/signup",
        json={"email": "Shopper@Example.com", "name": "Shopper", "password": "correct horse"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def socks(make_user, make_item):
    return make_item(make_user(email="seller@example.com"), title="Fuzzy socks", price=500)


class TestAccounts:
    def test_signup_starts_a_session(self, app_client, signed_up):
        assert signed_up["email"] == "shopper@example.com"
        assert signed_up["permissions"] == ["USER"]
        assert app_client.get("/auth/me").json()["id"] == signed_up["id"]

    def test_users_are_found_by_email(self, signed_up):
        user = current_domain.repository_for(User).find_by_email("shopper@example.com")
        assert str(user.id) == signed_up["id"]

    def test_signin_after_signout(self, app_client, signed_up):
        app_client.post("/auth/signout")
        app_client.cookies.clear()
        assert app_client.get("/auth/me").json() is None

        response = app_client.post("/auth/signin", json={"email": "shopper@example.com", "password": "correct horse"})
        assert response.status_code == 200
        assert app_client.get("/auth/me").json()["id"] == signed_up["id"]


class TestShopping:
    def test_add_to_cart_and_check_out(self, app_client, signed_up, socks, gateway):
        for _ in range(2):
            assert app_client.post("/cart/items", json={"item_id": str(socks.id)}).status_code == 200
        assert app_client.get("/cart").json()["total"] == 1000

        response = app_client.post("/orders", json={"token": "tok_visa", "idempotency_key": "key-1"})

        assert response.status_code == 201
        assert response.json()["total"] == 1000
        assert response.json()["user_id"] == signed_up["id"]
        assert len(gateway.successful_charges) == 1
        assert app_client.get("/cart").json() == {"lines": [], "total": 0}

    def test_anonymous_checkout_is_refused(self, app_client, gateway):
        response = app_client.post("/orders", json={"token": "tok_visa"})
        assert response.status_code == 401
        assert gateway.calls == []


class TestResponsiveness:
    def test_health_answers_while_a_checkout_waits_on_the_processor(self, app_client, signed_up, socks, gateway):
        app_client.post("/cart/items", json={"item_id": str(socks.id)})
        gateway.configure(delay_seconds=1.0)

        with ThreadPoolExecutor(max_workers=1) as pool:
            checkout = pool.submit(app_client.post, "/orders", json={"token": "tok_visa"})
            time.sleep(0.2)
            started = time.monotonic()
            health = app_client.get("/health")
            latency = time.monotonic() - started
            assert checkout.result(timeout=10).status_code == 201

        assert health.status_code == 200
        assert latency < 0.5
