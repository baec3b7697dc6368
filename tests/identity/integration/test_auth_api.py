"""Integration tests for the auth and users endpoints."""

from protean import current_domain
from storefront.identity.user.user import User


def _signup(client, email="api@example.com", password="correct horse", name="Api Shopper"):
    return client.post("/auth/signup", json={"email": email, "name": name, "password": password})


class TestSignUpEndpoint:
    def test_signup_sets_a_session_cookie(self, client):
        response = _signup(client)

        assert response.status_code == 201
        assert response.json()["permissions"] == ["USER"]
        assert "token" in response.cookies
        assert "httponly" in response.headers["set-cookie"].lower()

        me = client.get("/auth/me")
        assert me.json()["email"] == "api@example.com"

    def test_duplicate_email(self, client):
        _signup(client)
        response = _signup(client, email="API@example.com")
        assert response.status_code == 400

    def test_invalid_email(self, client):
        assert _signup(client, email="not-an-email").status_code == 400


class TestSessionEndpoints:
    def test_signin_and_signout(self, client):
        _signup(client)
        client.cookies.clear()
        assert client.get("/auth/me").json() is None

        response = client.post("/auth/signin", json={"email": "api@example.com", "password": "correct horse"})
        assert response.status_code == 200
        assert client.get("/auth/me").json()["name"] == "Api Shopper"

        response = client.post("/auth/signout")
        assert response.json() == {"message": "Goodbye!"}
        client.cookies.clear()
        assert client.get("/auth/me").json() is None

    def test_wrong_password(self, client):
        _signup(client)
        client.cookies.clear()
        response = client.post("/auth/signin", json={"email": "api@example.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "auth_required", "message": "Invalid email or password"}

    def test_garbage_cookie_reads_as_signed_out(self, client):
        client.cookies.set("token", "garbage")
        assert client.get("/auth/me").json() is None


class TestPasswordResetEndpoints:
    def test_reset_flow(self, client, mailer):
        _signup(client)
        client.cookies.clear()

        response = client.post("/auth/request-reset", json={"email": "api@example.com"})
        assert response.status_code == 200
        assert len(mailer.sent_emails) == 1

        token = current_domain.repository_for(User).find_by_email("api@example.com").reset_token
        response = client.post(
            "/auth/reset-password",
            json={"reset_token": token, "password": "new secret", "confirm_password": "new secret"},
        )
        assert response.status_code == 200
        assert client.get("/auth/me").json()["email"] == "api@example.com"

        client.cookies.clear()
        response = client.post("/auth/signin", json={"email": "api@example.com", "password": "new secret"})
        assert response.status_code == 200

    def test_unknown_email(self, client):
        assert client.post("/auth/request-reset", json={"email": "ghost@example.com"}).status_code == 404

    def test_bad_token(self, client):
        response = client.post(
            "/auth/reset-password",
            json={"reset_token": "nope", "password": "a", "confirm_password": "a"},
        )
        assert response.status_code == 400


class TestUsersEndpoints:
    def test_admin_lists_and_updates_permissions(self, client, make_user):
        admin = make_user(email="admin@example.com", password="admin pass", permissions=["ADMIN"])
        target = make_user(email="target@example.com")
        client.post("/auth/signin", json={"email": admin.email, "password": "admin pass"})

        assert {user["email"] for user in client.get("/users").json()} == {admin.email, target.email}

        response = client.put(f"/users/{target.id}/permissions", json={"permissions": ["USER", "ITEMCREATE"]})
        assert response.status_code == 200
        assert response.json()["id"] == str(target.id)
        assert response.json()["permissions"] == ["ITEMCREATE", "USER"]

    def test_plain_user_is_forbidden(self, client, make_user):
        target = make_user()
        _signup(client)
        assert client.get("/users").status_code == 403
        assert client.put(f"/users/{target.id}/permissions", json={"permissions": ["ADMIN"]}).status_code == 403

    def test_anonymous_must_sign_in(self, client):
        assert client.get("/users").status_code == 401
