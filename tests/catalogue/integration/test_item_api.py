"""Integration tests for the items endpoints."""


def _sign_in(client, user, password="correct horse"):
    client.post("/auth/signin", json={"email": user.email, "password": password})


def _create(client, title="Lamp", price=2500):
    return client.post("/items", json={"title": title, "description": "Bright", "price": price})


class TestItemEndpoints:
    def test_create_read_update_delete(self, client, make_user):
        owner = make_user()
        _sign_in(client, owner)

        response = _create(client)
        assert response.status_code == 201
        item_id = response.json()["item_id"]

        assert client.get(f"/items/{item_id}").json()["user_id"] == str(owner.id)
        assert [item["id"] for item in client.get("/items").json()] == [item_id]

        response = client.put(f"/items/{item_id}", json={"price": 1999})
        assert response.json()["price"] == 1999
        assert response.json()["title"] == "Lamp"

        assert client.delete(f"/items/{item_id}").status_code == 200
        assert client.get(f"/items/{item_id}").status_code == 404

    def test_anonymous_cannot_create(self, client):
        assert _create(client).status_code == 401

    def test_negative_price_is_rejected(self, client, make_user):
        _sign_in(client, make_user())
        assert _create(client, price=-5).status_code == 422

    def test_stranger_cannot_edit(self, client, make_user, make_item):
        item = make_item(make_user())
        _sign_in(client, make_user())
        assert client.put(f"/items/{item.id}", json={"price": 1}).status_code == 403
        assert client.delete(f"/items/{item.id}").status_code == 403
        assert client.get(f"/items/{item.id}").json()["price"] == 500
