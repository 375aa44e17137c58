from slowapi import Limiter
from slowapi.util import get_remote_address

from homebase.main import app


def bootstrap(client, headers, **params):
    response = client.get("/api/v1/me/bootstrap", headers=headers, params=params)
    assert response.status_code == 200
    return response.json()


def invite(client, headers, family_id, email="bob@example.com"):
    response = client.post(f"/api/v1/families/{family_id}/invites", headers=headers, json={"email": email})
    assert response.status_code == 201
    return response.json()


def test_health_and_security_headers(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert client.get("/ready").json() == {"status": "ready"}


def test_requests_over_the_limit_are_throttled(client, monkeypatch):
    monkeypatch.setattr(app.state, "limiter", Limiter(key_func=get_remote_address, default_limits=["2/minute"]))

    codes = [client.get("/").status_code for _ in range(4)]

    assert codes == [200, 200, 429, 429]


def test_requests_without_valid_token_are_rejected(client):
    missing = client.get("/api/v1/me/bootstrap")
    assert missing.status_code == 401
    assert missing.json()["code"] == "UNAUTHORIZED"

    invalid = client.get("/api/v1/families", headers={"Authorization": "Bearer nope"})
    assert invalid.status_code == 401


def test_bootstrap_creates_dashboard_on_first_login(client, alice_headers):
    view = bootstrap(client, alice_headers)

    assert view["family"]["name"] == "My Family"
    assert view["plan"]["label"] == "Free"
    assert view["is_family_owner"] is True
    assert view["calendars"][0]["name"] == "Home Calendar"
    assert view["task_lists"][0]["name"] == "Family Tasks"

    again = bootstrap(client, alice_headers)
    assert again["family"]["id"] == view["family"]["id"]


def test_invite_flow(client, alice_headers, bob_headers):
    family_id = bootstrap(client, alice_headers)["family"]["id"]
    created = invite(client, alice_headers, family_id)
    assert created["invite_url"].endswith(f"/invite?token={created['token']}")

    preview = client.post("/api/v1/invites/preview", headers=bob_headers, json={"token": created["token"]})
    assert preview.status_code == 200
    assert preview.json()["already_used"] is False

    accepted = client.post("/api/v1/invites/accept", headers=bob_headers, json={"token": created["token"]})
    assert accepted.status_code == 200
    assert accepted.json() == {
        "status": "accepted",
        "family_id": family_id,
        "family_name": "My Family",
        "inviter_name": "alice@example.com",
    }

    again = client.post("/api/v1/invites/accept", headers=bob_headers, json={"token": created["token"]})
    assert again.status_code == 200
    assert again.json()["status"] == "already_used"

    members = client.get(f"/api/v1/families/{family_id}/members", headers=bob_headers)
    assert members.status_code == 200
    assert {m["role"] for m in members.json()["items"]} == {"owner", "member"}

    families = client.get("/api/v1/families", headers=bob_headers).json()
    assert [f["id"] for f in families] == [family_id]
    assert families[0]["is_default"] is True


def test_accept_errors(client, bob_headers):
    assert client.post("/api/v1/invites/accept", headers=bob_headers, json={}).status_code == 400
    assert client.post("/api/v1/invites/accept", headers=bob_headers, json={"token": "nope"}).status_code == 404
    assert client.post("/api/v1/invites/accept", json={"token": "nope"}).status_code == 401


def test_only_owners_manage_invites(client, alice_headers, bob_headers, carol_headers):
    family_id = bootstrap(client, alice_headers)["family"]["id"]
    first = invite(client, alice_headers, family_id)
    client.post("/api/v1/invites/accept", headers=bob_headers, json={"token": first["token"]})

    forbidden = client.post(f"/api/v1/families/{family_id}/invites", headers=bob_headers, json={"email": "x@example.com"})
    assert forbidden.status_code == 403

    listed = client.get(f"/api/v1/families/{family_id}/invites", headers=bob_headers)
    assert listed.status_code == 200
    assert listed.json()["items"][0]["invited_by"] == "alice@example.com"

    assert client.get(f"/api/v1/families/{family_id}/invites", headers=carol_headers).status_code == 403

    second = invite(client, alice_headers, family_id, "carol@example.com")
    assert client.delete(f"/api/v1/invites/{second['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/invites/{second['id']}", headers=alice_headers).status_code == 204
    assert client.delete(f"/api/v1/invites/{second['id']}", headers=alice_headers).status_code == 204


def test_invite_email_must_be_valid(client, alice_headers):
    family_id = bootstrap(client, alice_headers)["family"]["id"]
    response = client.post(f"/api/v1/families/{family_id}/invites", headers=alice_headers, json={"email": "nope"})
    assert response.status_code == 422


def test_unknown_family_is_not_found(client, alice_headers):
    assert client.get("/api/v1/families/missing/members", headers=alice_headers).status_code == 404


def test_lists_and_recurring_items(client, alice_headers, carol_headers):
    family_id = bootstrap(client, alice_headers)["family"]["id"]

    created = client.post(
        f"/api/v1/families/{family_id}/lists",
        headers=alice_headers,
        json={"name": "Groceries", "type": "shopping"},
    )
    assert created.status_code == 201
    assert created.json()["sort_order"] == 1
    list_id = created.json()["id"]

    lists = client.get(f"/api/v1/families/{family_id}/lists", headers=alice_headers).json()["items"]
    assert [l["name"] for l in lists] == ["Family Tasks", "Groceries"]

    item = client.post(
        f"/api/v1/lists/{list_id}/items",
        headers=alice_headers,
        json={"title": "Milk", "recurrence": "every_n_days", "recurrence_interval_days": 3,
              "due_at": "2026-03-01T09:00:00Z"},
    )
    assert item.status_code == 201
    item_id = item.json()["id"]

    assert client.post(f"/api/v1/items/{item_id}/complete", headers=carol_headers).status_code == 403

    completed = client.post(f"/api/v1/items/{item_id}/complete", headers=alice_headers)
    assert completed.status_code == 200
    body = completed.json()
    assert body["item"]["is_done"] is True
    assert body["successor"]["due_at"].startswith("2026-03-04T09:00:00")
    assert len(body["items"]) == 2

    repeat = client.post(f"/api/v1/items/{item_id}/complete", headers=alice_headers)
    assert repeat.json()["successor"] is None
    items = client.get(f"/api/v1/lists/{list_id}/items", headers=alice_headers).json()["items"]
    assert len(items) == 2


def test_item_validation(client, alice_headers):
    view = bootstrap(client, alice_headers)
    list_id = view["task_lists"][0]["id"]

    blank = client.post(f"/api/v1/lists/{list_id}/items", headers=alice_headers, json={"title": "   "})
    assert blank.status_code == 400
    assert blank.json()["detail"] == "Please enter a title."

    bad_interval = client.post(
        f"/api/v1/lists/{list_id}/items",
        headers=alice_headers,
        json={"title": "Bins", "recurrence": "every_n_days", "recurrence_interval_days": 0},
    )
    assert bad_interval.status_code == 422


def test_deletes_are_owner_only(client, alice_headers, bob_headers):
    view = bootstrap(client, alice_headers)
    family_id = view["family"]["id"]
    list_id = view["task_lists"][0]["id"]
    accepted = invite(client, alice_headers, family_id)
    client.post("/api/v1/invites/accept", headers=bob_headers, json={"token": accepted["token"]})
    item_id = client.post(f"/api/v1/lists/{list_id}/items", headers=bob_headers, json={"title": "Bins"}).json()["id"]

    assert client.delete(f"/api/v1/items/{item_id}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/items/{item_id}", headers=alice_headers).status_code == 204
    assert client.delete(f"/api/v1/lists/{list_id}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/v1/lists/{list_id}", headers=alice_headers).status_code == 204
    assert client.get(f"/api/v1/lists/{list_id}/items", headers=alice_headers).status_code == 404


def test_profile_and_me(client, alice_headers):
    updated = client.patch("/api/v1/me/profile", headers=alice_headers, json={"full_name": " Alice "})
    assert updated.status_code == 200
    assert updated.json()["full_name"] == "Alice"

    me = client.get("/api/v1/auth/me", headers=alice_headers).json()
    assert me["id"] == "user-alice"
    assert me["profile"]["full_name"] == "Alice"
    assert me["families"] == []
