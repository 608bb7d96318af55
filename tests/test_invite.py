from __future__ import annotations

from bidengine.app.common.models import Client
from bidengine.app.modules.invite.service import InviteState, invite_state


def _invited(store, **fields):
    record = {
        "client_name": "Acme",
        "email": "bids@acme.test",
        "invite_token": "acme",
        "invite_sent": "no",
        "invite_accepted": "no",
        "subscription_status": "pending",
    }
    record.update(fields)
    return store.add("Clients", **record)


def test_invite_state_transitions():
    assert invite_state(Client(id="c1")) is InviteState.NO_INVITE
    assert invite_state(Client(id="c1", invite_token="acme")) is InviteState.INVITED
    assert invite_state(Client(id="c1", invite_token="acme", invite_accepted=True)) is InviteState.ACCEPTED


def test_validate_known_token(client, store):
    client_id = _invited(store)

    body = client.get("/api/invite/acme").json()

    assert body == {
        "valid": True,
        "company_name": "Acme",
        "email": "bids@acme.test",
        "already_accepted": False,
        "client_id": client_id,
    }


def test_validate_unknown_token(client):
    assert client.get("/api/invite/nobody").json() == {"valid": False}


def test_validate_degrades_to_invalid_when_store_fails(client, store):
    _invited(store)
    store.fail = True

    response = client.get("/api/invite/acme")

    assert response.status_code == 200
    assert response.json() == {"valid": False}


def test_accept_links_user_and_second_accept_is_rejected(client, store):
    client_id = _invited(store, subscription_status="trialing")

    first = client.post("/api/invite/acme/accept", json={"clerk_user_id": "user_1"})

    assert first.status_code == 200
    assert first.json() == {"success": True, "client_id": client_id}
    record = store.find("Clients", client_id)
    assert record["invite_accepted"] is True
    assert record["Clerk_user_id"] == "user_1"
    assert record["subscription_status"] == "active"
    assert record["email"] == "bids@acme.test"

    second = client.post("/api/invite/acme/accept", json={"clerk_user_id": "user_2"})

    assert second.status_code == 400
    assert second.json() == {"error": "Invite already accepted"}
    assert store.find("Clients", client_id)["Clerk_user_id"] == "user_1"


def test_accept_requires_user_id(client, store):
    _invited(store)

    response = client.post("/api/invite/acme/accept", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing clerk_user_id"}


def test_accept_unknown_token_is_a_400(client):
    response = client.post("/api/invite/nobody/accept", json={"clerk_user_id": "user_1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid invite"}


def test_accepted_invite_is_found_by_signup_lookup(client, store):
    client_id = _invited(store)
    client.post("/api/invite/acme/accept", json={"clerk_user_id": "user_1"})

    response = client.post("/api/client/create", json={"clerkUserId": "user_1", "companyName": "Acme Ltd"})

    assert response.json() == {"clientId": client_id}
    assert len(store.records("Clients")) == 1
