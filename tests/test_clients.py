from __future__ import annotations


def test_create_client_then_report_existing_on_second_call(client, store):
    first = client.post("/api/clients", json={"company_name": "Acme & Co.", "email": "bids@acme.test"})

    assert first.status_code == 200
    created = first.json()
    assert "existed" not in created
    assert created["client"]["invite_token"] == "acmeco"
    assert created["client"]["company_name"] == "Acme & Co."
    assert created["client"]["invite_accepted"] is False

    second = client.post("/api/clients", json={"company_name": "Acme & Co."})

    assert second.status_code == 200
    assert second.json()["existed"] is True
    assert second.json()["client"]["_id"] == created["client"]["_id"]
    assert len(store.records("Clients")) == 1


def test_create_client_writes_invite_flags_as_strings(client, store):
    client.post("/api/clients", json={"company_name": "Acme"})

    record = store.records("Clients")[0]
    assert record["invite_sent"] == "no"
    assert record["invite_accepted"] == "no"
    assert record["subscription_status"] == "pending"


def test_create_client_requires_company_name(client):
    response = client.post("/api/clients", json={"email": "someone@acme.test"})

    assert response.status_code == 400
    assert response.json() == {"error": "Company name is required"}


def test_create_client_fails_with_500_when_store_is_down(client, store):
    store.fail = True

    response = client.post("/api/clients", json={"company_name": "Acme"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create client"}


def test_list_clients_newest_first(client, store):
    store.add("Clients", client_name="Old", **{"Created Date": "2023-01-01"})
    store.add("Clients", client_name="New", **{"Created Date": "2024-01-01"})

    body = client.get("/api/clients").json()

    assert [c["company_name"] for c in body["clients"]] == ["New", "Old"]


def test_list_clients_does_not_degrade(client, store):
    store.fail = True

    response = client.get("/api/clients")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch clients"}


def test_get_client_404(client):
    response = client.get("/api/clients/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Client not found"}


def test_malformed_body_is_a_400(client):
    response = client.post("/api/clients", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()


def test_missing_record_store_configuration_is_a_500(app, settings):
    from bidengine.app.core import dependencies
    from fastapi.testclient import TestClient

    del app.dependency_overrides[dependencies.get_record_store]
    settings.record_store_api_key = None

    response = TestClient(app).get("/api/clients")

    assert response.status_code == 500
    assert response.json() == {"error": "BE_RECORD_STORE_API_KEY is not configured"}


def test_health_is_unprefixed(client):
    assert client.get("/health").json() == {"status": "ok"}
