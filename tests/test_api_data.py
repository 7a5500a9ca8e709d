"""API tests for per-app data records."""

import pytest

from conftest import API


@pytest.fixture
def app_id(client, alice_headers):
    response = client.post(f"{API}/apps", json={"name": "Inventory"}, headers=alice_headers)
    return response.json()["app"]["id"]


def add_record(client, headers, app_id, data, collection="items"):
    response = client.post(f"{API}/data/{app_id}", json={"collection": collection, "data": data}, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


def test_create_record(client, alice_headers, app_id):
    response = client.post(
        f"{API}/data/{app_id}",
        json={"collection": "items", "data": {"sku": "A-1", "qty": 3}},
        headers=alice_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Data created successfully"
    assert body["data"]["appId"] == app_id
    assert body["data"]["data"] == {"sku": "A-1", "qty": 3}
    assert body["data"]["metadata"]["createdBy"] == "Alice"


@pytest.mark.parametrize("payload", [{"collection": "items"}, {"data": {"a": 1}}, {"collection": "", "data": 1}])
def test_create_record_validation(client, alice_headers, app_id, payload):
    assert client.post(f"{API}/data/{app_id}", json=payload, headers=alice_headers).status_code == 422


def test_create_record_requires_auth_and_ownership(client, bob_headers, app_id):
    payload = {"collection": "items", "data": {}}
    assert client.post(f"{API}/data/{app_id}", json=payload).status_code == 401
    assert client.post(f"{API}/data/{app_id}", json=payload, headers=bob_headers).status_code == 404


def test_list_records_paginates_newest_first(client, alice_headers, app_id):
    for i in range(3):
        add_record(client, alice_headers, app_id, {"n": i})
    add_record(client, alice_headers, app_id, {"n": "other"}, collection="notes")

    response = client.get(f"{API}/data/{app_id}", params={"collection": "items", "limit": 2}, headers=alice_headers)

    body = response.json()
    assert [r["data"]["n"] for r in body["data"]] == [2, 1]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 10_000}])
def test_list_records_query_bounds(client, alice_headers, app_id, params):
    assert client.get(f"{API}/data/{app_id}", params=params, headers=alice_headers).status_code == 422


def test_private_app_records_hidden_from_others(client, alice_headers, bob_headers, app_id):
    add_record(client, alice_headers, app_id, {"n": 1})

    anonymous = client.get(f"{API}/data/{app_id}")
    assert anonymous.status_code == 403
    assert anonymous.json()["detail"]["error"] == "access_denied"
    assert client.get(f"{API}/data/{app_id}", headers=bob_headers).status_code == 403

    client.patch(f"{API}/apps/{app_id}/visibility", json={"isPublic": True}, headers=alice_headers)
    public = client.get(f"{API}/data/{app_id}")
    assert public.status_code == 200
    assert len(public.json()["data"]) == 1


def test_list_records_unknown_app(client, alice_headers):
    response = client.get(f"{API}/data/nope", headers=alice_headers)
    assert response.status_code == 404


def test_update_and_delete_record(client, alice_headers, app_id):
    record = add_record(client, alice_headers, app_id, {"qty": 1})

    updated = client.put(f"{API}/data/{app_id}/{record['id']}", json={"data": {"qty": 5}}, headers=alice_headers)
    assert updated.status_code == 200
    assert updated.json()["message"] == "Data updated successfully"
    assert updated.json()["data"]["data"] == {"qty": 5}
    assert updated.json()["data"]["metadata"]["version"] == 2

    deleted = client.delete(f"{API}/data/{app_id}/{record['id']}", headers=alice_headers)
    assert deleted.json() == {"message": "Data deleted successfully"}

    missing = client.delete(f"{API}/data/{app_id}/{record['id']}", headers=alice_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "record_not_found"


def test_other_users_cannot_modify_records(client, alice_headers, bob_headers, app_id):
    record = add_record(client, alice_headers, app_id, {"qty": 1})

    assert client.put(
        f"{API}/data/{app_id}/{record['id']}", json={"data": {"qty": 0}}, headers=bob_headers
    ).status_code == 404
    assert client.delete(f"{API}/data/{app_id}/{record['id']}", headers=bob_headers).status_code == 404
