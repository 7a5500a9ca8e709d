"""API tests for app documents."""

import pytest

from conftest import API


def create_app(client, headers, name="Team Tasks", **fields):
    response = client.post(f"{API}/apps", json={"name": name, **fields}, headers=headers)
    assert response.status_code == 201
    return response.json()["app"]


def test_create_app(client, alice_headers):
    response = client.post(
        f"{API}/apps",
        json={"name": "Team Tasks", "type": "todo", "description": "  shared list  "},
        headers=alice_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "App created successfully"
    app = body["app"]
    assert app["userId"] == "user-alice"
    assert app["slug"].startswith("team-tasks-")
    assert app["description"] == "shared list"
    assert app["version"] == 1
    assert app["isPublic"] is False
    assert app["layout"]["gridSize"] == 10
    assert "X-Correlation-ID" in response.headers


@pytest.mark.parametrize("payload", [{}, {"name": "   "}, {"name": "x", "type": "spaceship"}])
def test_create_app_validation(client, alice_headers, payload):
    response = client.post(f"{API}/apps", json=payload, headers=alice_headers)
    assert response.status_code == 422


def test_list_apps_only_returns_own(client, alice_headers, bob_headers):
    create_app(client, alice_headers, "Alpha")
    create_app(client, bob_headers, "Bravo")

    response = client.get(f"{API}/apps", headers=alice_headers)

    assert response.status_code == 200
    assert [a["name"] for a in response.json()["apps"]] == ["Alpha"]


def test_get_app_of_other_user_is_404(client, alice_headers, bob_headers):
    app = create_app(client, alice_headers)

    response = client.get(f"{API}/apps/{app['id']}", headers=bob_headers)

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "app_not_found"


def test_update_app_layout(client, alice_headers):
    app = create_app(client, alice_headers)
    layout = {
        "components": [{
            "id": "text-1", "type": "text",
            "position": {"x": 10, "y": 10, "width": 200, "height": 100},
            "props": {"content": "Hello"},
        }],
        "gridSize": 20,
    }

    response = client.put(
        f"{API}/apps/{app['id']}",
        json={"layout": layout, "id": "hijack", "version": 42},
        headers=alice_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "App updated successfully"
    assert body["app"]["id"] == app["id"]
    assert body["app"]["version"] == 2
    assert body["app"]["layout"] == layout

    fetched = client.get(f"{API}/apps/{app['id']}", headers=alice_headers).json()["app"]
    assert fetched["layout"] == layout


@pytest.mark.parametrize("layout", [
    {"components": [{"id": "a", "type": "widgetX"}]},
    {"components": [], "gridSize": 0},
    {"components": [{"id": "a", "type": "text", "position": {"x": 1.5, "y": 0, "width": 200, "height": 100}}]},
    {"components": [{"id": "a", "type": "text", "position": {"x": -10, "y": 0, "width": 200, "height": 100}}]},
])
def test_layout_the_editor_cannot_open_is_rejected(client, alice_headers, layout):
    app = create_app(client, alice_headers)

    response = client.put(f"{API}/apps/{app['id']}", json={"layout": layout}, headers=alice_headers)

    assert response.status_code == 422
    stored = client.get(f"{API}/apps/{app['id']}", headers=alice_headers).json()["app"]
    assert stored["version"] == 1
    assert stored["layout"]["components"] == []


def test_create_with_invalid_layout_is_rejected(client, alice_headers):
    response = client.post(
        f"{API}/apps",
        json={"name": "Broken", "layout": {"components": [{"id": "a", "type": "widgetX"}], "gridSize": 0}},
        headers=alice_headers,
    )

    assert response.status_code == 422
    assert client.get(f"{API}/apps", headers=alice_headers).json()["apps"] == []


def test_update_with_stale_version_is_409(client, alice_headers):
    app = create_app(client, alice_headers)
    client.put(f"{API}/apps/{app['id']}", json={"name": "v2", "expectedVersion": 1}, headers=alice_headers)

    response = client.put(
        f"{API}/apps/{app['id']}", json={"name": "stale", "expectedVersion": 1}, headers=alice_headers
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "version_conflict"
    assert detail["currentVersion"] == 2


def test_update_other_users_app_is_404(client, alice_headers, bob_headers):
    app = create_app(client, alice_headers)
    response = client.put(f"{API}/apps/{app['id']}", json={"name": "mine"}, headers=bob_headers)
    assert response.status_code == 404


def test_publish_and_open_public_app(client, alice_headers):
    app = create_app(client, alice_headers)

    assert client.get(f"{API}/apps/{app['slug']}/public").status_code == 404

    response = client.patch(
        f"{API}/apps/{app['id']}/visibility", json={"isPublic": True}, headers=alice_headers
    )
    assert response.json()["message"] == "App published successfully"

    public = client.get(f"{API}/apps/{app['slug']}/public")
    assert public.status_code == 200
    assert public.json()["app"]["id"] == app["id"]
    assert public.json()["app"]["analytics"]["views"] == 1

    response = client.patch(
        f"{API}/apps/{app['id']}/visibility", json={"isPublic": False}, headers=alice_headers
    )
    assert response.json()["message"] == "App unpublished successfully"
    assert client.get(f"{API}/apps/{app['slug']}/public").status_code == 404


def test_public_app_without_analytics_counts_nothing(client, alice_headers):
    app = create_app(client, alice_headers, settings={"collectAnalytics": False})
    client.patch(f"{API}/apps/{app['id']}/visibility", json={"isPublic": True}, headers=alice_headers)

    public = client.get(f"{API}/apps/{app['slug']}/public").json()["app"]

    assert public["analytics"]["views"] == 0


def test_delete_app_removes_records(client, alice_headers):
    app = create_app(client, alice_headers)
    client.post(f"{API}/data/{app['id']}", json={"collection": "tasks", "data": {"a": 1}}, headers=alice_headers)

    response = client.delete(f"{API}/apps/{app['id']}", headers=alice_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "App deleted successfully"}
    assert client.get(f"{API}/apps/{app['id']}", headers=alice_headers).status_code == 404
    assert client.get(f"{API}/data/{app['id']}", headers=alice_headers).status_code == 404


def test_delete_other_users_app_is_404(client, alice_headers, bob_headers):
    app = create_app(client, alice_headers)
    assert client.delete(f"{API}/apps/{app['id']}", headers=bob_headers).status_code == 404
    assert client.get(f"{API}/apps/{app['id']}", headers=alice_headers).status_code == 200
