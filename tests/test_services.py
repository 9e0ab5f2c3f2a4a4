from bson import ObjectId

from conftest import API_PREFIX, auth


def test_create_service_requires_helper_role(client, register):
    _, client_token = register(role="client")
    resp = client.post(f"{API_PREFIX}/services", headers=auth(client_token), json={
        "title": "Lock change", "description": "Replace a lock", "category": "locksmith", "price": 50,
    })
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Insufficient permissions."


def test_create_and_get_service_embeds_helper(client, register, make_service):
    helper, token = register(role="helper", expertise=["plumbing"])
    service = make_service(token)
    assert service["helper_id"] == helper["id"]
    assert service["is_active"] is True

    resp = client.get(f"{API_PREFIX}/services/{service['id']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["title"] == "Leaky faucet repair"
    assert data["helper"]["id"] == helper["id"]
    assert data["helper"]["expertise"] == ["plumbing"]
    assert "email" not in data["helper"]


def test_get_unknown_service_is_404(client):
    resp = client.get(f"{API_PREFIX}/services/{ObjectId()}")
    assert resp.status_code == 404


def test_get_service_with_malformed_id_is_400(client):
    resp = client.get(f"{API_PREFIX}/services/not-an-id")
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid id"


def test_list_services_paginates(client, register, make_service):
    _, token = register(role="helper")
    for i in range(12):
        make_service(token, title=f"Service {i}")

    resp = client.get(f"{API_PREFIX}/services?page=2&limit=5")
    assert resp.status_code == 200
    body = resp.json()
    assert body["currentPage"] == 2
    assert body["limit"] == 5
    assert body["total"] == 12
    assert body["totalPages"] == 3
    assert len(body["data"]) == 5
    assert body["data"][0]["helper"]["first_name"] == "Test"

    last = client.get(f"{API_PREFIX}/services?page=3&limit=5").json()
    assert len(last["data"]) == 2


def test_list_services_newest_first(client, register, make_service):
    _, token = register(role="helper")
    make_service(token, title="First")
    make_service(token, title="Second")
    titles = [s["title"] for s in client.get(f"{API_PREFIX}/services").json()["data"]]
    assert titles == ["Second", "First"]


def test_list_services_filters(client, register, make_service):
    _, token = register(role="helper")
    make_service(token, title="Faucet fix", category="plumbing", price=40)
    make_service(token, title="Socket install", description="New wall socket", category="electricity", price=90)
    make_service(token, title="Boiler check", category="heating", price=150)
    hidden = make_service(token, title="Hidden", category="plumbing", price=45)
    client.put(f"{API_PREFIX}/services/{hidden['id']}", headers=auth(token), json={"is_active": False})

    def titles(query):
        resp = client.get(f"{API_PREFIX}/services?{query}")
        assert resp.status_code == 200
        return sorted(s["title"] for s in resp.json()["data"])

    assert titles("category=plumbing") == ["Faucet fix"]
    assert titles("search=SOCKET") == ["Socket install"]
    assert titles("search=wall") == ["Socket install"]
    assert titles("min_price=50&max_price=150") == ["Boiler check", "Socket install"]
    assert titles("max_price=89") == ["Faucet fix"]


def test_list_services_rejects_bad_paging(client):
    resp = client.get(f"{API_PREFIX}/services?page=0")
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "page"


def test_update_service_ignores_fields_outside_allow_list(client, register, make_service):
    helper, token = register(role="helper")
    other, _ = register(role="helper")
    service = make_service(token)
    resp = client.put(f"{API_PREFIX}/services/{service['id']}", headers=auth(token), json={
        "price": 95.5,
        "tags": ["faucet", "sink"],
        "helper_id": other["id"],
        "rating": 5,
    })
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["price"] == 95.5
    assert data["tags"] == ["faucet", "sink"]
    assert data["helper_id"] == helper["id"]
    assert "rating" not in data


def test_update_service_by_other_helper_is_404(client, register, make_service):
    _, owner_token = register(role="helper")
    _, other_token = register(role="helper")
    service = make_service(owner_token)
    resp = client.put(f"{API_PREFIX}/services/{service['id']}", headers=auth(other_token), json={"price": 1})
    assert resp.status_code == 404


def test_delete_service(client, register, make_service):
    _, owner_token = register(role="helper")
    _, other_token = register(role="helper")
    service = make_service(owner_token)
    assert client.delete(f"{API_PREFIX}/services/{service['id']}", headers=auth(other_token)).status_code == 404
    assert client.delete(f"{API_PREFIX}/services/{service['id']}", headers=auth(owner_token)).status_code == 200
    assert client.get(f"{API_PREFIX}/services/{service['id']}").status_code == 404


def test_my_services_lists_inactive_too(client, register, make_service):
    _, token = register(role="helper")
    _, other_token = register(role="helper")
    make_service(token, title="Active")
    paused = make_service(token, title="Paused")
    client.put(f"{API_PREFIX}/services/{paused['id']}", headers=auth(token), json={"is_active": False})
    make_service(other_token, title="Not mine")
    resp = client.get(f"{API_PREFIX}/services/helper/my-services", headers=auth(token))
    assert resp.status_code == 200
    assert [s["title"] for s in resp.json()["data"]] == ["Paused", "Active"]
