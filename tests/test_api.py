from fastapi.testclient import TestClient


def _create(client: TestClient, auth: tuple[str, str], **body) -> dict:
    response = client.post("/v1/categories", json=body, auth=auth)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_read_main(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Catalog Category API"}


def test_create_requires_auth(client: TestClient) -> None:
    """Mutations are protected by the admin guard."""
    response = client.post("/v1/categories", json={"name": "Electronics"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["statusCode"] == 401


def test_create_and_fetch_by_id_or_slug(client: TestClient, admin_auth: tuple[str, str]) -> None:
    response = client.post("/v1/categories", json={"name": "Electronics"}, auth=admin_auth)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Category created successfully"
    root = body["data"]
    assert root["slug"] == "electronics"
    assert root["path"] == "/electronics"
    assert root["parentId"] is None
    assert root["sortOrder"] == 1
    assert root["createdBy"] == "admin"

    child = _create(client, admin_auth, name="Toasters", parentId=root["id"])
    assert child["level"] == 1
    assert child["ancestors"] == [root["id"]]

    by_id = client.get(f"/v1/categories/{child['id']}")
    assert by_id.status_code == 200
    assert by_id.json()["data"]["path"] == "/electronics/toasters"

    by_slug = client.get("/v1/categories/toasters")
    assert by_slug.json()["data"]["id"] == child["id"]


def test_unknown_category_returns_error_envelope(client: TestClient) -> None:
    response = client.get("/v1/categories/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "statusCode": 404, "message": "Category not found"}

    # non-ASCII digits are looked up as a slug, not parsed as an ID
    assert client.get("/v1/categories/²").status_code == 404


def test_bad_parent_is_400(client: TestClient, admin_auth: tuple[str, str]) -> None:
    response = client.post("/v1/categories", json={"name": "Lost", "parentId": 999}, auth=admin_auth)
    assert response.status_code == 400
    assert response.json()["message"] == "Parent category not found"


def test_invalid_body_is_422(client: TestClient, admin_auth: tuple[str, str]) -> None:
    response = client.post("/v1/categories", json={"name": "   "}, auth=admin_auth)
    assert response.status_code == 422
    assert response.json()["message"] == "Validation error"

    empty = client.patch("/v1/categories/1", json={}, auth=admin_auth)
    assert empty.status_code == 422


def test_update_move_reorder_and_cycle(client: TestClient, admin_auth: tuple[str, str]) -> None:
    a = _create(client, admin_auth, name="A")
    b = _create(client, admin_auth, name="B", parentId=a["id"])

    cycle = client.patch(f"/v1/categories/{a['id']}/move", json={"parentId": b["id"]}, auth=admin_auth)
    assert cycle.status_code == 400
    assert cycle.json()["message"] == "Cannot move under its own subtree"

    moved = client.patch(f"/v1/categories/{b['id']}/move", json={"parentId": None}, auth=admin_auth)
    assert moved.status_code == 200
    assert moved.json()["data"]["path"] == "/b"

    reordered = client.patch(f"/v1/categories/{b['id']}/reorder", json={"sortOrder": 1}, auth=admin_auth)
    assert reordered.json()["data"]["sortOrder"] == 1
    assert client.get(f"/v1/categories/{a['id']}").json()["data"]["sortOrder"] == 2

    renamed = client.patch(f"/v1/categories/{a['id']}", json={"name": "Alpha", "metaTitle": "Alpha deals"}, auth=admin_auth)
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Alpha"
    assert renamed.json()["data"]["metaTitle"] == "Alpha deals"


def test_list_with_pagination_meta(client: TestClient, admin_auth: tuple[str, str]) -> None:
    for name in ["One", "Two", "Three"]:
        _create(client, admin_auth, name=name)

    response = client.get("/v1/categories", params={"limit": 2, "page": 1, "sort": "-sortOrder"})
    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Three", "Two"]
    assert body["meta"] == {"page": 1, "limit": 2, "total": 3, "totalPage": 2}


def test_tree_endpoint(client: TestClient, admin_auth: tuple[str, str]) -> None:
    root = _create(client, admin_auth, name="Home")
    _create(client, admin_auth, name="Lamps", parentId=root["id"])

    response = client.get("/v1/categories/tree")
    assert response.status_code == 200
    tree = response.json()["data"]
    assert tree[0]["name"] == "Home"
    assert tree[0]["children"][0]["name"] == "Lamps"
    assert tree[0]["children"][0]["children"] == []


def test_delete_soft_and_hard(client: TestClient, admin_auth: tuple[str, str]) -> None:
    root = _create(client, admin_auth, name="Root")
    child = _create(client, admin_auth, name="Child", parentId=root["id"])

    hard = client.delete(f"/v1/categories/{root['id']}", params={"hard": "true"}, auth=admin_auth)
    assert hard.status_code == 400
    assert hard.json()["message"] == "Cannot hard-delete: category has children"

    soft = client.delete(f"/v1/categories/{root['id']}", auth=admin_auth)
    assert soft.status_code == 200
    assert soft.json()["data"] is None
    assert client.get(f"/v1/categories/{root['id']}").json()["data"]["isActive"] is False

    leaf = client.delete(f"/v1/categories/{child['id']}", params={"hard": "true"}, auth=admin_auth)
    assert leaf.status_code == 200
    assert client.get(f"/v1/categories/{child['id']}").status_code == 404


def test_register_and_list_users(client: TestClient, admin_auth: tuple[str, str]) -> None:
    payload = {
        "name": "Rahim Uddin",
        "email": "rahim@example.com",
        "password": "secret123",
        "role": "admin",
        "clientInfo": {"device": "pc", "browser": "Firefox", "ipAddress": "127.0.0.1"},
    }
    response = client.post("/v1/users/register", json=payload)
    assert response.status_code == 201
    user = response.json()["data"]
    assert user["humanId"] == "A00001"
    assert "password" not in user
    assert "passwordHash" not in user

    duplicate = client.post("/v1/users/register", json=payload)
    assert duplicate.status_code == 409

    assert client.get("/v1/users").status_code == 401
    listed = client.get("/v1/users", params={"searchTerm": "rahim"}, auth=admin_auth)
    assert listed.json()["meta"]["total"] == 1
    assert client.get(f"/v1/users/{user['id']}", auth=admin_auth).json()["data"]["email"] == "rahim@example.com"


def test_login_endpoint(client: TestClient) -> None:
    payload = {
        "name": "Karim Ali",
        "email": "karim@example.com",
        "password": "secret123",
        "clientInfo": {"device": "pc", "browser": "Chrome", "ipAddress": "127.0.0.1"},
    }
    assert client.post("/v1/users/register", json=payload).status_code == 201

    ok = client.post("/v1/users/login", json={"email": "Karim@Example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["data"]["humanId"] == "E00001"

    wrong = client.post("/v1/users/login", json={"email": "karim@example.com", "password": "nope"})
    assert wrong.status_code == 403
    assert wrong.json()["message"] == "Password does not match"
