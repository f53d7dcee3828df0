# tests/test_routes/test_category_routes.py


async def test_list_categories(client, category):
    response = await client.get("/api/categories")

    data = response.json()["data"]
    assert data["total"] == 1
    assert data["categories"][0]["name"] == "Granos y cereales"


async def test_admin_creates_subcategory(client, admin, category, auth_headers):
    response = await client.post(
        "/api/categories",
        json={"name": "Cafe especial", "parentId": category.id},
        headers=auth_headers(admin),
    )

    assert response.status_code == 201
    assert response.json()["data"]["parent"]["name"] == "Granos y cereales"

    children = await client.get("/api/categories", params={"parentId": category.id})
    assert [c["name"] for c in children.json()["data"]["categories"]] == ["Cafe especial"]


async def test_non_admin_cannot_create(client, seller, auth_headers):
    response = await client.post("/api/categories", json={"name": "Frutas"}, headers=auth_headers(seller))

    assert response.status_code == 403


async def test_duplicate_name_conflicts(client, admin, category, auth_headers):
    response = await client.post(
        "/api/categories", json={"name": "Granos y cereales"}, headers=auth_headers(admin)
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


async def test_third_level_rejected(client, admin, category, auth_headers):
    child = await client.post(
        "/api/categories", json={"name": "Arroz", "parentId": category.id}, headers=auth_headers(admin)
    )

    response = await client.post(
        "/api/categories",
        json={"name": "Arroz blanco", "parentId": child.json()["data"]["id"]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Categories can only be nested two levels deep"


async def test_delete_blocked_by_subcategories(client, admin, category, auth_headers):
    await client.post(
        "/api/categories", json={"name": "Maiz", "parentId": category.id}, headers=auth_headers(admin)
    )

    response = await client.delete(f"/api/categories/{category.id}", headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Cannot delete a category that has subcategories"


async def test_missing_category(client):
    response = await client.get("/api/categories/999")

    assert response.status_code == 404
