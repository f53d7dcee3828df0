# tests/test_routes/test_product_routes.py
from agricoventas.core.enums import UserType

PRODUCT_PAYLOAD = {
    "name": "Cacao fino de aroma",
    "description": "Cacao fermentado de Tumaco",
    "basePrice": 18000,
    "stockQuantity": 40,
    "unitMeasure": "kg",
}


async def test_uncertified_seller_blocked(client, seller, auth_headers):
    response = await client.post("/api/products", json=PRODUCT_PAYLOAD, headers=auth_headers(seller))

    assert response.status_code == 403
    error = response.json()["error"]
    assert error["code"] == "CERTIFICATION_REQUIRED"
    assert "INVIMA" in error["details"]["missing"]


async def test_buyer_cannot_create(client, buyer, auth_headers):
    response = await client.post("/api/products", json=PRODUCT_PAYLOAD, headers=auth_headers(buyer))

    assert response.status_code == 403


async def test_create_and_get_product(client, certified_seller, category, location, auth_headers):
    payload = {**PRODUCT_PAYLOAD, "categoryId": category.id, "originLocationId": location.id}

    created = await client.post("/api/products", json=payload, headers=auth_headers(certified_seller))

    assert created.status_code == 201
    product_id = created.json()["data"]["id"]

    response = await client.get(f"/api/products/{product_id}")
    data = response.json()["data"]
    assert data["name"] == "Cacao fino de aroma"
    assert data["basePrice"] == 18000
    assert data["sellerId"] == certified_seller.id
    assert data["category"]["name"] == "Granos y cereales"
    assert data["region"] == "Pitalito, Huila"
    assert data["averageRating"] == 0
    assert data["reviewCount"] == 0


async def test_create_validation(client, certified_seller, auth_headers):
    response = await client.post(
        "/api/products", json={**PRODUCT_PAYLOAD, "basePrice": 0}, headers=auth_headers(certified_seller)
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_get_missing_product(client):
    response = await client.get("/api/products/4040")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": {"message": "Product not found", "code": "NOT_FOUND"},
    }


async def test_list_products_with_filters(client, seller, create_product):
    await create_product(seller, name="Arroz", base_price=30)
    await create_product(seller, name="Banano", base_price=10, is_featured=True)
    await create_product(seller, name="Inactivo", base_price=5, is_active=False)

    response = await client.get("/api/products", params={"sort": "price_desc"})
    data = response.json()["data"]
    assert [p["name"] for p in data["products"]] == ["Arroz", "Banano"]
    assert data["pagination"]["total"] == 2

    response = await client.get("/api/products", params={"maxPrice": 15})
    assert [p["name"] for p in response.json()["data"]["products"]] == ["Banano"]

    featured = await client.get("/api/products/featured")
    assert [p["name"] for p in featured.json()["data"]] == ["Banano"]


async def test_update_records_history(client, seller, product, auth_headers):
    response = await client.put(
        f"/api/products/{product.id}", json={"basePrice": 120}, headers=auth_headers(seller)
    )
    assert response.status_code == 200
    assert response.json()["data"]["basePrice"] == 120

    history = await client.get(f"/api/products/{product.id}/history", headers=auth_headers(seller))
    data = history.json()["data"]
    assert data["pagination"]["total"] == 1
    entry = data["history"][0]
    assert entry["changeField"] == "basePrice"
    assert entry["oldValue"] == "100"
    assert entry["newValue"] == "120"
    assert entry["changeType"] == "UPDATE"


async def test_other_seller_cannot_update(client, create_user, product, auth_headers):
    rival = await create_user("rival", UserType.SELLER)

    response = await client.put(
        f"/api/products/{product.id}", json={"basePrice": 1}, headers=auth_headers(rival)
    )

    assert response.status_code == 403


async def test_delete_product(client, seller, product, auth_headers):
    response = await client.delete(f"/api/products/{product.id}", headers=auth_headers(seller))
    assert response.status_code == 200

    assert (await client.get(f"/api/products/{product.id}")).status_code == 404


async def test_price_trends_endpoint(client, seller, product, auth_headers):
    await client.put(f"/api/products/{product.id}", json={"basePrice": 150}, headers=auth_headers(seller))

    response = await client.get("/api/products/insights/price-trends", params={"timespan": 7})

    trends = response.json()["data"]
    assert trends[0]["id"] == product.id
    assert trends[0]["weeklyTrend"] == 50.0
    assert trends[0]["oldPrice"] == 100
    assert trends[0]["currentPrice"] == 150
    assert trends[0]["category"] == "Sin categoría"


async def test_change_metrics_admin_only(client, seller, admin, auth_headers):
    assert (await client.get("/api/products/insights/changes", headers=auth_headers(seller))).status_code == 403

    response = await client.get("/api/products/insights/changes", headers=auth_headers(admin))
    assert response.status_code == 200
    assert set(response.json()["data"]) == {"changesByType", "changesByField", "topModifiedProducts"}


async def test_upload_product_image(client, seller, product, auth_headers):
    response = await client.post(
        f"/api/products/{product.id}/images",
        files={"productImage": ("cosecha.png", b"\x89PNG fake", "image/png")},
        data={"altText": "Cosecha"},
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    image = response.json()["data"]
    assert image["isPrimary"] is True
    assert image["altText"] == "Cosecha"
    assert image["imageUrl"].startswith("/media/products/")

    listing = await client.get(f"/api/products/{product.id}/images")
    assert len(listing.json()["data"]) == 1


async def test_upload_product_image_wrong_type(client, seller, product, auth_headers):
    response = await client.post(
        f"/api/products/{product.id}/images",
        files={"productImage": ("notas.txt", b"hola", "text/plain")},
        headers=auth_headers(seller),
    )

    assert response.status_code == 400
