from tests.conftest import STATIC_ADMIN

NEW_PRODUCT = {
    "id": "prod_mango",
    "name": "Mango Brewy",
    "flavor": "mango",
    "price": "59",
    "images": ["/labels/mango.png"],
    "stock": 20,
    "variants": [{"id": "var_mango_single", "title": "Single Can", "price": "59"}],
    "dimensions": {"length": 6, "breadth": 6, "height": 12, "weight": 0.35},
}

def test_list_available_products(client, catalog):
    response = client.get("/products", params={"limit": 3})

    assert response.status_code == 200
    body = response.json()
    assert len(body["products"]) == 3
    assert body["pagination"] == {"page": 1, "limit": 3, "total": 5, "totalPages": 2}
    first = body["products"][0]
    assert first["id"].startswith("prod_")
    assert first["variants"][0]["id"].startswith("var_")

def test_get_product_by_id_or_handle(client, catalog):
    by_id = client.get("/products/prod_lemon_lime").json()
    by_handle = client.get("/products/lemon-lime").json()

    assert by_id == by_handle
    assert by_id["name"] == "Lemon Lime Brewy"
    assert by_id["price"] == 49.0
    assert client.get("/products/unknown").status_code == 404

def test_create_product_requires_admin(client, catalog):
    assert client.post("/products", json=NEW_PRODUCT).status_code == 401

def test_create_update_delete_product(client, catalog):
    created = client.post("/products", json=NEW_PRODUCT, headers=STATIC_ADMIN)
    assert created.status_code == 201
    assert created.json()["handle"] == "mango-brewy"

    duplicate = client.post("/products", json=NEW_PRODUCT, headers=STATIC_ADMIN)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "Product with this ID or handle already exists"

    updated = client.put("/products/prod_mango", json={"price": "65", "available_for_sale": False}, headers=STATIC_ADMIN)
    assert updated.json()["price"] == 65.0
    assert updated.json()["available_for_sale"] is False
    assert updated.json()["name"] == "Mango Brewy"

    stock = client.patch("/products/prod_mango/stock", json={"stock": 3}, headers=STATIC_ADMIN)
    assert stock.json()["stock"] == 3

    assert client.delete("/products/prod_mango", headers=STATIC_ADMIN).json()["success"] is True
    assert client.get("/products/prod_mango").status_code == 404

def test_unavailable_products_are_not_listed(client, catalog):
    client.put("/products/prod_grape", json={"available_for_sale": False}, headers=STATIC_ADMIN)

    products = client.get("/products").json()["products"]
    assert "prod_grape" not in {p["id"] for p in products}

def test_collections(client, catalog):
    collections = client.get("/collections").json()
    assert {c["handle"] for c in collections} == {"all-flavors", "citrus", "berry"}

    citrus = client.get("/collections/citrus").json()
    assert citrus["id"] == "coll_citrus"
    assert {p["id"] for p in citrus["products"]} == {"prod_lemon_lime", "prod_strawberry_lemonade"}

    berry = client.get("/collections/berry/products").json()
    assert len(berry) == 4
    assert client.get("/collections/nope/products").status_code == 404
