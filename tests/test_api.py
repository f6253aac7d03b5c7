def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_unknown_route_uses_error_body(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert "error" in r.json()


def test_category_flow(client, admin_headers):
    r = client.post("/categories", json={"name": "Lighting", "description": "Lamps"}, headers=admin_headers)
    assert r.status_code == 201
    client.post("/categories", json={"name": "Desks"}, headers=admin_headers)

    r = client.post("/categories", json={"name": "Lighting"}, headers=admin_headers)
    assert r.status_code == 400

    r = client.get("/categories")
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Desks", "Lighting"]


def test_product_catalog_flow(client, admin_headers):
    cat = client.post("/categories", json={"name": "Lighting"}, headers=admin_headers).json()

    r = client.post("/products", json={"name": "Lamp", "price": "12.345", "category_id": cat["id"], "is_featured": True}, headers=admin_headers)
    assert r.status_code == 201
    lamp = r.json()
    assert lamp["price"] == "12.35"
    client.post("/products", json={"name": "Rug", "price": "80"}, headers=admin_headers)

    r = client.get("/products")
    assert [p["name"] for p in r.json()] == ["Rug", "Lamp"]

    r = client.get("/products", params={"category_id": cat["id"]})
    assert [p["name"] for p in r.json()] == ["Lamp"]

    r = client.get("/products/featured")
    assert [p["name"] for p in r.json()] == ["Lamp"]

    r = client.get(f"/products/{lamp['id']}")
    assert r.status_code == 200
    assert r.json()["category_id"] == cat["id"]

    r = client.put(f"/products/{lamp['id']}", json={"price": "10", "description": "Warm light"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["price"] == "10.00"
    assert r.json()["name"] == "Lamp"
    assert r.json()["description"] == "Warm light"

    r = client.delete(f"/products/{lamp['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.get(f"/products/{lamp['id']}").status_code == 404
    assert client.delete(f"/products/{lamp['id']}", headers=admin_headers).status_code == 404


def test_product_with_unknown_category_is_400(client, admin_headers):
    r = client.post("/products", json={"name": "Ghost", "price": "1.00", "category_id": 999}, headers=admin_headers)
    assert r.status_code == 400
    assert "category" in r.json()["error"]


def test_product_validation(client, admin_headers):
    r = client.post("/products", json={"name": "Free money", "price": "-1"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.put("/products/999", json={"name": "x"}, headers=admin_headers)
    assert r.status_code == 404


def test_reviews(client, user_headers, product):
    r = client.post(f"/products/{product.id}/reviews", json={"rating": 5, "comment": "<b>Great</b> lamp<script>x</script>"}, headers=user_headers)
    assert r.status_code == 201
    review = r.json()
    assert review["rating"] == 5
    assert "<" not in review["comment"]
    assert "Great" in review["comment"]

    client.post(f"/products/{product.id}/reviews", json={"rating": 3}, headers=user_headers)

    r = client.get(f"/products/{product.id}/reviews")
    assert r.status_code == 200
    assert [rv["rating"] for rv in r.json()] == [3, 5]


def test_review_requires_auth_and_valid_input(client, user_headers, product):
    assert client.post(f"/products/{product.id}/reviews", json={"rating": 4}).status_code == 401
    assert client.post(f"/products/{product.id}/reviews", json={"rating": 6}, headers=user_headers).status_code == 400
    assert client.post("/products/999/reviews", json={"rating": 4}, headers=user_headers).status_code == 404


def test_out_of_range_ids_are_400(client, admin_headers):
    huge = 99999999999999999999
    r = client.get(f"/products/{huge}")
    assert r.status_code == 400
    assert "product_id" in r.json()["error"]
    assert client.get("/products/0").status_code == 400
    assert client.get(f"/products?category_id={huge}").status_code == 400
    assert client.get(f"/products/{huge}/reviews").status_code == 400
    assert client.delete(f"/products/{huge}", headers=admin_headers).status_code == 400

    r = client.post("/products", json={"name": "Lamp", "price": "1.00", "category_id": huge}, headers=admin_headers)
    assert r.status_code == 400
    assert "category_id" in r.json()["error"]
