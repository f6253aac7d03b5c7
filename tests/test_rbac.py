from storefront import crud, models


def test_product_create_requires_admin(client, user_headers, admin_headers):
    payload = {"name": "Chair", "price": "49.90", "stock": 3}

    r = client.post("/products", json=payload)
    assert r.status_code == 401

    r = client.post("/products", json=payload, headers=user_headers)
    assert r.status_code == 403
    assert r.json() == {"error": "Admin access required"}

    r = client.post("/products", json=payload, headers=admin_headers)
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "Chair"
    assert created["price"] == "49.90"
    assert created["id"]


def test_admin_only_endpoints_reject_users(client, user_headers, product):
    assert client.get("/admin/orders", headers=user_headers).status_code == 403
    assert client.get("/customers", headers=user_headers).status_code == 403
    assert client.post("/categories", json={"name": "Tools"}, headers=user_headers).status_code == 403
    assert client.put(f"/products/{product.id}", json={"name": "x"}, headers=user_headers).status_code == 403
    assert client.delete(f"/products/{product.id}", headers=user_headers).status_code == 403
    assert client.put("/admin/orders/1/status", json={"status": "processing"}, headers=user_headers).status_code == 403


def test_customers_list_with_profiles(client, register, admin_headers):
    register("c1@x.com", first_name="Cora", last_name="Lee")
    register("c2@x.com")

    r = client.get("/customers", headers=admin_headers)
    assert r.status_code == 200
    customers = {c["email"]: c for c in r.json()}
    # admins are not customers
    assert set(customers) == {"c1@x.com", "c2@x.com"}
    assert customers["c1@x.com"]["first_name"] == "Cora"
    assert customers["c1@x.com"]["is_active"] is True
    assert customers["c1@x.com"]["status"] == "active"


def test_deactivated_customer_is_locked_out(client, register, admin_headers):
    body = register("bad@x.com")
    headers = {"Authorization": f"Bearer {body['token']}"}
    uid = body["user"]["id"]

    r = client.patch(f"/customers/{uid}/status", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "inactive"
    assert r.json()["is_active"] is False

    r = client.get("/cart", headers=headers)
    assert r.status_code == 403
    assert r.json()["error"] == "Account is inactive"

    login = {"email": "bad@x.com", "password": "password1"}
    r = client.post("/auth/login", json=login)
    assert r.status_code == 403
    assert r.json() == {"error": "Account is inactive"}
    # wrong password still reads as bad credentials
    assert client.post("/auth/login", json={**login, "password": "wrongpass1"}).status_code == 401

    r = client.patch(f"/customers/{uid}/status", json={"is_active": True}, headers=admin_headers)
    assert r.json()["is_active"] is True
    assert client.get("/cart", headers=headers).status_code == 200
    assert client.post("/auth/login", json=login).status_code == 200


def test_customer_status_unknown_user(client, admin_headers):
    r = client.patch("/customers/999999/status", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 404


def test_customer_status_cannot_target_admins(client, register, admin_headers, db_session):
    admin_id = client.get("/auth/profile", headers=admin_headers).json()["user"]["id"]
    other = register("ops@x.com")
    crud.update_user_role(db_session, other["user"]["id"], "admin")

    for uid in (admin_id, other["user"]["id"]):
        r = client.patch(f"/customers/{uid}/status", json={"is_active": False}, headers=admin_headers)
        assert r.status_code == 404
        assert r.json() == {"error": "Customer not found"}

    db_session.expire_all()
    assert db_session.get(models.User, admin_id).status == "active"
    assert client.get("/customers", headers=admin_headers).status_code == 200
