"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from catalog.api.auth import get_password_hash
from catalog.models.recipe import Recipe, RecipeIngredient
from catalog.models.user import User


def product_json(seed_data, **overrides):
    body = {
        "name": "Carrot",
        "brand_id": seed_data["brand"].id,
        "supplier_id": seed_data["fresh_farms"].id,
        "food_category_id": seed_data["produce"].id,
        "aliases": ["x"],
        "diets": [seed_data["vegan"].id],
        "yields": [{"name": "Peeled", "value": 90, "default": True}],
        "packs": [{"name": "Sack", "measurement": "kg", "volume": 10, "price": 20}],
        "season": [{"month": "Jan", "season_status_id": seed_data["plentiful"].id}],
    }
    body.update(overrides)
    return body


async def create_product(client, seed_data, **overrides):
    r = await client.post("/api/products/", json=product_json(seed_data, **overrides))
    assert r.status_code == 201, r.text
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== AUTH =====================


async def test_login_success(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "admin@test.com", "password": "testpass123"},
    )
    assert r.status_code == 200
    assert "access_token" in r.json()


async def test_login_wrong_password(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "admin@test.com", "password": "wrong"},
    )
    assert r.status_code == 401


async def test_get_me(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 200
    assert r.json()["email"] == "admin@test.com"
    assert r.json()["permissions"] == ["product_store", "product_destroy"]


async def test_protected_route_no_token(unauth_client, seed_data):
    r = await unauth_client.get("/api/products/")
    assert r.status_code == 401


# ===================== CREATE =====================


async def test_create_product(client, seed_data):
    data = await create_product(client, seed_data)

    assert data["name"] == "Carrot"
    assert data["brand"]["name"] == "Green Valley"
    assert data["aliases"] == ["x"]
    assert data["default_waste"] == 10
    assert data["default_note"] == "Peeled"
    assert data["packs"][0]["price_per_kg"] == 2.0
    assert data["price_avg"] == 2.0
    assert data["owner"] == {"type": "user", "id": seed_data["admin"].id, "name": "Admin User"}
    assert data["is_editable"] is True
    assert data["is_deletable"] is True
    assert data["is_used"] is False


async def test_create_adds_nuts_diet(client, seed_data):
    data = await create_product(client, seed_data, name="Coconut Nut Butter")
    assert sorted(d["name"] for d in data["diets"]) == ["Contains nuts", "Vegan"]


async def test_create_does_not_duplicate_nuts_diet(client, seed_data):
    data = await create_product(client, seed_data, name="Coconut Nut Butter", diets=[seed_data["nuts"].id])
    assert [d["name"] for d in data["diets"]] == ["Contains nuts"]


async def test_create_with_image(client, seed_data):
    data = await create_product(client, seed_data, image="https://cdn.test/img/carrot.png")
    assert data["image"] == "https://cdn.test/img/carrot.png"


async def test_create_by_supplier_staff(client_for, seed_data):
    staff = await client_for(seed_data["supplier_user"])
    data = await create_product(staff, seed_data)

    assert data["owner"]["type"] == "supplier"
    assert data["owner"]["name"] == "Fresh Farms"
    assert data["is_deletable"] is False


async def test_create_forbidden_for_plain_user(client_for, seed_data):
    viewer = await client_for(seed_data["plain_user"])
    r = await viewer.post("/api/products/", json=product_json(seed_data))
    assert r.status_code == 403


async def test_create_unknown_brand(client, seed_data):
    r = await client.post("/api/products/", json=product_json(seed_data, brand_id=9999))
    assert r.status_code == 422
    assert r.json()["detail"][0]["loc"] == ["body", "brand_id"]

    r = await client.get("/api/products/")
    assert r.json()["meta"]["total"] == 0


async def test_create_bad_month(client, seed_data):
    r = await client.post(
        "/api/products/",
        json=product_json(seed_data, season=[{"month": "September", "season_status_id": 1}]),
    )
    assert r.status_code == 422


async def test_create_bad_measurement(client, seed_data):
    r = await client.post(
        "/api/products/",
        json=product_json(seed_data, packs=[{"measurement": "lb", "volume": 1, "price": 1}]),
    )
    assert r.status_code == 422


# ===================== READ =====================


async def test_get_product(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.get(f"/api/products/{created['id']}")
    assert r.status_code == 200
    data = r.json()
    assert data["id"] == created["id"]
    assert [a["month"] for a in data["season_availability"]] == ["Jan"]
    assert set(data["current_month"]) == {"id", "status", "icon_class"}


async def test_get_product_not_found(client):
    r = await client.get("/api/products/99999")
    assert r.status_code == 404


async def test_get_product_marks_recipe_usage(client, db_session, seed_data):
    created = await create_product(client, seed_data)
    db_session.add(Recipe(name="Soup", ingredients=[RecipeIngredient(product_pack_id=created["packs"][0]["id"])]))
    await db_session.commit()

    r = await client.get(f"/api/products/{created['id']}")
    assert r.json()["is_used"] is True


async def test_list_products_paginated(client, seed_data):
    for name in ["Carrot", "Apple", "Beetroot"]:
        await create_product(client, seed_data, name=name)

    r = await client.get("/api/products/", params={"order": "asc", "per_page": 2})
    assert r.status_code == 200
    body = r.json()
    assert [p["name"] for p in body["data"]] == ["Apple", "Beetroot"]
    assert body["meta"]["total"] == 3
    assert body["meta"]["last_page"] == 2
    assert body["meta"]["from"] == 1
    assert body["meta"]["to"] == 2
    assert body["links"]["prev"] is None
    assert "page=2" in body["links"]["next"]
    # List items skip owner name and recipe usage
    assert body["data"][0]["is_used"] is None

    r = await client.get("/api/products/", params={"order": "asc", "per_page": 2, "page": 2})
    assert [p["name"] for p in r.json()["data"]] == ["Carrot"]


async def test_list_products_filters(client, seed_data):
    await create_product(client, seed_data, name="Walnut", supplier_id=seed_data["nutty_co"].id)
    await create_product(client, seed_data, name="Kale")

    r = await client.get("/api/products/", params={"company": seed_data["nutty_co"].id})
    assert [p["name"] for p in r.json()["data"]] == ["Walnut"]

    r = await client.get("/api/products/", params={"name": "KAL"})
    assert [p["name"] for p in r.json()["data"]] == ["Kale"]


# ===================== UPDATE =====================


async def test_update_replaces_aliases(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.put(
        f"/api/products/{created['id']}",
        json=product_json(seed_data, aliases=["a", "b"]),
    )
    assert r.status_code == 200
    assert r.json()["aliases"] == ["a", "b"]


async def test_update_reprices_packs(client, seed_data):
    created = await create_product(client, seed_data)
    sack = created["packs"][0]

    r = await client.put(f"/api/products/{created['id']}", json=product_json(seed_data, packs=[
        {"id": sack["id"], "name": "Sack", "measurement": "kg", "volume": 10, "price": 30},
        {"name": "Punnet", "measurement": "g", "volume": 250, "price": 1},
    ]))
    assert r.status_code == 200
    data = r.json()
    assert [(p["name"], p["price_per_kg"]) for p in data["packs"]] == [("Sack", 3.0), ("Punnet", 4.0)]
    assert data["packs"][0]["id"] == sack["id"]
    assert data["price_avg"] == 3.5


async def test_update_clears_omitted_collections(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.patch(f"/api/products/{created['id']}", json={"description": "Orange root"})
    assert r.status_code == 200
    data = r.json()
    assert data["description"] == "Orange root"
    assert data["packs"] == []
    assert data["aliases"] == []
    assert data["diets"] == []
    assert data["season_availability"] == []


async def test_update_by_supplier_staff(client_for, seed_data):
    staff = await client_for(seed_data["supplier_user"])
    own = await create_product(staff, seed_data)

    r = await staff.put(f"/api/products/{own['id']}", json=product_json(seed_data, name="Purple Carrot"))
    assert r.status_code == 200
    assert r.json()["name"] == "Purple Carrot"


async def test_update_other_suppliers_product_forbidden(client, client_for, seed_data):
    other = await create_product(client, seed_data, supplier_id=seed_data["nutty_co"].id)
    staff = await client_for(seed_data["supplier_user"])

    r = await staff.put(f"/api/products/{other['id']}", json=product_json(seed_data))
    assert r.status_code == 403


async def test_update_forbidden_for_plain_user(client, client_for, seed_data):
    created = await create_product(client, seed_data)
    viewer = await client_for(seed_data["plain_user"])

    r = await viewer.put(f"/api/products/{created['id']}", json=product_json(seed_data, name="Nope"))
    assert r.status_code == 403

    r = await client.get(f"/api/products/{created['id']}")
    assert r.json()["name"] == "Carrot"


async def test_update_null_name(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.patch(f"/api/products/{created['id']}", json={"name": None})
    assert r.status_code == 422

    r = await client.get(f"/api/products/{created['id']}")
    assert r.json()["name"] == "Carrot"
    assert r.json()["aliases"] == ["x"]


async def test_update_not_found(client, seed_data):
    r = await client.put("/api/products/99999", json=product_json(seed_data))
    assert r.status_code == 404


async def test_update_image(client, seed_data):
    created = await create_product(client, seed_data, image="https://cdn.test/old.png")

    r = await client.patch(f"/api/products/{created['id']}", json={"image": "https://cdn.test/new.png"})
    assert r.json()["image"] == "https://cdn.test/new.png"

    r = await client.patch(f"/api/products/{created['id']}", json={"image": ""})
    assert r.json()["image"] is None


# ===================== DELETE / RESTORE =====================


async def test_delete_product(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.delete(f"/api/products/{created['id']}")
    assert r.status_code == 200
    assert r.json()["deleted_at"] is not None

    r = await client.get(f"/api/products/{created['id']}")
    assert r.status_code == 404


async def test_delete_without_destroy_permission(client, client_for, db_session, seed_data):
    root = User(
        email="root@test.com",
        full_name="Root Without Destroy",
        hashed_password=get_password_hash("testpass123"),
        is_admin=True,
        permissions=["product_store"],
    )
    db_session.add(root)
    await db_session.commit()
    created = await create_product(client, seed_data)

    root_client = await client_for(root)
    r = await root_client.delete(f"/api/products/{created['id']}")
    assert r.status_code == 403
    assert r.json()["detail"] == "Product cannot be deleted"

    r = await client.get(f"/api/products/{created['id']}")
    assert r.status_code == 200


async def test_delete_forbidden_for_plain_user(client, client_for, seed_data):
    created = await create_product(client, seed_data)
    viewer = await client_for(seed_data["plain_user"])

    r = await viewer.delete(f"/api/products/{created['id']}")
    assert r.status_code == 403


async def test_restore_product(client, seed_data):
    created = await create_product(client, seed_data)
    await client.delete(f"/api/products/{created['id']}")

    r = await client.post(f"/api/products/{created['id']}/restore")
    assert r.status_code == 200
    assert r.json()["deleted_at"] is None

    r = await client.get(f"/api/products/{created['id']}")
    assert r.status_code == 200


# ===================== SUPPLIERS / PACK PRICE =====================


async def test_product_suppliers(client, db_session, seed_data):
    fresh = seed_data["fresh_farms"]
    await db_session.refresh(fresh, ["categories"])
    fresh.categories.append(seed_data["produce"])
    await db_session.commit()
    created = await create_product(client, seed_data)

    r = await client.get(f"/api/products/{created['id']}/suppliers")
    assert r.status_code == 200
    assert r.json() == [{
        "name": "Fresh Farms",
        "supplies": "Produce",
        "region": "North",
        "ingredients": 1,
        "branches": [],
    }]


async def test_pack_price(client, seed_data):
    created = await create_product(client, seed_data)

    r = await client.get(
        f"/api/products/{created['id']}/pack-price",
        params={"measurement": "g", "volume": 500},
    )
    assert r.status_code == 200
    assert r.json() == {"measurement": "g", "volume": 500.0, "price": 1.0}


async def test_pack_price_for_liquid(client, seed_data):
    created = await create_product(
        client, seed_data,
        name="Olive Oil",
        density_id=seed_data["oil_density"].id,
        packs=[{"name": "Tin", "measurement": "l", "volume": 5, "price": 46}],
    )
    assert created["packs"][0]["price_per_kg"] == 10.0

    r = await client.get(
        f"/api/products/{created['id']}/pack-price",
        params={"measurement": "ml", "volume": 500},
    )
    assert r.json()["price"] == 4.6
