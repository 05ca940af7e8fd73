from models.discounts import Discount


def _product_ids(body):
    return sorted(p["id"] for p in body["products"])


def test_create_discount(client, make_product):
    p = make_product(title="Mug", barcode="MUG001")

    r = client.post("/api/discounts", json={
        "code": "WELCOME",
        "type": "percentage",
        "value": 15,
        "startsAt": "2024-01-01T00:00:00Z",
        "endsAt": "2030-01-01T00:00:00Z",
        "isActive": True,
        "productIds": [p.id],
    })

    assert r.status_code == 201
    body = r.json()
    assert body["code"] == "WELCOME"
    assert body["usageCount"] == 0
    assert body["startsAt"].startswith("2024-01-01T00:00:00")
    assert _product_ids(body) == [p.id]


def test_create_discount_missing_fields(client):
    r = client.post("/api/discounts", json={"code": "X", "type": "percentage", "value": 5, "startsAt": "2024-01-01"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields"}


def test_get_discount_not_found(client):
    r = client.get("/api/discounts/doesnotexist")
    assert r.status_code == 404
    assert r.json() == {"error": "Discount not found"}


def test_update_replaces_product_set(client, make_product, make_discount):
    a = make_product(title="A", barcode="AAA001")
    b = make_product(title="B", barcode="BBB001")
    c = make_product(title="C", barcode="CCC001")
    d = make_discount(products=[a, b])

    r = client.patch(f"/api/discounts/{d.id}", json={"productIds": [c.id]})

    assert r.status_code == 200
    assert _product_ids(r.json()) == [c.id]


def test_update_replaces_variant_set(client, make_product, make_discount):
    tee = make_product(
        title="Tee",
        barcode="TEE001",
        variants=[
            {"name": "Small", "sku": "TEE-S", "price": 12.0, "inventory": 3},
            {"name": "Large", "sku": "TEE-L", "price": 14.0, "inventory": 1},
        ],
    )
    small = next(v for v in tee.variants if v.sku == "TEE-S")
    large = next(v for v in tee.variants if v.sku == "TEE-L")
    d = make_discount(variants=[small])

    r = client.patch(f"/api/discounts/{d.id}", json={"variantIds": [large.id]})

    assert r.status_code == 200
    assert [v["id"] for v in r.json()["variants"]] == [large.id]


def test_update_with_unknown_product_id_fails_and_keeps_set(client, make_product, make_discount):
    a = make_product(title="A", barcode="AAA001")
    d = make_discount(products=[a])

    r = client.patch(f"/api/discounts/{d.id}", json={"productIds": [a.id, "does-not-exist"]})

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to update discount"}
    assert _product_ids(client.get(f"/api/discounts/{d.id}").json()) == [a.id]


def test_update_with_unknown_variant_id_fails(client, make_discount):
    d = make_discount()
    r = client.patch(f"/api/discounts/{d.id}", json={"variantIds": ["does-not-exist"]})
    assert r.status_code == 500


def test_create_with_unknown_product_id_fails(client, db):
    r = client.post("/api/discounts", json={
        "code": "GHOST",
        "type": "percentage",
        "value": 5,
        "startsAt": "2024-01-01T00:00:00Z",
        "isActive": True,
        "productIds": ["does-not-exist"],
    })

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to create discount"}
    db.expire_all()
    assert db.query(Discount).count() == 0


def test_update_with_empty_list_clears_set(client, make_product, make_discount):
    a = make_product(title="A", barcode="AAA001")
    d = make_discount(products=[a])

    r = client.patch(f"/api/discounts/{d.id}", json={"productIds": []})

    assert r.status_code == 200
    assert r.json()["products"] == []


def test_update_without_ids_keeps_associations(client, make_product, make_discount):
    a = make_product(title="A", barcode="AAA001")
    d = make_discount(products=[a])

    r = client.patch(f"/api/discounts/{d.id}", json={"code": "RENAMED", "endsAt": "2031-06-01T12:00:00Z"})

    assert r.status_code == 200
    body = r.json()
    assert body["code"] == "RENAMED"
    assert body["endsAt"].startswith("2031-06-01T12:00:00")
    assert _product_ids(body) == [a.id]


def test_update_unknown_discount_fails(client):
    r = client.patch("/api/discounts/missing", json={"code": "X"})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to update discount"}


def test_update_bad_date_fails(client, make_discount):
    d = make_discount()
    r = client.patch(f"/api/discounts/{d.id}", json={"startsAt": "not a date"})
    assert r.status_code == 500


def test_delete_discount(client, db, make_discount):
    d = make_discount()

    r = client.delete(f"/api/discounts/{d.id}")

    assert r.status_code == 200
    assert r.json() == {"message": "Discount deleted"}
    db.expire_all()
    assert db.query(Discount).count() == 0


def test_delete_unknown_discount_fails(client):
    assert client.delete("/api/discounts/missing").status_code == 500
