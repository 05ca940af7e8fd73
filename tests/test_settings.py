from core.auth import verify_password
from models.shipping import ShippingOption
from models.user import User


# --- Shipping options ---

def test_create_shipping_option_requires_price(client):
    r = client.post("/api/settings/shipping-options", json={"name": "Express", "deliveryTime": "1 day"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing fields."}


def test_free_shipping_option_is_valid(client):
    r = client.post("/api/settings/shipping-options", json={"name": "Pickup", "price": 0, "deliveryTime": "Same day"})
    assert r.status_code == 200
    body = r.json()
    assert body["price"] == 0
    assert body["status"] == "ACTIVE"


def test_update_and_delete_shipping_option(client, db, make_shipping):
    option = make_shipping()

    r = client.patch(f"/api/settings/shipping-options/{option.id}", json={"status": "INACTIVE", "price": 7.5})
    assert r.status_code == 200
    assert r.json()["status"] == "INACTIVE"
    assert r.json()["price"] == 7.5

    assert client.delete(f"/api/settings/shipping-options/{option.id}").json() == {"success": True}
    db.expire_all()
    assert db.query(ShippingOption).count() == 0


def test_update_unknown_shipping_option_fails(client):
    assert client.patch("/api/settings/shipping-options/missing", json={"name": "x"}).status_code == 500


# --- Users ---

def test_create_user_hashes_password(client, db):
    r = client.post("/api/settings/users", json={"name": "Bo", "email": "bo@example.com", "password": "pw-abc", "role": "CASHIER"})

    assert r.status_code == 200
    assert "password" not in r.json()
    assert r.json()["lastActive"] is not None
    stored = db.query(User).filter(User.email == "bo@example.com").one()
    assert stored.password != "pw-abc"
    assert verify_password("pw-abc", stored.password)


def test_create_user_missing_fields(client):
    r = client.post("/api/settings/users", json={"name": "Bo", "email": "bo@example.com"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing fields."}


def test_create_user_invalid_role(client):
    r = client.post("/api/settings/users", json={"name": "Bo", "email": "bo@example.com", "password": "x", "role": "OWNER"})
    assert r.status_code == 400


def test_update_without_password_keeps_hash(client, db, make_user):
    user = make_user(email="bo@example.com", password="original-pw", role="CASHIER")
    original_hash = user.password

    r = client.patch(f"/api/settings/users/{user.id}", json={"name": "Bo Renamed"})

    assert r.status_code == 200
    assert r.json()["name"] == "Bo Renamed"
    db.expire_all()
    stored = db.query(User).filter(User.id == user.id).one()
    assert stored.password == original_hash


def test_update_with_password_rehashes(client, db, make_user):
    user = make_user(email="bo@example.com", password="original-pw")

    client.patch(f"/api/settings/users/{user.id}", json={"password": "new-pw"})

    db.expire_all()
    stored = db.query(User).filter(User.id == user.id).one()
    assert verify_password("new-pw", stored.password)
    assert not verify_password("original-pw", stored.password)


def test_activity_touches_last_active(client, make_user):
    user = make_user(email="bo@example.com", role="CASHIER")
    assert user.last_active is None

    r = client.post("/api/settings/users/activity", json={"userId": user.id})

    assert r.status_code == 200
    assert r.json()["lastActive"] is not None


def test_activity_requires_user_id(client):
    r = client.post("/api/settings/users/activity", json={})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing userId"}


def test_delete_user(client, db, make_user):
    user = make_user(email="bo@example.com")
    assert client.delete(f"/api/settings/users/{user.id}").json() == {"success": True}
    db.expire_all()
    assert db.query(User).count() == 0
