from datetime import datetime, timedelta, timezone

import jwt
from bson import ObjectId

from auth import create_access_token


def test_missing_token_is_401(client):
    response = client.get("/api/orders")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not authorized, no token"


def test_garbage_token_is_401(client):
    response = client.get("/api/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_token_signed_with_other_secret_is_401(client, customer):
    token = jwt.encode({"id": customer, "role": "customer"}, "another-secret", algorithm="HS256")
    response = client.get("/api/orders", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_expired_token_is_401(client, customer):
    token = create_access_token(customer, "customer", expires_days=-1)
    response = client.get("/api/orders", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_unknown_principal_is_401(client, auth):
    response = client.get("/api/orders", headers=auth(str(ObjectId()), "customer"))
    assert response.status_code == 401


def test_wrong_role_is_403(client, auth, vendor):
    response = client.get("/api/orders", headers=auth(vendor, "vendor"))
    assert response.status_code == 403
    assert "vendor" in response.json()["detail"]


def test_token_without_role_resolves_customer(client, customer):
    token = jwt.encode(
        {"id": customer, "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        "test-secret",
        algorithm="HS256",
    )
    response = client.get("/api/orders", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json() == []


def test_role_claim_must_match_collection(client, auth, customer):
    # a customer id presented as a vendor is not found in the vendor collection
    response = client.get(f"/api/orders/vendor/{customer}", headers=auth(customer, "vendor"))
    assert response.status_code == 401


def test_inactive_delivery_staff_is_403(client, auth, make_staff, vendor):
    pending = make_staff(vendor, status="pending", name="Newbie")
    response = client.get("/api/delivery/profile", headers=auth(pending, "delivery"))
    assert response.status_code == 403
