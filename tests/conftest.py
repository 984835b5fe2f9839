import os

os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = ""
os.environ["DATABASE_NAME"] = ""

from datetime import datetime, timedelta, timezone

import mongomock
from bson import ObjectId
import pytest
from fastapi.testclient import TestClient

import database
import payment
from auth import create_access_token
from snapshot import hash_item_snapshot


@pytest.fixture
def mongo(monkeypatch):
    mock_db = mongomock.MongoClient()["meshi_test"]
    monkeypatch.setattr(database, "db", mock_db)
    monkeypatch.setattr(payment, "PAYMENT_DELAY_SECONDS", 0)
    return mock_db


@pytest.fixture
def client(mongo):
    from main import app
    return TestClient(app)


@pytest.fixture
def auth():
    def make(principal_id, role):
        return {"Authorization": f"Bearer {create_access_token(principal_id, role)}"}
    return make


def _insert(mongo, collection, doc):
    return str(mongo[collection].insert_one(doc).inserted_id)


@pytest.fixture
def vendor(mongo):
    return _insert(mongo, "vendor", {"name": "Spice Route", "email": "spice@example.com", "role": "vendor", "is_open": True})


@pytest.fixture
def other_vendor(mongo):
    return _insert(mongo, "vendor", {"name": "Pasta Palace", "email": "pasta@example.com", "role": "vendor", "is_open": True})


@pytest.fixture
def customer(mongo):
    return _insert(mongo, "user", {"name": "Asha", "email": "asha@example.com", "role": "customer"})


@pytest.fixture
def stranger(mongo):
    return _insert(mongo, "user", {"name": "Ravi", "email": "ravi@example.com", "role": "customer"})


@pytest.fixture
def make_staff(mongo):
    def make(vendor_id, status="active", name="Rider"):
        return _insert(mongo, "deliverystaff", {
            "name": name,
            "email": f"{name.lower()}@example.com",
            "mobile": "9000000000",
            "vendor_id": vendor_id,
            "status": status,
            "role": "delivery",
        })
    return make


@pytest.fixture
def staff(make_staff, vendor):
    return make_staff(vendor, name="Kiran")


@pytest.fixture
def make_item(mongo):
    def make(vendor_id, name="Veg Thali", price=50, is_veg=True, is_available=True, **extra):
        doc = {
            "_id": ObjectId(),
            "vendor_id": vendor_id,
            "name": name,
            "description": "House special",
            "price": price,
            "is_veg": is_veg,
            "is_available": is_available,
        }
        doc.update(extra)
        mongo["menuitem"].insert_one(doc)
        return doc
    return make


@pytest.fixture
def menu_item(make_item, vendor):
    return make_item(vendor)


@pytest.fixture
def cart_line():
    def make(item, quantity=1):
        return {"itemId": str(item["_id"]), "quantity": quantity, "versionHash": hash_item_snapshot(item)}
    return make


@pytest.fixture
def make_order(mongo):
    """Insert an order document directly, bypassing checkout."""
    counter = {"n": 0}

    def make(customer_id, vendor_id, status="pending", delivery_staff_id=None):
        counter["n"] += 1
        stamp = datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"])
        return _insert(mongo, "order", {
            "customer_id": customer_id,
            "vendor_id": vendor_id,
            "items": [{"name": "Veg Thali", "price": 50.0, "quantity": 1, "is_veg": True}],
            "total_amount": 50.0,
            "status": status,
            "payment_method": "cod",
            "payment_status": "completed",
            "delivery_staff_id": delivery_staff_id,
            "created_at": stamp,
            "updated_at": stamp,
        })
    return make
