import hashlib

import pytest

from snapshot import hash_item_snapshot, snapshot_payload


@pytest.fixture
def item():
    return {
        "name": "Paneer Tikka",
        "price": 240,
        "is_veg": True,
        "is_available": True,
        "description": "Grilled cottage cheese",
        "image_url": "https://example.com/paneer.jpg",
        "category": "Starters",
    }


def test_hash_is_deterministic_sha256_hex(item):
    first = hash_item_snapshot(item)
    assert first == hash_item_snapshot(dict(item))
    assert len(first) == 64
    int(first, 16)


@pytest.mark.parametrize("field,value", [
    ("name", "Paneer Tikka Masala"),
    ("price", 260),
    ("is_veg", False),
    ("is_available", False),
])
def test_fingerprinted_fields_change_hash(item, field, value):
    changed = dict(item, **{field: value})
    assert hash_item_snapshot(changed) != hash_item_snapshot(item)


@pytest.mark.parametrize("field,value", [
    ("description", "Now with mint chutney"),
    ("image_url", "https://example.com/new.jpg"),
    ("category", "Mains"),
    ("updated_at", "2026-02-01T10:00:00Z"),
])
def test_other_fields_do_not_change_hash(item, field, value):
    changed = dict(item, **{field: value})
    assert hash_item_snapshot(changed) == hash_item_snapshot(item)


def test_payload_matches_client_json_stringify():
    payload = snapshot_payload({"name": "Tea", "price": 10.0, "is_veg": True, "is_available": True})
    assert payload == '{"name":"Tea","price":10,"isVeg":true,"isAvailable":true}'
    assert hash_item_snapshot({"name": "Tea", "price": 10, "isVeg": True, "isAvailable": True}) == \
        hashlib.sha256(payload.encode("utf-8")).hexdigest()


def test_stored_and_client_key_styles_hash_alike(item):
    client_side = {"name": item["name"], "price": item["price"], "isAvailable": True, "isVeg": True}
    assert hash_item_snapshot(client_side) == hash_item_snapshot(item)


def test_fractional_price_is_kept():
    assert snapshot_payload({"name": "Pesto Pasta", "price": 275.5, "is_veg": True, "is_available": True}) == \
        '{"name":"Pesto Pasta","price":275.5,"isVeg":true,"isAvailable":true}'


def test_missing_field_is_dropped_and_none_is_null():
    assert snapshot_payload({"name": "Lassi", "price": 60, "is_veg": True}) == '{"name":"Lassi","price":60,"isVeg":true}'
    assert snapshot_payload({"name": "Lassi", "price": None, "is_veg": True, "is_available": True}) == \
        '{"name":"Lassi","price":null,"isVeg":true,"isAvailable":true}'


def test_non_ascii_names_are_not_escaped():
    assert snapshot_payload({"name": "Crème brûlée", "price": 180, "is_veg": True, "is_available": True}).startswith(
        '{"name":"Crème brûlée"'
    )
