"""
Menu item snapshot hashing.

The mobile client hashes the item it displayed and sends the digest back with
each cart line as ``versionHash``. The server recomputes the digest over the
live item when the order is placed; a mismatch means the cart is stale.

Both sides must serialize identically, so the payload reproduces
``JSON.stringify({name, price, isVeg, isAvailable})``:

- keys in that fixed order, no whitespace, non-ASCII left as is
- integral floats written without a fraction (``100.0`` -> ``100``)
- a missing field is dropped, an explicit ``None`` becomes ``null``
"""

import hashlib
import json
from typing import Any, Dict

# (wire key, stored document key)
SNAPSHOT_FIELDS = (
    ("name", "name"),
    ("price", "price"),
    ("isVeg", "is_veg"),
    ("isAvailable", "is_available"),
)

_MISSING = object()


def _js_value(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def snapshot_payload(item: Dict[str, Any]) -> str:
    """Canonical JSON text over the four fingerprinted fields of ``item``."""
    data = {}
    for wire_key, stored_key in SNAPSHOT_FIELDS:
        value = item.get(stored_key, _MISSING)
        if value is _MISSING:
            value = item.get(wire_key, _MISSING)
        if value is _MISSING:
            continue
        data[wire_key] = _js_value(value)
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def hash_item_snapshot(item: Dict[str, Any]) -> str:
    """SHA-256 hex digest of the item's snapshot payload (64 characters)."""
    return hashlib.sha256(snapshot_payload(item).encode("utf-8")).hexdigest()
