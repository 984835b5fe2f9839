import asyncio
import time
from datetime import datetime

from payment import PAYMENT_METHODS, process_payment


def test_payment_always_succeeds():
    result = asyncio.run(process_payment(amount=100.0, method="cod", delay=0))

    assert result["success"] is True
    assert result["method"] == "cod"
    assert result["amount"] == 100.0
    assert result["transaction_id"].startswith("mock_")
    assert len(result["transaction_id"]) == len("mock_") + 9
    datetime.fromisoformat(result["timestamp"])


def test_transaction_ids_are_unique():
    first = asyncio.run(process_payment(amount=10.0, method="upi", delay=0))
    second = asyncio.run(process_payment(amount=10.0, method="upi", delay=0))
    assert first["transaction_id"] != second["transaction_id"]


def test_payment_waits_for_delay():
    started = time.monotonic()
    asyncio.run(process_payment(amount=10.0, method="card", delay=0.05))
    assert time.monotonic() - started >= 0.04


def test_known_methods():
    assert set(PAYMENT_METHODS) == {"cod", "upi", "card", "razorpay"}
