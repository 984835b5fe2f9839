"""
Payment gateway stub.

Stands in for a real gateway client: waits a fixed delay and always reports
success. Order code only depends on ``process_payment``'s result shape, so a
real client can replace this module without touching cart validation.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config import PAYMENT_DELAY_SECONDS

PAYMENT_METHODS = ("cod", "upi", "card", "razorpay")


async def process_payment(amount: float, method: str, delay: Optional[float] = None) -> Dict[str, Any]:
    await asyncio.sleep(PAYMENT_DELAY_SECONDS if delay is None else delay)
    return {
        "success": True,
        "transaction_id": "mock_" + uuid.uuid4().hex[:9],
        "method": method,
        "amount": amount,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
