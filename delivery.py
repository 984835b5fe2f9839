"""
Delivery staff routes under /api/delivery.

A staff member's current order is not stored on the staff document. It is
read from the orders assigned to them that have not yet finished.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pymongo import ReturnDocument

from auth import Principal, require_role
from database import get_db, get_documents, serialize_doc, to_object_id
from order_state import TERMINAL_STATUSES

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/delivery", tags=["delivery"])

STAFF_STATUSES = ("pending", "active", "inactive")


class StaffStatusUpdate(BaseModel):
    status: str


def active_orders_for_staff(staff_id: str) -> List[Dict[str, Any]]:
    """Unfinished orders assigned to ``staff_id``, most recently updated first."""
    return get_documents(
        "order",
        {
            "delivery_staff_id": staff_id,
            "status": {"$nin": [s.value for s in TERMINAL_STATUSES]},
        },
        sort=[("updated_at", -1)],
    )


def _staff_view(staff: Dict[str, Any]) -> Dict[str, Any]:
    staff_id = str(staff["_id"])
    active = active_orders_for_staff(staff_id)
    view = serialize_doc(staff)
    view.pop("password", None)
    view["current_order"] = serialize_doc(active[0]) if active else None
    view["assigned_orders"] = [str(o["_id"]) for o in active]
    return view


@router.get("/profile")
def get_delivery_staff_profile(staff: Principal = Depends(require_role("delivery"))):
    try:
        return _staff_view(staff.doc)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/vendor/{vendor_id}")
def get_vendor_delivery_staff(vendor_id: str, vendor: Principal = Depends(require_role("vendor"))):
    if vendor_id != vendor.id:
        raise HTTPException(status_code=403, detail="Not authorized to access this staff list")
    try:
        docs = get_documents("deliverystaff", {"vendor_id": vendor_id}, sort=[("created_at", -1)])
        return [_staff_view(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/all-active")
def get_all_active_delivery_staff(vendor: Principal = Depends(require_role("vendor"))):
    # Only the caller's own staff can be assigned, so the list stops there
    try:
        docs = get_documents("deliverystaff", {"vendor_id": vendor.id, "status": "active"}, sort=[("name", 1)])
        return [_staff_view(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{staff_id}/status")
def update_delivery_staff_status(staff_id: str, payload: StaffStatusUpdate,
                                 vendor: Principal = Depends(require_role("vendor"))):
    if payload.status not in STAFF_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    oid = to_object_id(staff_id)
    if oid is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    try:
        updated = get_db()["deliverystaff"].find_one_and_update(
            {"_id": oid, "vendor_id": vendor.id},
            {"$set": {"status": payload.status, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise HTTPException(status_code=404, detail="Delivery staff not found")

        logger.info("delivery_staff_status_changed", staff_id=staff_id, status=payload.status)
        return _staff_view(updated)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
