"""
Order lifecycle routes: cart validation, payment, status changes and
delivery-staff assignment under /api/orders.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument

from auth import Principal, get_current_principal, require_role
from database import create_document, get_db, get_documents, serialize_doc, to_object_id
from order_state import (
    DELIVERY_STATUSES,
    OrderStatus,
    StatusTransitionError,
    TERMINAL_STATUSES,
    VENDOR_STATUSES,
    check_transition,
    is_terminal,
    parse_status,
)
from payment import PAYMENT_METHODS, process_payment
from schemas import DeliveryAddress, Order, OrderItem
from snapshot import hash_item_snapshot

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class MenuStale(HTTPException):
    def __init__(self, detail: str = "Menu has changed since you added these items. Please refresh your cart."):
        super().__init__(status_code=409, detail=detail)


class PaymentFailed(HTTPException):
    def __init__(self, detail: str = "Payment failed"):
        super().__init__(status_code=402, detail=detail)


class CartLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(..., alias="itemId")
    quantity: int = Field(..., ge=1)
    version_hash: str = Field(..., alias="versionHash")


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[CartLine] = Field(default_factory=list)
    vendor_id: str = Field(..., alias="vendorId")
    delivery_address: Optional[DeliveryAddress] = Field(None, alias="deliveryAddress")
    payment_method: str = Field(..., alias="paymentMethod")
    special_instructions: Optional[str] = Field(None, alias="specialInstructions")


class StatusUpdate(BaseModel):
    status: str


class AssignDeliveryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    delivery_staff_id: Optional[str] = Field(None, alias="deliveryStaffId")


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


def validate_cart(lines: List[CartLine], vendor_id: str) -> Tuple[List[OrderItem], float]:
    """
    Check every cart line against the live menu and freeze it.

    Lines are checked in order and the first stale one aborts the whole cart.
    Returns the frozen lines and their total.
    """
    db = get_db()
    frozen: List[OrderItem] = []
    total = 0.0
    for line in lines:
        oid = to_object_id(line.item_id)
        item = db["menuitem"].find_one({"_id": oid}) if oid else None
        if not item or not item.get("is_available", False):
            logger.info("cart_line_unavailable", item_id=line.item_id)
            raise MenuStale()

        if hash_item_snapshot(item) != line.version_hash:
            logger.info("cart_line_stale", item_id=line.item_id)
            raise MenuStale()

        if item.get("vendor_id") != vendor_id:
            raise HTTPException(status_code=400, detail=f"Item {item.get('name')} does not belong to this vendor")

        price = float(item.get("price", 0))
        frozen.append(OrderItem(name=item["name"], price=price, quantity=line.quantity, is_veg=bool(item.get("is_veg", False))))
        total += price * line.quantity
    return frozen, round(total, 2)


def _load_order(order_id: str) -> Dict[str, Any]:
    oid = to_object_id(order_id)
    if oid is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    order = get_db()["order"].find_one({"_id": oid})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _update_order(filter_dict: Dict[str, Any], fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Conditionally update one order; None when ``filter_dict`` no longer matches."""
    now = datetime.now(timezone.utc)
    fields = dict(fields, updated_at=now)
    if fields.get("status") == OrderStatus.DELIVERED.value:
        fields["delivered_at"] = now
    return get_db()["order"].find_one_and_update(
        filter_dict,
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )


def _insert_order(order: Order) -> Tuple[str, Dict[str, Any]]:
    order_id = create_document("order", order)
    return order_id, get_db()["order"].find_one({"_id": to_object_id(order_id)})


def _parse_requested_status(value: str, allowed) -> OrderStatus:
    try:
        status = parse_status(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid status")
    if status not in allowed:
        raise HTTPException(status_code=400, detail="Invalid status")
    return status


def _apply_status(order: Dict[str, Any], target: OrderStatus, extra_filter: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    current = OrderStatus(order["status"])
    try:
        check_transition(current, target)
    except StatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    filter_dict = {"_id": order["_id"], "status": current.value}
    filter_dict.update(extra_filter or {})
    updated = _update_order(filter_dict, {"status": target.value})
    if updated is None:
        raise HTTPException(status_code=409, detail="Order was modified by another request, please retry")

    logger.info("order_status_changed", order_id=str(order["_id"]), from_status=current.value, to_status=target.value)
    return updated


@router.post("", status_code=201)
async def create_order(payload: CreateOrderRequest, customer: Principal = Depends(require_role("customer"))):
    if not payload.items:
        raise HTTPException(status_code=400, detail="Order must contain at least one item")
    if payload.payment_method not in PAYMENT_METHODS:
        raise HTTPException(status_code=400, detail=f"Invalid payment method: {payload.payment_method}")

    try:
        # pymongo is blocking; only the payment call runs on the event loop
        frozen_items, total = await run_in_threadpool(validate_cart, payload.items, payload.vendor_id)

        payment = await process_payment(amount=total, method=payload.payment_method)
        if not payment.get("success"):
            logger.warning("payment_failed", customer_id=customer.id, amount=total)
            raise PaymentFailed()

        order = Order(
            customer_id=customer.id,
            vendor_id=payload.vendor_id,
            items=frozen_items,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            delivery_address=payload.delivery_address,
            payment_method=payload.payment_method,
            payment_status="completed",
            payment_info={
                "transaction_id": payment.get("transaction_id"),
                "paid_at": payment.get("timestamp"),
            },
            special_instructions=payload.special_instructions,
        )
        order_id, doc = await run_in_threadpool(_insert_order, order)

        logger.info("order_created", order_id=order_id, customer_id=customer.id, vendor_id=payload.vendor_id, total=total)
        return {"order": serialize_doc(doc), "payment_info": payment}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("create_order_error")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("")
def get_orders(customer: Principal = Depends(require_role("customer"))):
    try:
        docs = get_documents("order", {"customer_id": customer.id}, sort=[("created_at", -1)])
        return [serialize_doc(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


# Delivery routes are declared before /{order_id} so "delivery" is not read as an id

@router.get("/delivery")
def get_delivery_orders(staff: Principal = Depends(require_role("delivery"))):
    try:
        available = get_documents(
            "order",
            {"status": OrderStatus.READY.value, "delivery_staff_id": None, "vendor_id": staff.doc.get("vendor_id")},
            sort=[("created_at", 1)],
        )
        assigned = get_documents("order", {"delivery_staff_id": staff.id}, sort=[("updated_at", -1)])
        return {
            "available_orders": [serialize_doc(d) for d in available],
            "assigned_orders": [serialize_doc(d) for d in assigned],
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/delivery/accept/{order_id}")
def accept_order(order_id: str, staff: Principal = Depends(require_role("delivery"))):
    try:
        order = _load_order(order_id)
        if order.get("vendor_id") != staff.doc.get("vendor_id"):
            raise HTTPException(status_code=403, detail="Not authorized to deliver this order")
        if order.get("status") != OrderStatus.READY.value:
            raise HTTPException(status_code=400, detail="Order is not ready for pickup")
        if order.get("delivery_staff_id") not in (None, staff.id):
            raise HTTPException(status_code=400, detail="Order is already assigned to a delivery partner")

        # Single conditional write: only one of several concurrent accepts can match.
        # An order the vendor already assigned to this staff member may still be accepted.
        updated = _update_order(
            {"_id": order["_id"], "status": OrderStatus.READY.value, "delivery_staff_id": {"$in": [None, staff.id]}},
            {"delivery_staff_id": staff.id, "status": OrderStatus.OUT_FOR_DELIVERY.value},
        )
        if updated is None:
            raise HTTPException(status_code=400, detail="Order is already assigned to a delivery partner")

        logger.info("order_accepted", order_id=order_id, staff_id=staff.id)
        return {"message": "Order accepted successfully", "order": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("accept_order_error", order_id=order_id)
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/delivery/status/{order_id}")
def update_delivery_order_status(order_id: str, payload: StatusUpdate,
                                 staff: Principal = Depends(require_role("delivery"))):
    target = _parse_requested_status(payload.status, DELIVERY_STATUSES)
    try:
        order = _load_order(order_id)
        if order.get("delivery_staff_id") != staff.id:
            raise HTTPException(status_code=403, detail="Not authorized to update this order")

        updated = _apply_status(order, target, {"delivery_staff_id": staff.id})
        return {"message": f"Order status updated to {target.value}", "order": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("delivery_status_error", order_id=order_id)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/delivery/location/{order_id}")
def update_delivery_location(order_id: str, payload: LocationUpdate,
                             staff: Principal = Depends(require_role("delivery"))):
    try:
        order = _load_order(order_id)
        if order.get("delivery_staff_id") != staff.id:
            raise HTTPException(status_code=403, detail="Not authorized to update this order")
        if is_terminal(OrderStatus(order["status"])):
            raise HTTPException(status_code=400, detail="Order is no longer active")

        get_db()["deliverystaff"].update_one(
            {"_id": staff.doc["_id"]},
            {"$set": {
                "current_location": {
                    "latitude": payload.latitude,
                    "longitude": payload.longitude,
                    "last_updated": datetime.now(timezone.utc),
                },
            }},
        )
        return {"message": "Location updated"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/vendor/{vendor_id}")
def get_vendor_orders(vendor_id: str, vendor: Principal = Depends(require_role("vendor"))):
    if vendor_id != vendor.id:
        raise HTTPException(status_code=403, detail="Not authorized to access these orders")
    try:
        docs = get_documents("order", {"vendor_id": vendor_id}, sort=[("created_at", -1)])
        return [serialize_doc(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/customer/{customer_id}")
def get_customer_orders(customer_id: str, customer: Principal = Depends(require_role("customer"))):
    if customer_id != customer.id:
        raise HTTPException(status_code=403, detail="Not authorized to access these orders")
    try:
        docs = get_documents("order", {"customer_id": customer_id}, sort=[("created_at", -1)])
        return [serialize_doc(d) for d in docs]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{order_id}")
def get_order_by_id(order_id: str, principal: Principal = Depends(get_current_principal)):
    try:
        order = _load_order(order_id)
        if principal.id not in (order.get("customer_id"), order.get("vendor_id")):
            raise HTTPException(status_code=403, detail="Not authorized")
        return serialize_doc(order)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{order_id}/status")
def update_order_status(order_id: str, payload: StatusUpdate, vendor: Principal = Depends(require_role("vendor"))):
    target = _parse_requested_status(payload.status, VENDOR_STATUSES)
    try:
        order = _load_order(order_id)
        if order.get("vendor_id") != vendor.id:
            raise HTTPException(status_code=403, detail="Not authorized")

        updated = _apply_status(order, target)
        return serialize_doc(updated)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("order_status_error", order_id=order_id)
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{order_id}/assign-delivery")
def assign_delivery_staff(order_id: str, payload: AssignDeliveryRequest,
                          vendor: Principal = Depends(require_role("vendor"))):
    if not payload.delivery_staff_id:
        raise HTTPException(status_code=400, detail="Delivery staff ID is required")
    try:
        order = _load_order(order_id)
        if order.get("vendor_id") != vendor.id:
            raise HTTPException(status_code=403, detail="Not authorized")
        if is_terminal(OrderStatus(order["status"])):
            raise HTTPException(status_code=409, detail=f"Order is already {order['status']}")

        staff_oid = to_object_id(payload.delivery_staff_id)
        staff = get_db()["deliverystaff"].find_one({"_id": staff_oid, "vendor_id": vendor.id}) if staff_oid else None
        if not staff:
            raise HTTPException(status_code=404, detail="Delivery staff not found")
        if staff.get("status") != "active":
            raise HTTPException(status_code=400, detail="Delivery staff is not active")

        # The order is the only record of the assignment; the previous
        # assignee's current-order view follows from this one write.
        previous = order.get("delivery_staff_id")
        updated = _update_order(
            {"_id": order["_id"], "status": {"$nin": [s.value for s in TERMINAL_STATUSES]}},
            {"delivery_staff_id": str(staff["_id"])},
        )
        if updated is None:
            raise HTTPException(status_code=409, detail="Order is already finished")

        logger.info(
            "delivery_staff_assigned",
            order_id=order_id,
            staff_id=str(staff["_id"]),
            previous_staff_id=previous,
        )
        return {"message": "Delivery staff assigned successfully", "order": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("assign_delivery_error", order_id=order_id)
        raise HTTPException(status_code=500, detail=str(e))
