"""
Database Schemas

Pydantic models that define MongoDB collections for the Meshi ordering API.
Each model name maps to a lowercase collection name.

Example: class Deliverystaff(BaseModel) -> "deliverystaff" collection
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any

class User(BaseModel):
    name: str = Field(..., description="Customer full name")
    email: str = Field(..., description="Login email")
    mobile: Optional[str] = Field(None, description="Contact number")
    default_location: Optional[Dict[str, Any]] = Field(None, description="Last used delivery address")
    role: str = Field("customer", description="Always 'customer'")

class Vendor(BaseModel):
    name: str = Field(..., description="Storefront name")
    email: str = Field(..., description="Login email")
    cuisine: Optional[str] = Field(None, description="Cuisine type")
    image_url: Optional[str] = Field(None, description="Cover image URL")
    rating: Optional[float] = Field(4.5, ge=0, le=5, description="Average rating")
    delivery_time_min: Optional[int] = Field(25, ge=5, le=120, description="Estimated delivery time in minutes")
    is_open: bool = Field(True, description="Whether the storefront accepts orders")
    role: str = Field("vendor", description="Always 'vendor'")

class Menuitem(BaseModel):
    vendor_id: str = Field(..., description="ID of the vendor this item belongs to")
    name: str = Field(..., description="Dish name")
    description: Optional[str] = Field(None, description="Short description")
    price: float = Field(..., ge=0, description="Price in rupees")
    category: Optional[str] = Field(None, description="Menu category")
    image_url: Optional[str] = Field(None, description="Dish image URL")
    is_veg: bool = Field(False, description="Vegetarian flag")
    is_available: bool = Field(True, description="Whether the item can be ordered")

class Deliverystaff(BaseModel):
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Login email")
    mobile: str = Field(..., description="Contact number")
    vendor_id: str = Field(..., description="Vendor this staff member delivers for")
    status: str = Field("pending", description="pending | active | inactive")
    current_location: Optional[Dict[str, Any]] = Field(None, description="{latitude, longitude, last_updated}")
    role: str = Field("delivery", description="Always 'delivery'")

class OrderItem(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    is_veg: bool = False

class DeliveryAddress(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    landmark: Optional[str] = None

class Order(BaseModel):
    customer_id: str = Field(..., description="Customer who placed the order")
    vendor_id: str = Field(..., description="Vendor serving the order")
    items: List[OrderItem] = Field(..., description="Frozen line snapshots taken at order time")
    total_amount: float = Field(..., ge=0, description="Sum of price x quantity at creation")
    status: str = Field("pending", description="Order status")
    delivery_address: Optional[DeliveryAddress] = None
    payment_method: str = Field(..., description="cod | upi | card | razorpay")
    payment_status: str = Field("pending", description="pending | completed | failed | refunded")
    payment_info: Optional[Dict[str, Any]] = Field(None, description="Payment confirmation")
    special_instructions: Optional[str] = None
    delivery_staff_id: Optional[str] = Field(None, description="Assigned delivery staff, if any")
