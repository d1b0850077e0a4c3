"""
Database Schemas for the shop

Each Pydantic model represents a collection (or an embedded document) in MongoDB.
Collection name is the lowercase of the class name.
"""

from pydantic import BaseModel, Field, StrictInt
from typing import List, Optional, Literal, Any

PaymentMethod = Literal["card", "cash", "online"]


class Product(BaseModel):
    name: str = Field(..., description="Product name")
    price: float = Field(..., ge=0, description="Unit price")
    stock: int = Field(0, ge=0, le=100, description="Units available")
    category: str = Field("", description="Category")
    description: Optional[str] = Field(None, description="Product description")
    image: str = Field("", description="Image URL")


# Embedded in user.basket
class BasketLine(BaseModel):
    productId: str
    quantity: int = Field(..., ge=1)


class OrderItem(BaseModel):
    productId: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price at checkout time")


class ShippingAddress(BaseModel):
    firstName: str
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: str
    city: str
    postalCode: str


class Order(BaseModel):
    userId: str
    items: List[OrderItem]
    total: float = Field(..., ge=0)
    shippingAddress: ShippingAddress
    paymentMethod: PaymentMethod
    status: Literal["pending", "paid", "shipped", "cancelled"] = "pending"


# Request bodies

class BasketAddRequest(BaseModel):
    productId: Optional[str] = None
    quantity: Optional[StrictInt] = None


class QuantityUpdate(BaseModel):
    quantity: Optional[StrictInt] = None


class CheckoutRequest(BaseModel):
    # Client echo of its basket view, never read: the stored basket is what gets ordered
    basket: Optional[List[Any]] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    paymentMethod: Optional[str] = None
