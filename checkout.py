"""
Checkout Processor

Turns the user's stored basket into an order. Prices always come from the
product collection. Stock is taken with one conditional decrement per
product; if any decrement fails the ones already applied are given back,
so an order is either placed with all of its stock or not placed at all.
"""
import logging
from typing import List, Tuple

from bson import ObjectId
from pymongo.database import Database

from basket import find_product, find_user
from database import create_document
from errors import InvalidRequest, NotFound, OutOfStock
from schemas import CheckoutRequest, Order, OrderItem, ShippingAddress

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("card", "cash", "online")
REQUIRED_FIELDS = ("firstName", "address", "city", "postalCode", "paymentMethod")


def _load_lines(db: Database, basket: List[dict]) -> List[Tuple[dict, int]]:
    lines = []
    for entry in basket:
        product = find_product(db, entry["productId"])
        # Deleted products are dropped, as in the basket view
        if not product:
            logger.info("skipping deleted product %s in basket", entry["productId"])
            continue
        lines.append((product, entry["quantity"]))
    if not lines:
        raise InvalidRequest("Basket is empty")

    # Whole basket is checked before anything is written
    for product, quantity in lines:
        if product.get("stock", 0) < quantity:
            raise OutOfStock(product.get("name"))
    return lines


def release_stock(db: Database, items: List[OrderItem]) -> None:
    for item in items:
        db["product"].update_one({"_id": ObjectId(item.productId)}, {"$inc": {"stock": item.quantity}})
        logger.warning("returned %s units of product %s to stock", item.quantity, item.productId)


def reserve_stock(db: Database, items: List[OrderItem]) -> None:
    reserved: List[OrderItem] = []
    for item in items:
        result = db["product"].update_one(
            {"_id": ObjectId(item.productId), "stock": {"$gte": item.quantity}},
            {"$inc": {"stock": -item.quantity}},
        )
        if result.modified_count == 0:
            release_stock(db, reserved)
            product = find_product(db, item.productId)
            if not product:
                raise NotFound(f"Product not found: {item.productId}")
            raise OutOfStock(product.get("name"))
        reserved.append(item)


def place_order(db: Database, user_id: str, form: CheckoutRequest) -> str:
    if any(not getattr(form, field) for field in REQUIRED_FIELDS):
        raise InvalidRequest("All fields are required")
    if form.paymentMethod not in PAYMENT_METHODS:
        raise InvalidRequest("Unsupported payment method")

    user = find_user(db, user_id)
    basket = user.get("basket") or []
    if not basket:
        raise InvalidRequest("Basket is empty")

    lines = _load_lines(db, basket)
    items = [
        OrderItem(productId=str(product["_id"]), quantity=quantity, price=float(product.get("price", 0)))
        for product, quantity in lines
    ]
    total = round(sum(item.price * item.quantity for item in items), 2)

    order = Order(
        userId=str(user["_id"]),
        items=items,
        total=total,
        shippingAddress=ShippingAddress(
            firstName=form.firstName,
            lastName=form.lastName,
            email=form.email,
            phone=form.phone,
            address=form.address,
            city=form.city,
            postalCode=form.postalCode,
        ),
        paymentMethod=form.paymentMethod,
    )

    reserve_stock(db, items)
    try:
        order_id = create_document(db, "order", order)
    except Exception:
        logger.exception("failed to store order for user %s", user_id)
        release_stock(db, items)
        raise

    db["user"].update_one({"_id": user["_id"]}, {"$set": {"basket": []}})
    logger.info("order %s placed by user %s, total %s", order_id, user_id, total)
    return order_id
