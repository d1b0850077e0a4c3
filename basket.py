"""
Basket Manager

Keeps the basket embedded in the user document. Every mutation checks the
requested quantity against the product's current stock; stock itself is
only decremented at checkout.
"""
import logging
from typing import List, Optional

from pymongo.database import Database

from database import to_object_id, to_str_id
from errors import InvalidRequest, NotFound, OutOfStock
from schemas import BasketLine

logger = logging.getLogger(__name__)


def find_user(db: Database, user_id: str) -> dict:
    oid = to_object_id(user_id)
    user = db["user"].find_one({"_id": oid}) if oid else None
    if not user:
        raise NotFound("User not found")
    return user


def find_product(db: Database, product_id) -> Optional[dict]:
    oid = to_object_id(product_id)
    if oid is None:
        return None
    return db["product"].find_one({"_id": oid})


def resolve_basket(db: Database, basket: List[dict]) -> List[dict]:
    """Replace each productId with the product document.

    Lines whose product has been deleted are left out of the result but are
    not removed from storage.
    """
    ids = [oid for oid in (to_object_id(line["productId"]) for line in basket) if oid]
    products = {str(p["_id"]): p for p in db["product"].find({"_id": {"$in": ids}})}

    resolved = []
    for line in basket:
        product = products.get(str(line["productId"]))
        if product is None:
            continue
        resolved.append({"productId": to_str_id(product), "quantity": line["quantity"]})
    return resolved


def _save_basket(db: Database, user: dict, basket: List[dict]) -> List[dict]:
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"basket": basket}})
    return resolve_basket(db, basket)


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidRequest("Quantity must be a positive integer")


def get_basket(db: Database, user_id: str) -> List[dict]:
    user = find_user(db, user_id)
    return resolve_basket(db, user.get("basket") or [])


def add_item(db: Database, user_id: str, product_id: Optional[str], quantity: Optional[int]) -> List[dict]:
    if not product_id or quantity is None:
        raise InvalidRequest("Product ID and quantity are required")
    _check_quantity(quantity)

    user = find_user(db, user_id)
    product = find_product(db, product_id)
    if not product:
        raise NotFound("Product not found")

    # Only the requested quantity is compared, not what is already in the basket
    if product.get("stock", 0) < quantity:
        raise OutOfStock(product.get("name"))

    product_id = str(product["_id"])
    basket = list(user.get("basket") or [])
    for line in basket:
        if str(line["productId"]) == product_id:
            line["quantity"] += quantity
            break
    else:
        basket.append(BasketLine(productId=product_id, quantity=quantity).model_dump())

    logger.debug("user %s added %s x %s to basket", user_id, quantity, product_id)
    return _save_basket(db, user, basket)


def set_quantity(db: Database, user_id: str, product_id: str, quantity: Optional[int]) -> List[dict]:
    _check_quantity(quantity)

    user = find_user(db, user_id)
    product = find_product(db, product_id)
    if not product:
        raise NotFound("Product not found")

    basket = list(user.get("basket") or [])
    line = next((entry for entry in basket if str(entry["productId"]) == str(product["_id"])), None)
    if line is None:
        raise NotFound("Product not in basket")

    if product.get("stock", 0) < quantity:
        raise OutOfStock(product.get("name"))

    line["quantity"] = quantity
    return _save_basket(db, user, basket)


def remove_item(db: Database, user_id: str, product_id: str) -> List[dict]:
    user = find_user(db, user_id)
    basket = [line for line in (user.get("basket") or []) if str(line["productId"]) != product_id]
    return _save_basket(db, user, basket)
