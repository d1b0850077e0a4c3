"""Order listing and deletion for admins."""
from typing import List

from pymongo.database import Database

from database import to_object_id, to_str_id
from errors import NotFound


def _lookup(db: Database, collection: str, ids, fields: dict) -> dict:
    oids = [oid for oid in (to_object_id(i) for i in set(ids)) if oid]
    return {str(d["_id"]): to_str_id(d) for d in db[collection].find({"_id": {"$in": oids}}, fields)}


def list_orders(db: Database) -> List[dict]:
    """All orders, newest first, with user and product references filled in."""
    orders = list(db["order"].find().sort("created_at", -1))

    users = _lookup(db, "user", [o.get("userId") for o in orders], {"login": 1, "email": 1})
    product_ids = [item.get("productId") for o in orders for item in o.get("items", [])]
    products = _lookup(db, "product", product_ids, {"name": 1, "price": 1})

    out = []
    for order in orders:
        doc = to_str_id(order)
        doc["userId"] = users.get(str(order.get("userId")))
        for item in doc.get("items", []):
            item["productId"] = products.get(str(item.get("productId")))
        out.append(doc)
    return out


def delete_order(db: Database, order_id: str) -> List[dict]:
    oid = to_object_id(order_id)
    result = db["order"].delete_one({"_id": oid}) if oid else None
    if not result or result.deleted_count == 0:
        raise NotFound("Order not found")
    return list_orders(db)
