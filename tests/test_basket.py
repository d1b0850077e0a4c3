import pytest
from bson import ObjectId

from basket import _check_quantity
from errors import InvalidRequest


def stored_basket(db, user_id):
    return db["user"].find_one({"_id": ObjectId(user_id)})["basket"]


def test_get_empty_basket(user_client):
    res = user_client.get("/basket")
    assert res.status_code == 200
    assert res.json() == []


def test_basket_requires_session(client):
    assert client.get("/basket").status_code == 401


def test_add_item_returns_resolved_product(user_client, make_product):
    pid = make_product(name="Mug", price=100, stock=5)
    res = user_client.post("/basket", json={"productId": pid, "quantity": 2})
    assert res.status_code == 200
    body = res.json()
    assert len(body) == 1
    assert body[0]["quantity"] == 2
    assert body[0]["productId"]["id"] == pid
    assert body[0]["productId"]["name"] == "Mug"


def test_adding_same_product_twice_merges(user_client, make_product, db, user_id):
    pid = make_product(stock=3)
    user_client.post("/basket", json={"productId": pid, "quantity": 2})
    res = user_client.post("/basket", json={"productId": pid, "quantity": 3})
    assert res.status_code == 200
    assert [line["quantity"] for line in res.json()] == [5]
    assert stored_basket(db, user_id) == [{"productId": pid, "quantity": 5}]


def test_add_checks_requested_quantity_only(user_client, make_product):
    # 2 + 2 against stock 3: each add is within stock on its own
    pid = make_product(stock=3)
    assert user_client.post("/basket", json={"productId": pid, "quantity": 2}).status_code == 200
    res = user_client.post("/basket", json={"productId": pid, "quantity": 2})
    assert res.status_code == 200
    assert res.json()[0]["quantity"] == 4


def test_add_over_stock_leaves_basket_unchanged(user_client, make_product, db, user_id):
    pid = make_product(name="Lamp", stock=1)
    res = user_client.post("/basket", json={"productId": pid, "quantity": 2})
    assert res.status_code == 400
    assert "Lamp" in res.json()["detail"]
    assert stored_basket(db, user_id) == []


def test_add_does_not_touch_stock(user_client, make_product, db):
    pid = make_product(stock=5)
    user_client.post("/basket", json={"productId": pid, "quantity": 4})
    assert db["product"].find_one({"_id": ObjectId(pid)})["stock"] == 5


def test_add_validation(user_client, make_product):
    pid = make_product()
    assert user_client.post("/basket", json={"quantity": 1}).status_code == 400
    assert user_client.post("/basket", json={"productId": pid}).status_code == 400
    assert user_client.post("/basket", json={"productId": pid, "quantity": 0}).status_code == 400
    assert user_client.post("/basket", json={"productId": pid, "quantity": -3}).status_code == 400
    assert user_client.post("/basket", json={"productId": pid, "quantity": "many"}).status_code == 400


def test_add_unknown_product(user_client):
    res = user_client.post("/basket", json={"productId": str(ObjectId()), "quantity": 1})
    assert res.status_code == 404
    res = user_client.post("/basket", json={"productId": "not-an-id", "quantity": 1})
    assert res.status_code == 404


def test_add_for_missing_user(client, make_product):
    from auth import issue_token
    client.cookies.set("token", issue_token(str(ObjectId())))
    res = client.post("/basket", json={"productId": make_product(), "quantity": 1})
    assert res.status_code == 404


def test_set_quantity_replaces(user_client, make_product, db, user_id):
    pid = make_product(stock=10)
    user_client.post("/basket", json={"productId": pid, "quantity": 2})
    res = user_client.put(f"/basket/{pid}", json={"quantity": 7})
    assert res.status_code == 200
    assert res.json()[0]["quantity"] == 7
    assert stored_basket(db, user_id)[0]["quantity"] == 7


def test_set_quantity_item_not_in_basket(user_client, make_product):
    pid = make_product(stock=10)
    res = user_client.put(f"/basket/{pid}", json={"quantity": 1})
    assert res.status_code == 404


def test_set_quantity_unknown_product(user_client):
    res = user_client.put(f"/basket/{ObjectId()}", json={"quantity": 1})
    assert res.status_code == 404


def test_set_quantity_over_stock(user_client, make_product, db, user_id):
    pid = make_product(name="Lamp", stock=3)
    user_client.post("/basket", json={"productId": pid, "quantity": 1})
    res = user_client.put(f"/basket/{pid}", json={"quantity": 4})
    assert res.status_code == 400
    assert "Lamp" in res.json()["detail"]
    assert stored_basket(db, user_id)[0]["quantity"] == 1


def test_set_quantity_invalid(user_client, make_product):
    pid = make_product()
    user_client.post("/basket", json={"productId": pid, "quantity": 1})
    assert user_client.put(f"/basket/{pid}", json={"quantity": 0}).status_code == 400
    assert user_client.put(f"/basket/{pid}", json={}).status_code == 400


def test_remove_item(user_client, make_product):
    keep = make_product(name="Keep")
    drop = make_product(name="Drop")
    user_client.post("/basket", json={"productId": keep, "quantity": 1})
    user_client.post("/basket", json={"productId": drop, "quantity": 1})
    res = user_client.delete(f"/basket/{drop}")
    assert res.status_code == 200
    assert [line["productId"]["name"] for line in res.json()] == ["Keep"]


def test_remove_absent_item_is_noop(user_client, make_product):
    pid = make_product()
    user_client.post("/basket", json={"productId": pid, "quantity": 1})
    res = user_client.delete(f"/basket/{ObjectId()}")
    assert res.status_code == 200
    assert len(res.json()) == 1


def test_deleted_product_hidden_but_kept_in_storage(user_client, make_product, db, user_id):
    gone = make_product(name="Gone")
    here = make_product(name="Here")
    user_client.post("/basket", json={"productId": gone, "quantity": 1})
    user_client.post("/basket", json={"productId": here, "quantity": 1})
    db["product"].delete_one({"_id": ObjectId(gone)})

    res = user_client.get("/basket")
    assert res.status_code == 200
    assert [line["productId"]["name"] for line in res.json()] == ["Here"]
    assert len(stored_basket(db, user_id)) == 2


def test_boolean_quantity_rejected(user_client, make_product, db, user_id):
    pid = make_product(stock=5)
    assert user_client.post("/basket", json={"productId": pid, "quantity": True}).status_code == 400
    assert stored_basket(db, user_id) == []

    user_client.post("/basket", json={"productId": pid, "quantity": 2})
    assert user_client.put(f"/basket/{pid}", json={"quantity": True}).status_code == 400
    assert stored_basket(db, user_id)[0]["quantity"] == 2


def test_check_quantity_rejects_bool():
    with pytest.raises(InvalidRequest):
        _check_quantity(True)
