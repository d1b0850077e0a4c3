import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import issue_token
from database import create_document, get_db
from main import app


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    yield client["shop_test"]
    client.close()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db):
    def _make(name="Mug", price=100.0, stock=5, category="Home"):
        return create_document(db, "product", {
            "name": name,
            "price": price,
            "stock": stock,
            "category": category,
            "description": None,
            "image": "",
        })
    return _make


@pytest.fixture
def make_user(db):
    def _make(login="alice", role="user", basket=None):
        return create_document(db, "user", {
            "login": login,
            "email": f"{login}@example.com",
            "password": "x",
            "role": role,
            "basket": basket or [],
        })
    return _make


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def user_client(client, user_id):
    client.cookies.set("token", issue_token(user_id))
    return client


@pytest.fixture
def admin_client(client, make_user):
    admin_id = make_user(login="root", role="admin")
    client.cookies.set("token", issue_token(admin_id, role="admin"))
    return client
