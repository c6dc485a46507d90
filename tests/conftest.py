from datetime import datetime, timezone

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import main
from auth import create_access_token
from database import get_db
from images import ImageStore


@pytest.fixture
def db():
    return mongomock.MongoClient()["fashion_store_test"]


@pytest.fixture
def assets_dir(tmp_path):
    path = tmp_path / "Products"
    path.mkdir()
    return path


@pytest.fixture
def image_store(assets_dir):
    return ImageStore(str(assets_dir))


@pytest.fixture
def client(db, image_store):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[main.get_image_store] = lambda: image_store
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


def make_user(db, role, email=None):
    result = db["user"].insert_one({
        "name": f"{role.title()} User",
        "email": email or f"{role}@example.com",
        "password_hash": "not-a-real-hash",
        "role": role,
        "is_deleted": False,
    })
    return result.inserted_id


def auth_headers(user_id, role, **token_kwargs):
    token = create_access_token({"id": str(user_id), "email": f"{role}@example.com", "role": role}, **token_kwargs)
    return {"authorization": token}


@pytest.fixture
def admin_headers(db):
    return auth_headers(make_user(db, "admin"), "admin")


@pytest.fixture
def customer_headers(db):
    return auth_headers(make_user(db, "customer"), "customer")


@pytest.fixture
def category(db):
    result = db["category"].insert_one({"name": "Shirts", "cat_no": 7})
    return db["category"].find_one({"_id": result.inserted_id})


def insert_product(db, category, **overrides):
    doc = {
        "product_id": "PAT01CAT07",
        "name": "Linen Shirt",
        "description": "Breathable summer shirt",
        "price": 25.0,
        "category": category["_id"],
        "stock_quantity": 10,
        "gender": "men",
        "size": "M",
        "color": "white",
        "images": [],
        "is_deleted": False,
        "is_updated": False,
        "created_at": datetime.now(timezone.utc),
    }
    doc.update(overrides)
    return db["product"].insert_one(doc).inserted_id


def write_image(assets_dir, name):
    path = assets_dir / name
    path.write_bytes(b"old-image")
    return str(path)


def image_part(name="front.jpg", content=b"fake-image-bytes"):
    return ("images", (name, content, "image/jpeg"))


def missing_id():
    return str(ObjectId())
