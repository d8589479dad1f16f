import os
import tempfile

# must be set before laundrylocator.db is imported
_DB_FILE = os.path.join(tempfile.mkdtemp(prefix="laundrylocator-"), "test.db")
os.environ["POSTGRES_URL"] = f"sqlite:///{_DB_FILE}"
os.environ["ENABLE_SCHEDULER"] = "0"

import pytest
from fastapi.testclient import TestClient

from laundrylocator import models
from laundrylocator.db import Base, SessionLocal, engine, get_db
from laundrylocator.main import app


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.state.cache.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_laundromat(db, **overrides):
    n = db.query(models.Laundromat).count() + 1
    data = {
        "slug": f"laundromat-{n}",
        "name": f"Laundromat {n}",
        "address": f"{n} Main St",
        "city": "Denver",
        "state": "CO",
        "zip": "80202",
        "hours": "24 Hours",
        "services": ["Wash & Fold"],
    }
    data.update(overrides)
    obj = models.Laundromat(**data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def make_user(db, username="owner", role="user"):
    user = models.User(username=username, email=f"{username}@example.com", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
