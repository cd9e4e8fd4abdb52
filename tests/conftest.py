"""
Shared fixtures: an in-memory MongoDB (mongomock) wired into the app
through the current_db dependency.
"""

import pytest
import mongomock
from fastapi.testclient import TestClient

from main import app, current_db


@pytest.fixture
def mongo_db():
    client = mongomock.MongoClient()
    yield client["lessons_test"]
    client.close()


@pytest.fixture
def lessons(mongo_db):
    docs = [
        {"topic": "Intro to C++", "price": 120, "location": "Mill Hill", "space": 5, "desc": "Programming"},
        {"topic": "Math", "price": 3, "location": "Hendon", "space": 10},
        {"topic": "Art", "price": 70, "location": "Room 3B", "space": 0},
        {"topic": "Music", "price": 80, "location": "Colindale", "space": 3},
    ]
    mongo_db["lessons"].insert_many(docs)
    return list(mongo_db["lessons"].find())


def _client_for(db):
    app.dependency_overrides[current_db] = lambda: db
    # No context manager: the lifespan would try to reach a real server.
    return TestClient(app)


@pytest.fixture
def client(mongo_db):
    yield _client_for(mongo_db)
    app.dependency_overrides.clear()


@pytest.fixture
def client_factory():
    yield _client_for
    app.dependency_overrides.clear()
