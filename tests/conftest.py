"""Shared pytest fixtures.

Every test gets its own in-process fakeredis server, so no state leaks
between cases.
"""
import os

# bcrypt 最低 rounds，測試才不會慢；要在 import users_api 之前設定
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import fakeredis
import pytest
from fastapi.testclient import TestClient

from server import create_app
from users_api.db.repositories import UserRepository

JOE = {
    "username": "joe",
    "password": "abc123",
    "_id": "AAAAAAAAAAAAAAAAAAAAAAAA",
}

JSON_UTF8 = "application/json; charset=utf-8"


@pytest.fixture
def redis_conn():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def user_repo(redis_conn):
    return UserRepository(redis_conn)


@pytest.fixture
def app(redis_conn):
    return create_app(redis_conn)


@pytest.fixture
def client(app):
    """TestClient with user joe already created through the API."""
    client = TestClient(app)
    res = client.post("/users", json=JOE)
    assert res.status_code == 201
    return client
