"""Shared pytest fixtures for the art community service tests."""

import os

# Must be set before any artcommunity module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["BFL_API_KEY"] = "test-key"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import datetime
from itertools import count
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from artcommunity.api.dependencies import get_generation_client
from artcommunity.auth.security import create_access_token, hash_password
from artcommunity.auth.validator import AuthenticatedUser
from artcommunity.database import (
    Artwork, Collection, PersistenceGateway, SessionLocal, User, create_tables, drop_tables
)
from artcommunity.generation.bfl_client import ProxyResponse
from artcommunity.main import app

PASSWORD = "secret123"
# Saturday
NOW = datetime(2024, 6, 15, 12, 0, 0)


def persist(*objects):
    """Insert rows in a short-lived session and return them detached.

    Returns:
        The single object, or a tuple when several were given
    """
    db = SessionLocal()
    try:
        db.add_all(objects)
        db.commit()
        for obj in objects:
            db.refresh(obj)
            db.expunge(obj)
    finally:
        db.close()
    return objects[0] if len(objects) == 1 else objects


def identity_of(user: User) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=user.id,
        username=user.username,
        email=user.email,
        display_name=user.display_name,
    )


def auth_headers(user: User) -> dict:
    """Bearer header carrying a freshly signed token for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}


class FakeGenerationClient:
    """Stands in for the BFL client; records calls and replays a canned outcome."""

    def __init__(self):
        self.calls = []
        self.response = ProxyResponse(status_code=200, body={"id": "request-1"})
        self.error = None

    async def forward(self, endpoint, params):
        self.calls.append(("forward", endpoint, params))
        if self.error:
            raise self.error
        return self.response

    async def get_result(self, request_id):
        self.calls.append(("get_result", request_id))
        if self.error:
            raise self.error
        return self.response

    async def aclose(self):
        pass


@pytest.fixture(autouse=True)
def fresh_database() -> Generator[None, None, None]:
    """Every test starts from empty tables."""
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def gateway() -> Generator[PersistenceGateway, None, None]:
    db = SessionLocal()
    try:
        yield PersistenceGateway(db)
    finally:
        db.close()


@pytest.fixture
def make_user():
    """Factory creating users with the shared test password."""
    counter = {"n": 0}

    def _make(username=None, email=None, **fields):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(PASSWORD),
            display_name=fields.pop("display_name", username.title()),
            **fields,
        )
        return persist(user)

    return _make


@pytest.fixture
def make_artwork():
    """Factory creating artworks; public by default."""
    sequence = count(1)

    def _make(user, **fields):
        fields.setdefault("title", "Artwork")
        fields.setdefault("description", "Description")
        fields.setdefault("image_url", f"https://cdn.example.com/{user.id}/{next(sequence)}.png")
        fields.setdefault("is_public", True)
        fields.setdefault("parameters", "{}")
        return persist(Artwork(user_id=user.id, **fields))

    return _make


@pytest.fixture
def make_collection():
    def _make(user, **fields):
        fields.setdefault("name", "Favourites")
        return persist(Collection(user_id=user.id, **fields))

    return _make


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def client(generation_client) -> Generator[TestClient, None, None]:
    """TestClient with the generation client replaced by a fake."""
    app.dependency_overrides[get_generation_client] = lambda: generation_client
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
