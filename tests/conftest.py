"""Test fixtures: an in-memory database per test.

Learn: Each test gets a fresh SQLite engine held on a single connection
(StaticPool), so every Session the repo opens sees the same in-memory
database. Tables are created from the models' metadata; nothing survives
past the test.

bcrypt's work factor is dropped to the minimum so hashing doesn't
dominate the suite's runtime.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authex import context
from authex.config import Config, settings
from authex.db.models import Base, User
from authex.repo import Repo


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(settings, "password_hash_rounds", 4)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def repo(engine):
    return Repo(sessionmaker(engine, expire_on_commit=False))


@pytest.fixture()
def config(repo):
    return Config(repo=repo, user=User)


@pytest.fixture()
def stored_user(config):
    """A persisted user: alice@example.com / correct-horse."""
    result = context.create(
        config,
        {"email": "alice@example.com", "name": "Alice", "password": "correct-horse"},
    )
    assert result.ok, result
    return result.value
