"""Shared fixtures: in-memory SQLite store, upload directory, API client."""

from __future__ import annotations

import os

# Must be set before customer_intake.db.session builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import customer_intake.models  # noqa: F401
from customer_intake.core.config import Settings, get_settings
from customer_intake.core.deps import get_db
from customer_intake.db.base import Base
from customer_intake.main import create_app
from customer_intake.services.customer_store import CustomerStore


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def store(db_session) -> CustomerStore:
    return CustomerStore(db_session)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def test_settings(upload_dir) -> Settings:
    return Settings(
        database_url="sqlite://",
        environment="test",
        secret_key="test-secret",
        upload_dir=str(upload_dir),
    )


@pytest.fixture
def app(session_factory, test_settings):
    application = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_settings] = lambda: test_settings
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def csrf_token(client) -> str:
    """Open the form once so the session holds a token."""
    return client.get("/api/intake/form").json()["csrf_token"]
