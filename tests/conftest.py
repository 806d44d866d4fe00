import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("OPENAI_API_KEY", "")

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.database import Base, get_db
from app.core.transitions import utcnow
from app.models.ad import Ad, AdStatus
from main import app as fastapi_app


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_ad(db):
    """Insert an Ad row directly, bypassing the lifecycle rules."""

    def _make_ad(**fields):
        defaults = {
            "id": str(uuid4()),
            "name": "2026-01-01_test",
            "concept": "Test concept",
            "hypothesis": "",
            "status": AdStatus.IDEA,
        }
        defaults.update(fields)
        ad = Ad(**defaults)
        db.add(ad)
        db.commit()
        db.refresh(ad)
        return ad

    return _make_ad


@pytest.fixture
def locked_testing_fields():
    now = utcnow()
    return {
        "status": AdStatus.TESTING,
        "hypothesis": "Fear of missing out beats discounts",
        "is_locked": True,
        "testing_started_at": now - timedelta(days=2),
        "review_date": now + timedelta(days=8),
    }
