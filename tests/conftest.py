import pytest
import os
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import warehouse_api.models  # noqa: F401
from warehouse_api.core.config import settings
from warehouse_api.core.deps import get_db
from warehouse_api.db.base import Base
from warehouse_api.main import app
from warehouse_api.routers.auth import login_rate_limiter

ADMIN_CREDENTIALS = {
    "username": "admin",
    "email": "admin@example.com",
    "password": "password123",
    "full_name": "Warehouse Admin",
}


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture()
def test_context():
    original_secret = settings.secret_key
    settings.secret_key = "test-secret-key"

    engine = _memory_engine()
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
    settings.secret_key = original_secret
    login_rate_limiter.clear()


@pytest.fixture()
def admin_token(test_context) -> str:
    client, _ = test_context
    register_res = client.post("/auth/register", json=ADMIN_CREDENTIALS)
    assert register_res.status_code == 201, register_res.text
    login_res = client.post(
        "/auth/login",
        json={"username": ADMIN_CREDENTIALS["username"], "password": ADMIN_CREDENTIALS["password"]},
    )
    assert login_res.status_code == 200, login_res.text
    return login_res.json()["access_token"]


@pytest.fixture()
def db_session():
    engine = _memory_engine()
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def file_session_factory(tmp_path):
    """Sessions on a file-backed SQLite database, one connection per session, for thread tests."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
