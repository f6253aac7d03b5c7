import os
from decimal import Decimal
from typing import Generator
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read when the app module is imported
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from storefront.db import Base, get_db  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront import crud, schemas  # noqa: E402

@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register through the API and return the response body ({user, token})."""
    def _register(email="a@x.com", password="password1", **extra):
        r = client.post("/auth/register", json={"email": email, "password": password, **extra})
        assert r.status_code == 201, r.text
        return r.json()
    return _register


@pytest.fixture
def user_headers(register):
    return bearer(register("shopper@example.com")["token"])


@pytest.fixture
def admin_headers(register, db_session):
    body = register("admin@example.com", "adminpass1")
    crud.update_user_role(db_session, body["user"]["id"], "admin")
    return bearer(body["token"])


@pytest.fixture
def product(db_session):
    return crud.create_product(
        db_session,
        schemas.ProductCreate(name="Desk Lamp", price=Decimal("19.99"), image_url="/img/lamp.png", stock=5),
    )


@pytest.fixture
def other_product(db_session):
    return crud.create_product(db_session, schemas.ProductCreate(name="Notebook", price=Decimal("4.50")))
