"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from checkin_api.db.base import Base
from checkin_api.models import Event, Purchase, UserRole, Venda
from checkin_api.settings import get_settings


# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite:///:memory:"
)


@pytest.fixture(scope="function")
def db():
    """
    Create a test database session.

    For integration tests, use TEST_DATABASE_URL environment variable
    to point to a real PostgreSQL instance.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def test_event(db: Session) -> Event:
    """Create a test event."""
    event = Event(id="E1", title="Festival de Inverno", location="Arena")
    db.add(event)
    db.commit()
    return event


@pytest.fixture
def make_sale(db: Session):
    """Factory for sale records."""

    def _make_sale(
        id="V1",
        id_compra="P1",
        id_evento="E1",
        id_ingresso="T1",
        status="confirmado",
        buyer_email="a@b.com",
        buyer_name="Ana Souza",
        **kwargs,
    ) -> Venda:
        sale = Venda(
            id=id,
            id_compra=id_compra,
            id_evento=id_evento,
            id_ingresso=id_ingresso,
            status=status,
            buyer_email=buyer_email,
            buyer_name=buyer_name,
            **kwargs,
        )
        db.add(sale)
        db.commit()
        return sale

    return _make_sale


@pytest.fixture
def make_purchase(db: Session):
    """Factory for purchase records."""

    def _make_purchase(id="PUR1", id_compra="P1", status="paid", **kwargs) -> Purchase:
        purchase = Purchase(id=id, id_compra=id_compra, status=status, **kwargs)
        db.add(purchase)
        db.commit()
        return purchase

    return _make_purchase


@pytest.fixture
def admin_role(db: Session) -> UserRole:
    """Grant the admin role to user-admin."""
    role = UserRole(user_id="user-admin", role="admin")
    db.add(role)
    db.commit()
    return role


@pytest.fixture
def make_token():
    """Factory for identity-provider access tokens."""
    settings = get_settings()

    def _make_token(sub="user-1", email="operador@example.com", expires_in=3600, secret=None, **claims):
        payload = {
            "sub": sub,
            "email": email,
            "aud": settings.jwt_audience,
            "exp": datetime.utcnow() + timedelta(seconds=expires_in),
            **claims,
        }
        return jwt.encode(payload, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    return _make_token


@pytest.fixture
def client(db: Session):
    """Test client bound to the test database session."""
    from fastapi.testclient import TestClient

    from checkin_api.db.session import get_db, get_session_factory
    from checkin_api.main import app

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_session_factory] = lambda: sessionmaker(
        autocommit=False, autoflush=False, bind=db.get_bind()
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
