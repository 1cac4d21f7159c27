import os

# Must be set before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"

import pytest
from decimal import Decimal
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from foodnetwork.main import app
from foodnetwork.database import Base, get_db
from foodnetwork.models.product import Product
from foodnetwork.models.user import User, UserRole
from foodnetwork.schemas.user import AuthContext


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def database():
    """Fresh tables for each test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def task_mocks():
    """Keep notification tasks off the broker."""
    with patch("foodnetwork.tasks.notification_tasks.send_order_confirmation.delay") as order_mock, \
            patch("foodnetwork.tasks.notification_tasks.notify_request_goal_reached.delay") as goal_mock:
        yield {"order_confirmation": order_mock, "goal_reached": goal_mock}


@pytest.fixture(scope="function")
def client():
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    session = TestingSessionLocal()
    yield session
    session.close()


def _make_user(session, email, name, role):
    user = User(email=email, name=name, role=role)
    user.set_password("secret123")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin@example.com", "Admin User", UserRole.ADMIN)


@pytest.fixture
def member_user(db_session):
    return _make_user(db_session, "john@example.com", "John Doe", UserRole.MEMBER)


@pytest.fixture
def other_member(db_session):
    return _make_user(db_session, "jane@example.com", "Jane Smith", UserRole.MEMBER)


@pytest.fixture
def admin_headers(admin_user):
    return {"X-User-Id": str(admin_user.id)}


@pytest.fixture
def member_headers(member_user):
    return {"X-User-Id": str(member_user.id)}


@pytest.fixture
def other_headers(other_member):
    return {"X-User-Id": str(other_member.id)}


@pytest.fixture
def admin_ctx(admin_user):
    return AuthContext(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def member_ctx(member_user):
    return AuthContext(user_id=member_user.id, role=UserRole.MEMBER)


@pytest.fixture
def make_product(db_session):
    """Insert a product directly, bypassing the API."""
    def _make(name="Organic Brown Rice", unit_price="24.99", current_stock=50, **kwargs):
        product = Product(
            name=name,
            unit_price=Decimal(unit_price),
            current_stock=current_stock,
            **kwargs
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


@pytest.fixture
def session_factory():
    """Factory for extra sessions on the test database."""
    return TestingSessionLocal
