import os

# Settings are read once at import time; point the app at a throwaway
# database and force both integrations into demo mode before importing it.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_CATALOG"] = "false"
os.environ.pop("CDEK_CLIENT_ID", None)
os.environ.pop("CDEK_CLIENT_SECRET", None)
os.environ.pop("INVESTMENT_API_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from electronics_store.main import app
from electronics_store.database import Base, get_db


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


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def create_product(client):
    """Create a product through the API and return its ID."""
    def _create(name="Test Product", price=100.0, in_stock=5, category="Accessories"):
        response = client.post(
            "/api/products",
            json={"name": name, "price": price, "inStock": in_stock, "category": category}
        )
        assert response.status_code == 201
        return response.json()["productId"]
    return _create
