"""Pytest fixtures for API testing."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fips_reporting.main import app
from fips_reporting.core.database import get_db
from fips_reporting.core.security import get_password_hash, create_access_token
from fips_reporting.models.base import Base
from fips_reporting.models.user import User, UserRole
from fips_reporting.models.performance_metric import MetricMeasure, PerformanceMetric
from fips_reporting.models.reporting import ProductAllocation

# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client with database override.

    Note: db_session already created tables, so we don't need to create them again.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _create_user(db_session, email, full_name, password, role):
    user = User(
        email=email,
        full_name=full_name,
        password_hash=get_password_hash(password),
        role=role.value
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_user(db_session):
    """Create a reporting user."""
    return _create_user(db_session, "reporter@example.com", "Report User", "testpass123", UserRole.REPORTING_USER)


@pytest.fixture
def second_user(db_session):
    """Create another reporting user with no allocations."""
    return _create_user(db_session, "other@example.com", "Other User", "otherpass123", UserRole.REPORTING_USER)


@pytest.fixture
def admin_user(db_session):
    """Create an admin user."""
    return _create_user(db_session, "admin@example.com", "Admin User", "admin123", UserRole.ADMIN)


@pytest.fixture
def central_ops_user(db_session):
    """Create a central operations user."""
    return _create_user(db_session, "centralops@example.com", "Central Ops", "ops123", UserRole.CENTRAL_OPERATIONS)


@pytest.fixture
def auth_headers(test_user):
    """Get authorization headers for test user."""
    token = create_access_token(data={"sub": test_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def second_user_headers(second_user):
    token = create_access_token(data={"sub": second_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    """Get authorization headers for admin user."""
    token = create_access_token(data={"sub": admin_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def central_ops_headers(central_ops_user):
    token = create_access_token(data={"sub": central_ops_user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def metrics(db_session):
    """Create a small enabled metric library plus one disabled metric."""
    users = PerformanceMetric(
        unique_id="PM-001",
        name="Active users",
        category="Usage",
        measure=MetricMeasure.NUMBER.value,
        mandatory=True,
        validation_criteria="min:0,max:100"
    )
    availability = PerformanceMetric(
        unique_id="PM-002",
        name="Service availability",
        category="Reliability",
        measure=MetricMeasure.PERCENTAGE.value,
        mandatory=True,
        validation_criteria="min:0,max:100",
        can_report_null_return=True
    )
    hosting = PerformanceMetric(
        unique_id="PM-003",
        name="Hosting model",
        category="Technology",
        measure=MetricMeasure.SINGLE_OPTION.value,
        validation_criteria="Cloud,On-premises,Hybrid"
    )
    retired = PerformanceMetric(
        unique_id="PM-099",
        name="Retired metric",
        category="Usage",
        measure=MetricMeasure.TEXT.value,
        enabled=False
    )
    db_session.add_all([users, availability, hosting, retired])
    db_session.commit()
    for metric in (users, availability, hosting, retired):
        db_session.refresh(metric)

    return {
        "users": users,
        "availability": availability,
        "hosting": hosting,
        "retired": retired
    }


@pytest.fixture
def allocations(db_session, test_user):
    """Allocate two products to the reporting user."""
    payments = ProductAllocation(
        product_id="FIPS-0001",
        product_name="Claim Additional Payments",
        phase="Live",
        user_email=test_user.email,
        allocated_by="admin@example.com"
    )
    finder = ProductAllocation(
        product_id="FIPS-0002",
        product_name="School Places Finder",
        phase="Beta",
        user_email=test_user.email,
        allocated_by="admin@example.com"
    )
    db_session.add_all([payments, finder])
    db_session.commit()
    db_session.refresh(payments)
    db_session.refresh(finder)
    return {"payments": payments, "finder": finder}


@pytest.fixture
def central_ops_allocation(db_session, central_ops_user):
    """Allocate a product to the central operations user."""
    allocation = ProductAllocation(
        product_id="FIPS-0003",
        product_name="Get Help With Tech",
        phase="Live",
        user_email=central_ops_user.email,
        allocated_by="admin@example.com"
    )
    db_session.add(allocation)
    db_session.commit()
    db_session.refresh(allocation)
    return allocation
