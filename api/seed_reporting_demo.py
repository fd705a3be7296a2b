"""
Seed a local database with demo users, a small metric library and product allocations.

Run after `alembic upgrade head`:
    python seed_reporting_demo.py
"""

from fips_reporting.core.database import SessionLocal
from fips_reporting.core.security import get_password_hash
from fips_reporting.models.performance_metric import MetricMeasure, PerformanceMetric
from fips_reporting.models.reporting import ProductAllocation
from fips_reporting.models.user import User, UserRole

DEMO_USERS = [
    ("admin@example.com", "Portal Admin", "admin123", UserRole.ADMIN),
    ("reporter@example.com", "Product Owner", "reporter123", UserRole.REPORTING_USER),
    ("centralops@example.com", "Central Operations", "centralops123", UserRole.CENTRAL_OPERATIONS),
]

DEMO_METRICS = [
    {
        "unique_id": "PM-001",
        "name": "Active users",
        "category": "Usage",
        "measure": MetricMeasure.NUMBER.value,
        "mandatory": True,
        "validation_criteria": "min:0",
    },
    {
        "unique_id": "PM-002",
        "name": "Service availability",
        "category": "Reliability",
        "measure": MetricMeasure.PERCENTAGE.value,
        "mandatory": True,
        "validation_criteria": "min:0,max:100",
    },
    {
        "unique_id": "PM-003",
        "name": "Accessibility statement published",
        "category": "Compliance",
        "mandate": "Legal",
        "legal_regulatory": True,
        "measure": MetricMeasure.BOOLEAN.value,
        "mandatory": True,
    },
    {
        "unique_id": "PM-004",
        "name": "Hosting model",
        "category": "Technology",
        "measure": MetricMeasure.SINGLE_OPTION.value,
        "validation_criteria": "Cloud,On-premises,Hybrid",
        "can_report_null_return": True,
    },
]

DEMO_PRODUCTS = [
    ("FIPS-0001", "Claim Additional Payments", "Live"),
    ("FIPS-0002", "School Places Finder", "Beta"),
]


def seed_reporting_demo():
    db = SessionLocal()

    try:
        for email, full_name, password, role in DEMO_USERS:
            if db.query(User).filter(User.email == email).first():
                print(f"User {email} already exists, skipping.")
                continue
            db.add(User(
                email=email,
                full_name=full_name,
                password_hash=get_password_hash(password),
                role=role.value
            ))
            print(f"✓ Created user {email} (password: {password})")

        for metric_data in DEMO_METRICS:
            if db.query(PerformanceMetric).filter(
                PerformanceMetric.unique_id == metric_data["unique_id"]
            ).first():
                print(f"Metric {metric_data['unique_id']} already exists, skipping.")
                continue
            db.add(PerformanceMetric(**metric_data, created_by="seed", updated_by="seed"))
            print(f"✓ Created metric {metric_data['unique_id']} {metric_data['name']}")

        for product_id, product_name, phase in DEMO_PRODUCTS:
            if db.query(ProductAllocation).filter(
                ProductAllocation.product_id == product_id,
                ProductAllocation.user_email == "reporter@example.com"
            ).first():
                continue
            db.add(ProductAllocation(
                product_id=product_id,
                product_name=product_name,
                phase=phase,
                user_email="reporter@example.com",
                allocated_by="seed"
            ))
            print(f"✓ Allocated {product_id} to reporter@example.com")

        db.commit()

    except Exception as e:
        db.rollback()
        print(f"✗ Error seeding demo data: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_reporting_demo()
