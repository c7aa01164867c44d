"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- A fresh SQLite database per test and a TestClient bound to it
- Users by role (admin, franchise, doctor) with their auth headers
- Model instances (Franchise, Team, Medicine, Patient, stock batches)
"""
import os
import tempfile

# Configuration lue à l'import de app.core.config
os.environ["DATABASE_URL"] = "sqlite:///./test_clinic.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="clinic-uploads-")

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.security import create_access_token, get_password_hash  # noqa: E402
from app.db.base import Base, SessionLocal, engine, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.franchise import Franchise  # noqa: E402
from app.models.medicine import Brand, Medicine  # noqa: E402
from app.models.patient import Gender, Patient  # noqa: E402
from app.models.team import Team  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.services.stock import adjust_admin_stock, adjust_franchise_stock  # noqa: E402

API = "/api/v1"
PASSWORD = "testpass123"


# ============================================================================
# Database and client
# ============================================================================

@pytest.fixture
def db():
    """Session on a freshly created schema."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """TestClient whose requests use their own sessions on the test database."""

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# Helpers
# ============================================================================

def make_user(db, email, role, name="Test User", is_active=True):
    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token(
        subject=user.id,
        role=user.role.value,
        franchise_id=user.resolved_franchise_id,
    )
    return {"Authorization": f"Bearer {token}"}


def make_franchise(db, name, email, mobile="9000000001"):
    user = make_user(db, email, UserRole.FRANCHISE, name=f"{name} Owner")
    franchise = Franchise(
        name=name,
        city="Pune",
        state="Maharashtra",
        pincode="411001",
        contact_no=mobile,
        contact_email=email,
        user_mobile=mobile,
        user_id=user.id,
    )
    db.add(franchise)
    db.commit()
    db.refresh(franchise)
    db.refresh(user)
    return franchise


def make_team(db, franchise, email, name="Dr. Test"):
    user = make_user(db, email, UserRole.DOCTOR, name=name)
    team = Team(name=name, franchise_id=franchise.id, user_id=user.id)
    db.add(team)
    db.commit()
    db.refresh(team)
    db.refresh(user)
    return team


def future(days):
    return date.today() + timedelta(days=days)


def seed_franchise_batch(db, franchise, medicine, batch_number, expiry_date, quantity):
    """Place a batch directly in a franchise's stock."""
    adjust_franchise_stock(
        db,
        franchise_id=franchise.id,
        medicine_id=medicine.id,
        delta=quantity,
        batch_number=batch_number,
        expiry_date=expiry_date,
    )
    db.commit()


def seed_admin_batch(db, medicine, batch_number, expiry_date, quantity):
    adjust_admin_stock(
        db,
        medicine_id=medicine.id,
        delta=quantity,
        batch_number=batch_number,
        expiry_date=expiry_date,
    )
    db.commit()


# ============================================================================
# Users by role
# ============================================================================

@pytest.fixture
def admin(db):
    """Head office administrator: masters, sales and dispatch."""
    return make_user(db, "admin@test.com", UserRole.ADMIN, name="Admin")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def franchise(db):
    """Franchise with its login account."""
    return make_franchise(db, "Pune Central", "pune@test.com")


@pytest.fixture
def franchise_user(franchise):
    return franchise.user


@pytest.fixture
def franchise_headers(franchise_user):
    return auth_headers(franchise_user)


@pytest.fixture
def other_franchise(db):
    """A second franchise, used to check isolation."""
    return make_franchise(db, "Mumbai West", "mumbai@test.com", mobile="9000000002")


@pytest.fixture
def other_franchise_headers(other_franchise):
    return auth_headers(other_franchise.user)


@pytest.fixture
def team(db, franchise):
    """Doctor of the main franchise."""
    return make_team(db, franchise, "doctor@test.com")


@pytest.fixture
def doctor_headers(team):
    return auth_headers(team.user)


# ============================================================================
# Model instances
# ============================================================================

@pytest.fixture
def brand(db):
    brand = Brand(name="Healwell")
    db.add(brand)
    db.commit()
    db.refresh(brand)
    return brand


@pytest.fixture
def medicine(db, brand):
    medicine = Medicine(name="Arnica 30", brand_id=brand.id, rate=50.0, mrp=80.0)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    return medicine


@pytest.fixture
def patient(db, franchise, team):
    patient = Patient(
        patient_no="P-20260101-0001",
        franchise_id=franchise.id,
        team_id=team.id,
        first_name="Asha",
        last_name="Patil",
        gender=Gender.FEMALE,
        age=34,
        mobile="9876543210",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@pytest.fixture
def other_patient(db, other_franchise):
    patient = Patient(
        patient_no="P-20260101-0002",
        franchise_id=other_franchise.id,
        first_name="Ravi",
        last_name="Kumar",
        gender=Gender.MALE,
        age=41,
        mobile="9876500000",
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


def cash_receipt(amount, receipt_date=None):
    """Payload for a cash receipt."""
    return {
        "payment_mode": "CASH",
        "payer_name": "Asha Patil",
        "contact_number": "9876543210",
        "amount": amount,
        "date": (receipt_date or date.today()).isoformat(),
    }
