#!/usr/bin/env python3
"""
Initialise la base: tables, premier administrateur et, avec --demo, une
franchise de démonstration avec un médecin.

Usage:
    python scripts/init_db.py [--demo]

Identifiants admin lus depuis ADMIN_NAME, ADMIN_EMAIL et ADMIN_PASSWORD;
sans ADMIN_PASSWORD un mot de passe est généré et affiché une seule fois.
"""
import os
import secrets
import string
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.security import get_password_hash  # noqa: E402
from app.db.base import Base, SessionLocal, engine  # noqa: E402
from app.models.franchise import Franchise  # noqa: E402
from app.models.team import Team  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
import app.models  # noqa: E402, F401


def generate_password(length=12):
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def get_or_create_user(db, email, name, role, password):
    """Retourne (utilisateur, mot de passe en clair ou None s'il existait déjà)."""
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user, None
    user = User(name=name, email=email, role=role, hashed_password=get_password_hash(password))
    db.add(user)
    db.flush()
    return user, password


def seed_demo(db):
    owner, owner_password = get_or_create_user(
        db, "franchise@demo.com", "Demo Franchise", UserRole.FRANCHISE, generate_password()
    )
    if owner.franchise is None:
        db.add(Franchise(
            name="Demo Clinic",
            city="Pune",
            state="Maharashtra",
            pincode="411001",
            contact_no="9000000000",
            contact_email="franchise@demo.com",
            user_mobile="9000000000",
            franchise_fee_amount=0.0,
            user_id=owner.id,
        ))
        db.flush()
        db.refresh(owner)

    doctor, doctor_password = get_or_create_user(
        db, "doctor@demo.com", "Dr. Demo", UserRole.DOCTOR, generate_password()
    )
    if doctor.team is None:
        db.add(Team(name="Dr. Demo", franchise_id=owner.franchise.id, user_id=doctor.id))

    return [("franchise@demo.com", owner_password), ("doctor@demo.com", doctor_password)]


def init_db(with_demo: bool = False) -> None:
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        credentials = []
        if db.query(User).filter(User.role == UserRole.ADMIN).first() is None:
            email = os.getenv("ADMIN_EMAIL", "admin@clinic-manager.com")
            _, password = get_or_create_user(
                db,
                email,
                os.getenv("ADMIN_NAME", "Administrator"),
                UserRole.ADMIN,
                os.getenv("ADMIN_PASSWORD") or generate_password(),
            )
            credentials.append((email, password))
        else:
            print("Administrateur déjà existant, rien à créer")

        if with_demo:
            credentials.extend(seed_demo(db))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print("✅ Base de données initialisée")
    for email, password in credentials:
        if password:
            print(f"   {email} / {password}")


if __name__ == "__main__":
    init_db(with_demo="--demo" in sys.argv[1:])
