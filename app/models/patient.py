from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Date, ForeignKey, Enum, Text, JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class PatientSequence(Base):
    """Compteur journalier des numéros patients (P-YYYYMMDD-NNNN)."""
    __tablename__ = "patient_sequences"

    date_key = Column(String(8), primary_key=True)
    last_number = Column(Integer, default=0, nullable=False)


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    patient_no = Column(String, unique=True, nullable=False, index=True)
    franchise_id = Column(Integer, ForeignKey("franchises.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True)
    lab_id = Column(Integer, ForeignKey("labs.id", ondelete="SET NULL"), nullable=True)

    # Identité
    first_name = Column(String, nullable=False)
    middle_name = Column(String, nullable=True)
    last_name = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(Enum(Gender), nullable=False)

    # Contact
    address = Column(Text, nullable=True)
    state_id = Column(Integer, ForeignKey("states.id"), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id"), nullable=True)
    pincode = Column(String, nullable=True)
    mobile = Column(String, nullable=False, index=True)
    mobile2 = Column(String, nullable=True)
    email = Column(String, nullable=True)

    # Données cliniques et sociales
    blood_group = Column(String, nullable=True)
    height = Column(Float, nullable=True)  # cm
    weight = Column(Float, nullable=True)  # kg
    bmi = Column(Float, nullable=True)
    marital_status = Column(String, nullable=True)
    occupation = Column(String, nullable=True)
    aadhar_no = Column(String, nullable=True)
    referred_by = Column(String, nullable=True)
    is_referred_to_ho = Column(Boolean, default=False, nullable=False)

    # Personne à contacter
    contact_person_name = Column(String, nullable=True)
    contact_person_relation = Column(String, nullable=True)
    contact_person_mobile = Column(String, nullable=True)

    # Assurance
    medical_insurance = Column(Boolean, default=False, nullable=False)
    primary_insurance_name = Column(String, nullable=True)
    primary_insurance_holder_name = Column(String, nullable=True)
    primary_insurance_id = Column(String, nullable=True)
    secondary_insurance_name = Column(String, nullable=True)
    secondary_insurance_holder_name = Column(String, nullable=True)
    secondary_insurance_id = Column(String, nullable=True)

    balance_amount = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    franchise = relationship("Franchise")
    team = relationship("Team")
    lab = relationship("Lab")
    state = relationship("State")
    city = relationship("City")
    medical_history = relationship(
        "PatientMedicalHistory", back_populates="patient", uselist=False, cascade="all, delete-orphan"
    )
    reports = relationship("PatientReport", back_populates="patient", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="patient", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.middle_name, self.last_name) if part)


class PatientMedicalHistory(Base):
    __tablename__ = "patient_medical_histories"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False)
    medical_history = Column(JSON, nullable=True)
    surgical_history = Column(JSON, nullable=True)
    family_history = Column(JSON, nullable=True)
    allergies = Column(JSON, nullable=True)
    current_medications = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    patient = relationship("Patient", back_populates="medical_history")


class PatientReport(Base):
    __tablename__ = "patient_reports"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    patient = relationship("Patient", back_populates="reports")
