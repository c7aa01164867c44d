from typing import Any, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, field_validator

from app.models.patient import Gender
from app.schemas.common import AADHAR_RE, check_mobile, check_pincode


class PatientBase(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    gender: Gender
    address: Optional[str] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    pincode: Optional[str] = None
    mobile: str
    mobile2: Optional[str] = None
    email: Optional[EmailStr] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    marital_status: Optional[str] = None
    occupation: Optional[str] = None
    aadhar_no: Optional[str] = None
    referred_by: Optional[str] = None
    is_referred_to_ho: bool = False
    contact_person_name: Optional[str] = None
    contact_person_relation: Optional[str] = None
    contact_person_mobile: Optional[str] = None
    medical_insurance: bool = False
    primary_insurance_name: Optional[str] = None
    primary_insurance_holder_name: Optional[str] = None
    primary_insurance_id: Optional[str] = None
    secondary_insurance_name: Optional[str] = None
    secondary_insurance_holder_name: Optional[str] = None
    secondary_insurance_id: Optional[str] = None
    team_id: Optional[int] = None
    lab_id: Optional[int] = None


class PatientCreate(PatientBase):

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("age")
    @classmethod
    def validate_age(cls, v):
        if v is not None and v < 0:
            raise ValueError("Age cannot be negative")
        return v

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v):
        if not v:
            raise ValueError("Mobile number is required")
        return check_mobile(v)

    @field_validator("mobile2", "contact_person_mobile")
    @classmethod
    def validate_optional_mobile(cls, v):
        return check_mobile(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("aadhar_no")
    @classmethod
    def validate_aadhar(cls, v):
        if v and not AADHAR_RE.match(v):
            raise ValueError("Aadhaar number must be 12 digits")
        return v or None

    @field_validator("height", "weight")
    @classmethod
    def validate_measure(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Height and weight must be greater than 0")
        return v


class PatientUpdate(BaseModel):
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    gender: Optional[Gender] = None
    address: Optional[str] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    pincode: Optional[str] = None
    mobile: Optional[str] = None
    mobile2: Optional[str] = None
    email: Optional[EmailStr] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    marital_status: Optional[str] = None
    occupation: Optional[str] = None
    aadhar_no: Optional[str] = None
    referred_by: Optional[str] = None
    is_referred_to_ho: Optional[bool] = None
    contact_person_name: Optional[str] = None
    contact_person_relation: Optional[str] = None
    contact_person_mobile: Optional[str] = None
    medical_insurance: Optional[bool] = None
    primary_insurance_name: Optional[str] = None
    primary_insurance_holder_name: Optional[str] = None
    primary_insurance_id: Optional[str] = None
    secondary_insurance_name: Optional[str] = None
    secondary_insurance_holder_name: Optional[str] = None
    secondary_insurance_id: Optional[str] = None
    team_id: Optional[int] = None
    lab_id: Optional[int] = None

    @field_validator("age")
    @classmethod
    def validate_age(cls, v):
        if v is not None and v < 0:
            raise ValueError("Age cannot be negative")
        return v

    @field_validator("mobile", "mobile2", "contact_person_mobile")
    @classmethod
    def validate_mobile(cls, v):
        return check_mobile(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("aadhar_no")
    @classmethod
    def validate_aadhar(cls, v):
        if v and not AADHAR_RE.match(v):
            raise ValueError("Aadhaar number must be 12 digits")
        return v


class Patient(PatientBase):
    id: int
    patient_no: str
    franchise_id: int
    full_name: str
    bmi: Optional[float] = None
    balance_amount: float = 0.0
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Antécédents médicaux
# ============================================================

class MedicalHistoryUpdate(BaseModel):
    medical_history: Optional[Any] = None
    surgical_history: Optional[Any] = None
    family_history: Optional[Any] = None
    allergies: Optional[Any] = None
    current_medications: Optional[Any] = None
    notes: Optional[str] = None


class MedicalHistory(MedicalHistoryUpdate):
    id: int
    patient_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Comptes rendus
# ============================================================

class PatientReportCreate(BaseModel):
    name: str
    url: str


class PatientReport(PatientReportCreate):
    id: int
    patient_id: int
    created_at: datetime

    class Config:
        from_attributes = True
