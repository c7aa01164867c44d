from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, field_validator

from app.models.appointment import AppointmentType
from app.models.patient import Gender
from app.schemas.common import check_mobile


class AppointmentPatient(BaseModel):
    """Nouveau patient saisi avec le rendez-vous."""
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    date_of_birth: Optional[date] = None
    age: int
    gender: Gender
    referred_by: Optional[str] = None
    email: Optional[EmailStr] = None
    mobile: str

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("age")
    @classmethod
    def validate_age(cls, v):
        if v <= 0:
            raise ValueError("Age must be greater than 0")
        return v

    @field_validator("mobile")
    @classmethod
    def validate_mobile(cls, v):
        if not v:
            raise ValueError("Mobile number is required")
        return check_mobile(v)


class AppointmentCreate(BaseModel):
    patient_id: Optional[int] = None
    patient: Optional[AppointmentPatient] = None
    appointment_date_time: datetime
    team_id: int
    visit_purpose: Optional[str] = None
    type: AppointmentType = AppointmentType.CONSULTATION


class AppointmentUpdate(BaseModel):
    appointment_date_time: Optional[datetime] = None
    team_id: Optional[int] = None
    visit_purpose: Optional[str] = None
    type: Optional[AppointmentType] = None


class AppointmentPatientSummary(BaseModel):
    id: int
    patient_no: str
    full_name: str
    mobile: str
    gender: Gender

    class Config:
        from_attributes = True


class Appointment(BaseModel):
    id: int
    franchise_id: int
    patient_id: int
    team_id: int
    team_name: Optional[str] = None
    appointment_date_time: datetime
    visit_purpose: Optional[str] = None
    type: AppointmentType
    consultation_id: Optional[int] = None
    patient: Optional[AppointmentPatientSummary] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
