from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, field_validator

from app.models.user import UserRole
from app.schemas.common import check_mobile, check_pincode


class TeamBase(BaseModel):
    name: str
    joining_date: Optional[date] = None
    leaving_date: Optional[date] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    user_mobile: Optional[str] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("user_mobile")
    @classmethod
    def validate_mobile(cls, v):
        return check_mobile(v)


class TeamCreate(TeamBase):
    """Membre d'équipe et son compte de connexion."""
    email: EmailStr
    password: str
    role: UserRole = UserRole.DOCTOR

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Team members can only be franchise or doctor users")
        return v


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    joining_date: Optional[date] = None
    leaving_date: Optional[date] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    user_mobile: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if v is not None and len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Team members can only be franchise or doctor users")
        return v

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("user_mobile")
    @classmethod
    def validate_mobile(cls, v):
        return check_mobile(v)


class Team(TeamBase):
    id: int
    franchise_id: int
    user_id: int
    email: Optional[str] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Salles
# ============================================================

class RoomCreate(BaseModel):
    name: str
    description: Optional[str] = None


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class Room(RoomCreate):
    id: int
    franchise_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
