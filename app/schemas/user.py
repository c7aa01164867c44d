from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.user import UserRole

MIN_PASSWORD_LENGTH = 6


def check_password(v: Optional[str]) -> Optional[str]:
    if v is not None and len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return v


class UserCreate(BaseModel):
    """Compte créé par l'admin; franchises et médecins ont leurs propres écrans."""
    name: str
    email: EmailStr
    password: str
    role: UserRole = UserRole.ADMIN
    is_active: bool = True

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        return check_password(v)


class User(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    # Franchise possédée ou celle de l'équipe du médecin
    franchise_id: Optional[int] = Field(None, validation_alias="resolved_franchise_id")
    franchise_name: Optional[str] = None
    team_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True
