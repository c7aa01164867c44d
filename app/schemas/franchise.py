from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, field_validator

from app.schemas.common import PaymentBase, PaymentOut, check_mobile, check_pincode


class FranchiseBase(BaseModel):
    name: str
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    contact_no: str
    contact_email: EmailStr
    franchise_fee_amount: Optional[float] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("contact_no")
    @classmethod
    def validate_contact_no(cls, v):
        return check_mobile(v, "Contact number")

    @field_validator("franchise_fee_amount")
    @classmethod
    def validate_fee(cls, v):
        if v is not None and v < 0:
            raise ValueError("Franchise fee cannot be negative")
        return v


class FranchiseCreate(FranchiseBase):
    """Franchise et son compte de connexion, créés ensemble."""
    user_name: str
    user_email: EmailStr
    user_mobile: str
    password: str

    @field_validator("user_mobile")
    @classmethod
    def validate_user_mobile(cls, v):
        if not v:
            raise ValueError("Mobile number is required")
        return check_mobile(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class FranchiseUpdate(BaseModel):
    name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    contact_no: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    franchise_fee_amount: Optional[float] = None
    user_name: Optional[str] = None
    user_email: Optional[EmailStr] = None
    user_mobile: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return check_pincode(v)

    @field_validator("contact_no", "user_mobile")
    @classmethod
    def validate_mobile(cls, v):
        return check_mobile(v)


class FranchiseUser(BaseModel):
    id: int
    name: str
    email: str
    is_active: bool

    class Config:
        from_attributes = True


class Franchise(FranchiseBase):
    id: int
    user_id: int
    user_mobile: Optional[str] = None
    user: Optional[FranchiseUser] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# Frais de franchise
# ============================================================

class FranchiseFeePaymentCreate(PaymentBase):
    payment_date: date


class FranchiseFeePayment(PaymentOut):
    franchise_id: int
    payment_date: date
    created_at: datetime


class FranchiseFeeSummary(BaseModel):
    franchise_id: int
    franchise_name: str
    total_fee_amount: float
    total_received: float
    balance: float
    payments: List[FranchiseFeePayment] = []
