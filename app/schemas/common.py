import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, model_validator, field_validator

from app.models.franchise import PaymentMode

MOBILE_RE = re.compile(r"^\d{10}$")
PINCODE_RE = re.compile(r"^\d{6}$")
AADHAR_RE = re.compile(r"^\d{12}$")


def check_mobile(value: Optional[str], label: str = "Mobile number") -> Optional[str]:
    if value is None or value == "":
        return None
    value = value.strip()
    if not MOBILE_RE.match(value):
        raise ValueError(f"{label} must be 10 digits")
    return value


def check_pincode(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    value = value.strip()
    if not PINCODE_RE.match(value):
        raise ValueError("Pincode must be 6 digits")
    return value


def check_percent(value: Optional[float]) -> Optional[float]:
    if value is not None and not 0 <= value <= 100:
        raise ValueError("Percentage must be between 0 and 100")
    return value


class PaymentBase(BaseModel):
    """
    Champs communs aux encaissements (reçus et frais de franchise).

    CASH exige un numéro de contact, UPI un numéro UTR, CHEQUE la date
    et le numéro du chèque.
    """
    payment_mode: PaymentMode
    payer_name: str
    contact_number: Optional[str] = None
    utr_number: Optional[str] = None
    cheque_date: Optional[date] = None
    cheque_number: Optional[str] = None
    notes: Optional[str] = None
    amount: float

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v

    @field_validator("payer_name")
    @classmethod
    def validate_payer_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Payer name is required")
        return v.strip()

    @field_validator("contact_number")
    @classmethod
    def validate_contact_number(cls, v):
        return check_mobile(v, "Contact number")

    @model_validator(mode="after")
    def validate_mode_fields(self):
        if self.payment_mode == PaymentMode.CASH and not self.contact_number:
            raise ValueError("Contact number is required for cash payments")
        if self.payment_mode == PaymentMode.UPI and not (self.utr_number and self.utr_number.strip()):
            raise ValueError("UTR number is required for UPI payments")
        if self.payment_mode == PaymentMode.CHEQUE and not (self.cheque_date and self.cheque_number):
            raise ValueError("Cheque date and cheque number are required for cheque payments")
        return self


class PaymentOut(BaseModel):
    id: int
    payment_mode: PaymentMode
    payer_name: Optional[str] = None
    contact_number: Optional[str] = None
    utr_number: Optional[str] = None
    cheque_date: Optional[date] = None
    cheque_number: Optional[str] = None
    notes: Optional[str] = None
    amount: float
    created_by_user_id: Optional[int] = None

    class Config:
        from_attributes = True
