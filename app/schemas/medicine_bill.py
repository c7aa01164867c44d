from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.schemas.common import check_percent
from app.schemas.receipt import MedicineBillReceipt, ReceiptIn


class MedicineBillDetailCreate(BaseModel):
    medicine_id: int
    qty: int
    mrp: float
    amount: float

    @field_validator("qty")
    @classmethod
    def validate_qty(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v

    @field_validator("mrp", "amount")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("MRP and amount must be greater than 0")
        return v


class MedicineBillDetail(BaseModel):
    id: int
    medicine_id: int
    medicine_name: Optional[str] = None
    brand_name: Optional[str] = None
    qty: int
    mrp: float
    amount: float

    class Config:
        from_attributes = True


class MedicineBillCreate(BaseModel):
    patient_id: int
    bill_date: Optional[datetime] = None
    discount_percent: float = 0.0
    total_amount: float
    details: List[MedicineBillDetailCreate]
    receipt: Optional[ReceiptIn] = None

    @field_validator("discount_percent")
    @classmethod
    def validate_discount(cls, v):
        return check_percent(v)

    @field_validator("total_amount")
    @classmethod
    def validate_total(cls, v):
        if v <= 0:
            raise ValueError("Total amount must be greater than 0")
        return v

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        if not v:
            raise ValueError("At least one medicine is required")
        return v


class MedicineBill(BaseModel):
    id: int
    bill_number: str
    bill_date: datetime
    franchise_id: int
    patient_id: int
    patient_no: Optional[str] = None
    patient_name: Optional[str] = None
    discount_percent: float
    total_amount: float
    total_received_amount: float
    balance_amount: float
    details: List[MedicineBillDetail] = []
    receipts: List[MedicineBillReceipt] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
