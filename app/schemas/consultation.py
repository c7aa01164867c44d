from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator

from app.schemas.receipt import ConsultationReceipt, ReceiptIn


class ConsultationDetailCreate(BaseModel):
    service_id: Optional[int] = None
    description: Optional[str] = None
    qty: int = 1
    rate: float
    amount: Optional[float] = None

    @field_validator("qty")
    @classmethod
    def validate_qty(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class ConsultationDetail(BaseModel):
    id: int
    service_id: Optional[int] = None
    description: Optional[str] = None
    qty: int
    rate: float
    amount: float

    class Config:
        from_attributes = True


class ConsultationMedicineCreate(BaseModel):
    medicine_id: Optional[int] = None
    qty: int = 1
    mrp: float
    amount: Optional[float] = None
    doses: Optional[str] = None

    @field_validator("qty")
    @classmethod
    def validate_qty(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class ConsultationMedicine(BaseModel):
    id: int
    medicine_id: Optional[int] = None
    qty: int
    mrp: float
    amount: float
    doses: Optional[str] = None

    class Config:
        from_attributes = True


class ConsultationCreate(BaseModel):
    appointment_id: int
    complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    remarks: Optional[str] = None
    case_paper_url: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    total_amount: float = 0.0
    details: List[ConsultationDetailCreate] = []
    medicines: List[ConsultationMedicineCreate] = []
    receipt: Optional[ReceiptIn] = None

    @field_validator("total_amount")
    @classmethod
    def validate_total(cls, v):
        if v < 0:
            raise ValueError("Total amount cannot be negative")
        return v


class ConsultationUpdate(BaseModel):
    complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    remarks: Optional[str] = None
    case_paper_url: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    total_amount: Optional[float] = None
    details: Optional[List[ConsultationDetailCreate]] = None
    medicines: Optional[List[ConsultationMedicineCreate]] = None

    @field_validator("total_amount")
    @classmethod
    def validate_total(cls, v):
        if v is not None and v < 0:
            raise ValueError("Total amount cannot be negative")
        return v


class Consultation(BaseModel):
    id: int
    appointment_id: int
    patient_id: Optional[int] = None
    patient_name: Optional[str] = None
    complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    remarks: Optional[str] = None
    case_paper_url: Optional[str] = None
    next_follow_up_date: Optional[date] = None
    total_amount: float
    total_received_amount: float
    balance_amount: float
    details: List[ConsultationDetail] = []
    medicines: List[ConsultationMedicine] = []
    receipts: List[ConsultationReceipt] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
