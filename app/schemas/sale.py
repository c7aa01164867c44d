from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator

from app.models.transport import TransportStatus


class SaleDetailCreate(BaseModel):
    medicine_id: int
    batch_number: str
    expiry_date: date
    quantity: int
    rate: float

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v

    @field_validator("rate")
    @classmethod
    def validate_rate(cls, v):
        if v <= 0:
            raise ValueError("Rate must be greater than 0")
        return v

    @field_validator("batch_number")
    @classmethod
    def validate_batch(cls, v):
        if not v or not v.strip():
            raise ValueError("Batch number is required")
        return v.strip()


class SaleDetail(BaseModel):
    id: int
    medicine_id: int
    medicine_name: Optional[str] = None
    brand_name: Optional[str] = None
    batch_number: str
    expiry_date: date
    quantity: int
    rate: float
    amount: float

    class Config:
        from_attributes = True


class SaleCreate(BaseModel):
    invoice_date: datetime
    franchise_id: int
    discount_percent: float = 0.0
    details: List[SaleDetailCreate]

    @field_validator("discount_percent")
    @classmethod
    def validate_discount(cls, v):
        if not 0 <= v <= 100:
            raise ValueError("Discount must be between 0 and 100")
        return v

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        if not v:
            raise ValueError("At least one sale detail is required")
        return v


class SaleUpdate(BaseModel):
    """Remise bornée à 0..100 à l'enregistrement."""
    invoice_date: Optional[datetime] = None
    franchise_id: Optional[int] = None
    discount_percent: Optional[float] = None
    details: Optional[List[SaleDetailCreate]] = None


class SaleTransportSummary(BaseModel):
    id: int
    status: TransportStatus
    dispatched_quantity: Optional[int] = None
    dispatched_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Sale(BaseModel):
    id: int
    invoice_no: str
    invoice_date: datetime
    franchise_id: int
    franchise_name: Optional[str] = None
    discount_percent: float
    total_amount: float
    total_quantity: int
    details: List[SaleDetail] = []
    transports: List[SaleTransportSummary] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
