from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, field_validator, model_validator

from app.models.transport import TransportStatus


class TransportDetailIn(BaseModel):
    sale_detail_id: int
    quantity: int = 0

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < 0:
            raise ValueError("Quantity cannot be negative")
        return v


class TransportDetail(BaseModel):
    id: int
    sale_detail_id: int
    medicine_name: Optional[str] = None
    batch_number: Optional[str] = None
    quantity: int

    class Config:
        from_attributes = True


class TransportCreate(BaseModel):
    """Expédition d'une vente: lignes détaillées ou quantité totale."""
    sale_id: int
    company_name: str
    transport_fee: float = 0.0
    transporter_name: Optional[str] = None
    receipt_number: Optional[str] = None
    vehicle_number: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    dispatched_details: Optional[List[TransportDetailIn]] = None
    dispatched_quantity: Optional[int] = None

    @field_validator("company_name")
    @classmethod
    def validate_company(cls, v):
        if not v or not v.strip():
            raise ValueError("Company name is required")
        return v.strip()

    @field_validator("transport_fee")
    @classmethod
    def validate_fee(cls, v):
        if v < 0:
            raise ValueError("Transport fee cannot be negative")
        return v

    @field_validator("dispatched_quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Dispatched quantity must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_dispatch(self):
        if self.dispatched_details is not None and len(self.dispatched_details) == 0:
            raise ValueError("At least one dispatched detail is required")
        if not self.dispatched_details and self.dispatched_quantity is None:
            raise ValueError("Either dispatched_details or dispatched_quantity is required")
        return self


class TransportUpdate(BaseModel):
    status: Optional[TransportStatus] = None
    company_name: Optional[str] = None
    transport_fee: Optional[float] = None
    transporter_name: Optional[str] = None
    receipt_number: Optional[str] = None
    vehicle_number: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    dispatched_details: Optional[List[TransportDetailIn]] = None
    dispatched_quantity: Optional[int] = None

    @field_validator("transport_fee")
    @classmethod
    def validate_fee(cls, v):
        if v is not None and v < 0:
            raise ValueError("Transport fee cannot be negative")
        return v

    @field_validator("dispatched_quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v is not None and v < 0:
            raise ValueError("Dispatched quantity cannot be negative")
        return v


class Transport(BaseModel):
    id: int
    sale_id: int
    invoice_no: Optional[str] = None
    franchise_id: int
    franchise_name: Optional[str] = None
    status: TransportStatus
    dispatched_quantity: Optional[int] = None
    transporter_name: Optional[str] = None
    company_name: Optional[str] = None
    transport_fee: Optional[float] = None
    receipt_number: Optional[str] = None
    vehicle_number: Optional[str] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    dispatched_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    stock_posted_at: Optional[datetime] = None
    details: List[TransportDetail] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
