from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.schemas.common import check_percent


class PackageDetailCreate(BaseModel):
    service_id: Optional[int] = None
    description: Optional[str] = None
    qty: int
    rate: float

    @field_validator("qty")
    @classmethod
    def validate_qty(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class PackageDetail(BaseModel):
    id: int
    service_id: Optional[int] = None
    description: Optional[str] = None
    qty: int
    rate: float
    amount: float

    class Config:
        from_attributes = True


class PackageMedicineCreate(BaseModel):
    medicine_id: int
    qty: int
    rate: float

    @field_validator("qty")
    @classmethod
    def validate_qty(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be greater than 0")
        return v


class PackageMedicine(BaseModel):
    id: int
    medicine_id: int
    qty: int
    rate: float
    amount: float

    class Config:
        from_attributes = True


class PackageCreate(BaseModel):
    name: str
    discount_percent: float = 0.0
    duration: Optional[int] = None
    details: List[PackageDetailCreate] = []
    medicines: List[PackageMedicineCreate] = []

    @field_validator("discount_percent")
    @classmethod
    def validate_discount(cls, v):
        return check_percent(v)


class PackageUpdate(BaseModel):
    name: Optional[str] = None
    discount_percent: Optional[float] = None
    duration: Optional[int] = None
    details: Optional[List[PackageDetailCreate]] = None
    medicines: Optional[List[PackageMedicineCreate]] = None

    @field_validator("discount_percent")
    @classmethod
    def validate_discount(cls, v):
        return check_percent(v)


class Package(BaseModel):
    id: int
    name: str
    total_amount: float
    discount_percent: float
    duration: Optional[int] = None
    details: List[PackageDetail] = []
    medicines: List[PackageMedicine] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
